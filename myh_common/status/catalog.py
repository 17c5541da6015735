from dataclasses import dataclass

from myh_common.config import config, logger
from myh_common.data_model.data_source import SafetyDataSource
from myh_common.data_model.schema import (
    Contaminant,
    ContaminantThreshold,
    Jurisdiction,
    ObservedProperty,
    PropertyThreshold,
)
from myh_common.status.resolver import ThresholdResolver, index_thresholds, jurisdiction_for_location


@dataclass
class SafetyCatalog:
    """
    The reference tables of both data models, fully materialized, with a threshold resolver for each.
    """

    jurisdictions_by_code: dict[str, Jurisdiction]
    contaminants_by_id: dict[str, Contaminant]
    observed_properties_by_id: dict[str, ObservedProperty]
    contaminant_resolver: ThresholdResolver[ContaminantThreshold]
    property_resolver: ThresholdResolver[PropertyThreshold]

    @classmethod
    def build(
        cls,
        *,
        jurisdictions: list[Jurisdiction],
        contaminants: list[Contaminant] = (),
        contaminant_thresholds: list[ContaminantThreshold] = (),
        observed_properties: list[ObservedProperty] = (),
        property_thresholds: list[PropertyThreshold] = (),
        default_jurisdiction_code: str | None = None,
    ) -> 'SafetyCatalog':
        if default_jurisdiction_code is None:
            default_jurisdiction_code = config.default_jurisdiction_code
        jurisdictions_by_code = {jurisdiction.code: jurisdiction for jurisdiction in jurisdictions}
        return cls(
            jurisdictions_by_code=jurisdictions_by_code,
            contaminants_by_id={contaminant.id: contaminant for contaminant in contaminants},
            observed_properties_by_id={prop.id: prop for prop in observed_properties},
            contaminant_resolver=ThresholdResolver(
                index_thresholds(contaminant_thresholds), jurisdictions_by_code, default_jurisdiction_code
            ),
            property_resolver=ThresholdResolver(
                index_thresholds(property_thresholds), jurisdictions_by_code, default_jurisdiction_code
            ),
        )

    @classmethod
    def load(cls, data_source: SafetyDataSource, *, include_observations: bool = True) -> 'SafetyCatalog':
        """
        Read every reference table out of the data source.

        :param data_source: Where to read from
        :param include_observations: Whether to load the observed property tables as well as the contaminant ones
        """
        logger.info('Loading safety catalog')
        return cls.build(
            jurisdictions=data_source.get_jurisdictions(),
            contaminants=data_source.get_contaminants(),
            contaminant_thresholds=data_source.get_contaminant_thresholds(),
            observed_properties=data_source.get_observed_properties() if include_observations else (),
            property_thresholds=data_source.get_property_thresholds() if include_observations else (),
        )

    @property
    def default_jurisdiction_code(self) -> str | None:
        return self.contaminant_resolver.default_jurisdiction_code

    def jurisdiction_for_location(self, *, state: str | None, country: str | None) -> str | None:
        return jurisdiction_for_location(
            state=state,
            country=country,
            jurisdictions_by_code=self.jurisdictions_by_code,
            default_jurisdiction_code=self.default_jurisdiction_code,
        )
