import json
from collections.abc import Callable
from typing import Protocol, TypeVar

from botocore.exceptions import BotoCoreError, ClientError
from marshmallow import ValidationError

from myh_common.config import logger
from myh_common.data_model.data_client import DataClient
from myh_common.data_model.schema import (
    Contaminant,
    ContaminantThreshold,
    Jurisdiction,
    Location,
    LocationMeasurement,
    LocationObservation,
    ObservedProperty,
    PropertyThreshold,
)
from myh_common.data_model.schema.base_record import BaseRecordSchema
from myh_common.data_model.schema.common import (
    CONTAMINANT_THRESHOLD_TYPE,
    CONTAMINANT_TYPE,
    JURISDICTION_TYPE,
    LOCATION_MEASUREMENT_TYPE,
    LOCATION_OBSERVATION_TYPE,
    LOCATION_TYPE,
    OBSERVED_PROPERTY_TYPE,
    PROPERTY_THRESHOLD_TYPE,
)
from myh_common.data_model.schema.observation import city_partition_key
from myh_common.exceptions import MYHBaseException, MYHInternalException, MYHNotFoundException

T = TypeVar('T')

# Failures of the primary source that the fallback can stand in for
RECOVERABLE_ERRORS = (BotoCoreError, ClientError, MYHBaseException)

# Static records carry only their provided fields, the table keys and update stamp are generated on write
GENERATED_FIELDS = ('pk', 'sk', 'type', 'dateOfUpdate')


class SafetyDataSource(Protocol):
    """
    Everything the status engine needs, fully materialized.

    Implementations may read from the live table or from a static data set, callers can't tell the difference.
    """

    def get_jurisdictions(self) -> list[Jurisdiction]: ...

    def get_contaminants(self) -> list[Contaminant]: ...

    def get_contaminant_thresholds(self) -> list[ContaminantThreshold]: ...

    def get_observed_properties(self) -> list[ObservedProperty]: ...

    def get_property_thresholds(self) -> list[PropertyThreshold]: ...

    def get_location(self, postal_code: str) -> Location | None: ...

    def get_location_measurements(self, postal_code: str) -> list[LocationMeasurement]: ...

    def get_location_observations(self, *, country: str, state: str, city: str) -> list[LocationObservation]: ...


class DynamoDBDataSource:
    """Data source backed by the safety data table"""

    def __init__(self, data_client: DataClient):
        self.data_client = data_client

    def get_jurisdictions(self) -> list[Jurisdiction]:
        return [Jurisdiction.from_record(record) for record in self.data_client.get_jurisdictions()]

    def get_contaminants(self) -> list[Contaminant]:
        return [Contaminant.from_record(record) for record in self.data_client.get_contaminants()]

    def get_contaminant_thresholds(self) -> list[ContaminantThreshold]:
        return [ContaminantThreshold.from_record(record) for record in self.data_client.get_contaminant_thresholds()]

    def get_observed_properties(self) -> list[ObservedProperty]:
        return [ObservedProperty.from_record(record) for record in self.data_client.get_observed_properties()]

    def get_property_thresholds(self) -> list[PropertyThreshold]:
        return [PropertyThreshold.from_record(record) for record in self.data_client.get_property_thresholds()]

    def get_location(self, postal_code: str) -> Location | None:
        try:
            return Location.from_record(self.data_client.get_location(postal_code=postal_code))
        except MYHNotFoundException:
            return None

    def get_location_measurements(self, postal_code: str) -> list[LocationMeasurement]:
        return [
            LocationMeasurement.from_record(record)
            for record in self.data_client.get_location_measurements(postal_code=postal_code)
        ]

    def get_location_observations(self, *, country: str, state: str, city: str) -> list[LocationObservation]:
        return [
            LocationObservation.from_record(record)
            for record in self.data_client.get_location_observations(country=country, state=state, city=city)
        ]


class StaticDataSource:
    """
    In-memory data source, used as an offline fallback and in tests.

    The JSON form holds camelCase records under the keys: jurisdictions, contaminants, contaminantThresholds,
    observedProperties, propertyThresholds, locations, measurements and observations.
    """

    def __init__(
        self,
        *,
        jurisdictions: list[Jurisdiction] = (),
        contaminants: list[Contaminant] = (),
        contaminant_thresholds: list[ContaminantThreshold] = (),
        observed_properties: list[ObservedProperty] = (),
        property_thresholds: list[PropertyThreshold] = (),
        locations: list[Location] = (),
        measurements: list[LocationMeasurement] = (),
        observations: list[LocationObservation] = (),
    ):
        self.jurisdictions = list(jurisdictions)
        self.contaminants = list(contaminants)
        self.contaminant_thresholds = list(contaminant_thresholds)
        self.observed_properties = list(observed_properties)
        self.property_thresholds = list(property_thresholds)
        self.locations = {location.postal_code: location for location in locations}
        self.measurements = list(measurements)
        self.observations = list(observations)

    @staticmethod
    def _load_section(data: dict, section: str, record_type: str) -> list[dict]:
        """
        Validate one section of the static data set through the record schema live records are loaded with.

        :raises MYHInternalException: If any record in the section is invalid
        """
        schema = BaseRecordSchema.get_schema_by_type(record_type)
        try:
            return schema.load(data.get(section, []), many=True, partial=GENERATED_FIELDS)
        except ValidationError as e:
            logger.error('Invalid static safety data', section=section, errors=e.messages)
            raise MYHInternalException(f'Invalid {section} in static safety data: {e.messages}') from e

    @classmethod
    def from_dict(cls, data: dict) -> 'StaticDataSource':
        def load(section: str, record_type: str, from_record: Callable[[dict], T]) -> list[T]:
            return [from_record(record) for record in cls._load_section(data, section, record_type)]

        return cls(
            jurisdictions=load('jurisdictions', JURISDICTION_TYPE, Jurisdiction.from_record),
            contaminants=load('contaminants', CONTAMINANT_TYPE, Contaminant.from_record),
            contaminant_thresholds=load(
                'contaminantThresholds', CONTAMINANT_THRESHOLD_TYPE, ContaminantThreshold.from_record
            ),
            observed_properties=load('observedProperties', OBSERVED_PROPERTY_TYPE, ObservedProperty.from_record),
            property_thresholds=load('propertyThresholds', PROPERTY_THRESHOLD_TYPE, PropertyThreshold.from_record),
            locations=load('locations', LOCATION_TYPE, Location.from_record),
            measurements=load('measurements', LOCATION_MEASUREMENT_TYPE, LocationMeasurement.from_record),
            observations=load('observations', LOCATION_OBSERVATION_TYPE, LocationObservation.from_record),
        )

    @classmethod
    def from_json_file(cls, path: str) -> 'StaticDataSource':
        logger.info('Loading static safety data', path=path)
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def get_jurisdictions(self) -> list[Jurisdiction]:
        return list(self.jurisdictions)

    def get_contaminants(self) -> list[Contaminant]:
        return list(self.contaminants)

    def get_contaminant_thresholds(self) -> list[ContaminantThreshold]:
        return list(self.contaminant_thresholds)

    def get_observed_properties(self) -> list[ObservedProperty]:
        return list(self.observed_properties)

    def get_property_thresholds(self) -> list[PropertyThreshold]:
        return list(self.property_thresholds)

    def get_location(self, postal_code: str) -> Location | None:
        return self.locations.get(postal_code)

    def get_location_measurements(self, postal_code: str) -> list[LocationMeasurement]:
        return [measurement for measurement in self.measurements if measurement.postal_code == postal_code]

    def get_location_observations(self, *, country: str, state: str, city: str) -> list[LocationObservation]:
        partition = city_partition_key(country=country, state=state, city=city)
        return [
            observation
            for observation in self.observations
            if city_partition_key(country=observation.country, state=observation.state, city=observation.city)
            == partition
        ]


class FallbackDataSource:
    """
    Reads from a primary source, and from a fallback source when the primary can't serve a request.

    Reference tables (jurisdictions, entities, thresholds) come from the fallback when the primary fails or has none.
    Location data only comes from the fallback when the primary fails, since an empty result there is a real answer.
    is_fallback records whether any read so far was served by the fallback.
    """

    def __init__(self, *, primary: SafetyDataSource, fallback: SafetyDataSource):
        self.primary = primary
        self.fallback = fallback
        self.is_fallback = False

    def _read(self, name: str, read: Callable[[SafetyDataSource], T], *, fallback_on_empty: bool) -> T:
        try:
            result = read(self.primary)
        except RECOVERABLE_ERRORS as e:
            logger.warning('Primary data source failed, using fallback data', read=name, exc_info=e)
            self.is_fallback = True
            return read(self.fallback)

        if fallback_on_empty and not result:
            logger.info('Primary data source returned no data, using fallback data', read=name)
            self.is_fallback = True
            return read(self.fallback)
        return result

    def get_jurisdictions(self) -> list[Jurisdiction]:
        return self._read('jurisdictions', lambda source: source.get_jurisdictions(), fallback_on_empty=True)

    def get_contaminants(self) -> list[Contaminant]:
        return self._read('contaminants', lambda source: source.get_contaminants(), fallback_on_empty=True)

    def get_contaminant_thresholds(self) -> list[ContaminantThreshold]:
        return self._read(
            'contaminantThresholds', lambda source: source.get_contaminant_thresholds(), fallback_on_empty=True
        )

    def get_observed_properties(self) -> list[ObservedProperty]:
        return self._read('observedProperties', lambda source: source.get_observed_properties(), fallback_on_empty=True)

    def get_property_thresholds(self) -> list[PropertyThreshold]:
        return self._read('propertyThresholds', lambda source: source.get_property_thresholds(), fallback_on_empty=True)

    def get_location(self, postal_code: str) -> Location | None:
        return self._read('location', lambda source: source.get_location(postal_code), fallback_on_empty=False)

    def get_location_measurements(self, postal_code: str) -> list[LocationMeasurement]:
        return self._read(
            'measurements', lambda source: source.get_location_measurements(postal_code), fallback_on_empty=False
        )

    def get_location_observations(self, *, country: str, state: str, city: str) -> list[LocationObservation]:
        return self._read(
            'observations',
            lambda source: source.get_location_observations(country=country, state=state, city=city),
            fallback_on_empty=False,
        )
