# ruff: noqa: N815 invalid-name
from dataclasses import dataclass, field
from typing import Any

from marshmallow import pre_dump
from marshmallow.fields import Boolean, Decimal, Dict, String
from marshmallow.validate import Length, OneOf

from myh_common.data_model.schema.base_record import BaseRecordSchema, JurisdictionCode
from myh_common.data_model.schema.common import (
    OBSERVED_PROPERTY_TYPE,
    PROPERTY_THRESHOLD_TYPE,
    ObservationType,
    PropertyThresholdStatus,
    SafetyStatus,
    to_float,
)


@BaseRecordSchema.register_schema(OBSERVED_PROPERTY_TYPE)
class ObservedPropertyRecordSchema(BaseRecordSchema):
    """
    Schema for observed property definitions.

    The observationType is fixed per property and selects which value field of an observation, and which fields of a
    threshold, are meaningful.
    """

    _record_type = OBSERVED_PROPERTY_TYPE

    # Provided fields
    propertyId = String(required=True, allow_none=False, validate=Length(1, 100))
    name = String(required=True, allow_none=False, validate=Length(1, 200))
    nameFr = String(required=False, allow_none=False)
    category = String(required=True, allow_none=False, validate=Length(1, 100))
    observationType = String(required=True, allow_none=False, validate=OneOf([e.value for e in ObservationType]))
    unit = String(required=False, allow_none=False)
    description = String(required=False, allow_none=False)
    descriptionFr = String(required=False, allow_none=False)
    higherIsBad = Boolean(required=True, allow_none=False)

    @pre_dump
    def generate_pk_sk(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        in_data['pk'] = 'PROPERTY'
        in_data['sk'] = f'PROPERTY#{in_data["propertyId"]}'
        return in_data


@BaseRecordSchema.register_schema(PROPERTY_THRESHOLD_TYPE)
class PropertyThresholdRecordSchema(BaseRecordSchema):
    """Schema for jurisdiction-specific observed property thresholds"""

    _record_type = PROPERTY_THRESHOLD_TYPE

    # Provided fields
    propertyId = String(required=True, allow_none=False, validate=Length(1, 100))
    jurisdictionCode = JurisdictionCode(required=True, allow_none=False)
    status = String(required=True, allow_none=False, validate=OneOf([e.value for e in PropertyThresholdStatus]))
    # numeric
    limitValue = Decimal(required=False, allow_none=True)
    warningValue = Decimal(required=False, allow_none=True)
    # zone
    zoneMapping = Dict(
        keys=String(),
        values=String(validate=OneOf([e.value for e in SafetyStatus])),
        required=False,
        allow_none=True,
    )
    # endemic
    endemicIsDanger = Boolean(required=False, allow_none=True)
    # incidence
    incidenceWarningThreshold = Decimal(required=False, allow_none=True)
    incidenceDangerThreshold = Decimal(required=False, allow_none=True)
    notes = String(required=False, allow_none=False)

    @pre_dump
    def generate_pk_sk(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        in_data['pk'] = f'PROPERTY#{in_data["propertyId"]}'
        in_data['sk'] = f'THRESHOLD#{in_data["jurisdictionCode"]}'
        return in_data


@dataclass(frozen=True)
class ObservedProperty:
    """
    Generalized entity definition. observation_type is kept as a plain string so that a property with a type this
    code doesn't know about can still be loaded and evaluated (to safe).
    """

    id: str
    observation_type: str = ObservationType.NUMERIC
    higher_is_bad: bool = True
    name: str = ''
    category: str = ''
    unit: str | None = None

    @classmethod
    def from_record(cls, record: dict) -> 'ObservedProperty':
        return cls(
            id=record['propertyId'],
            observation_type=record.get('observationType', ObservationType.NUMERIC),
            higher_is_bad=record.get('higherIsBad', True),
            name=record.get('name', ''),
            category=record.get('category', ''),
            unit=record.get('unit'),
        )


@dataclass(frozen=True)
class PropertyThreshold:
    property_id: str
    jurisdiction_code: str
    status: str = PropertyThresholdStatus.ACTIVE
    limit_value: float | None = None
    warning_value: float | None = None
    zone_mapping: dict[str, str] | None = field(default=None, hash=False)
    endemic_is_danger: bool | None = None
    incidence_warning_threshold: float | None = None
    incidence_danger_threshold: float | None = None

    @property
    def key(self) -> tuple[str, str]:
        return self.property_id, self.jurisdiction_code

    @property
    def is_active(self) -> bool:
        try:
            return PropertyThresholdStatus(self.status).is_active
        except ValueError:
            # Statuses outside the known vocabulary are treated as active
            return True

    @classmethod
    def from_record(cls, record: dict) -> 'PropertyThreshold':
        return cls(
            property_id=record['propertyId'],
            jurisdiction_code=record['jurisdictionCode'],
            status=record.get('status') or PropertyThresholdStatus.ACTIVE,
            limit_value=to_float(record.get('limitValue')),
            warning_value=to_float(record.get('warningValue')),
            zone_mapping=record.get('zoneMapping'),
            endemic_is_danger=record.get('endemicIsDanger'),
            incidence_warning_threshold=to_float(record.get('incidenceWarningThreshold')),
            incidence_danger_threshold=to_float(record.get('incidenceDangerThreshold')),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'propertyId': self.property_id,
            'jurisdictionCode': self.jurisdiction_code,
            'status': self.status,
            'limitValue': self.limit_value,
            'warningValue': self.warning_value,
            'zoneMapping': self.zone_mapping,
            'endemicIsDanger': self.endemic_is_danger,
            'incidenceWarningThreshold': self.incidence_warning_threshold,
            'incidenceDangerThreshold': self.incidence_danger_threshold,
        }
