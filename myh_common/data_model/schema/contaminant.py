# ruff: noqa: N815 invalid-name
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from marshmallow import pre_dump
from marshmallow.fields import AwareDateTime, Boolean, Decimal, String, Url
from marshmallow.validate import Length, OneOf, Range

from myh_common.data_model.schema.base_record import BaseRecordSchema, JurisdictionCode
from myh_common.data_model.schema.common import (
    CONTAMINANT_THRESHOLD_TYPE,
    CONTAMINANT_TYPE,
    LOCATION_MEASUREMENT_TYPE,
    ThresholdStatus,
    to_datetime,
    to_float,
)


@BaseRecordSchema.register_schema(CONTAMINANT_TYPE)
class ContaminantRecordSchema(BaseRecordSchema):
    """Schema for contaminant definitions (what is measured in a water sample)"""

    _record_type = CONTAMINANT_TYPE

    # Provided fields
    contaminantId = String(required=True, allow_none=False, validate=Length(1, 100))
    name = String(required=True, allow_none=False, validate=Length(1, 200))
    nameFr = String(required=False, allow_none=False)
    category = String(required=True, allow_none=False, validate=Length(1, 100))
    unit = String(required=True, allow_none=False)
    description = String(required=False, allow_none=False)
    descriptionFr = String(required=False, allow_none=False)
    studies = String(required=False, allow_none=False)
    higherIsBad = Boolean(required=True, allow_none=False)

    @pre_dump
    def generate_pk_sk(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        in_data['pk'] = 'CONTAMINANT'
        in_data['sk'] = f'CONTAMINANT#{in_data["contaminantId"]}'
        return in_data


@BaseRecordSchema.register_schema(CONTAMINANT_THRESHOLD_TYPE)
class ContaminantThresholdRecordSchema(BaseRecordSchema):
    """
    Schema for jurisdiction-specific contaminant limits.

    limitValue is null for banned or uncontrolled contaminants. The warning boundary is expressed as a ratio of the
    limit.
    """

    _record_type = CONTAMINANT_THRESHOLD_TYPE

    # Provided fields
    contaminantId = String(required=True, allow_none=False, validate=Length(1, 100))
    jurisdictionCode = JurisdictionCode(required=True, allow_none=False)
    limitValue = Decimal(required=False, allow_none=True)
    warningRatio = Decimal(required=False, allow_none=True, validate=Range(min=0))
    status = String(required=True, allow_none=False, validate=OneOf([e.value for e in ThresholdStatus]))

    @pre_dump
    def generate_pk_sk(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        in_data['pk'] = f'CONTAMINANT#{in_data["contaminantId"]}'
        in_data['sk'] = f'THRESHOLD#{in_data["jurisdictionCode"]}'
        return in_data


@BaseRecordSchema.register_schema(LOCATION_MEASUREMENT_TYPE)
class LocationMeasurementRecordSchema(BaseRecordSchema):
    """Schema for a single contaminant measurement at a postal code"""

    _record_type = LOCATION_MEASUREMENT_TYPE

    # Provided fields
    postalCode = String(required=True, allow_none=False, validate=Length(3, 10))
    contaminantId = String(required=True, allow_none=False, validate=Length(1, 100))
    value = Decimal(required=True, allow_none=False)
    measuredAt = AwareDateTime(required=True, allow_none=False)
    source = String(required=False, allow_none=False)
    sourceUrl = Url(required=False, allow_none=False)
    notes = String(required=False, allow_none=False)

    @pre_dump
    def generate_pk_sk(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        measured_at = in_data['measuredAt']
        if isinstance(measured_at, datetime):
            measured_at = measured_at.isoformat()
        in_data['pk'] = f'LOCATION#{in_data["postalCode"]}'
        in_data['sk'] = f'MEASUREMENT#{in_data["contaminantId"]}#{measured_at}'
        return in_data


@dataclass(frozen=True)
class Contaminant:
    """
    Legacy entity definition. Contaminants are always measured as a single number.
    """

    id: str
    higher_is_bad: bool = True
    name: str = ''
    category: str = ''
    unit: str = ''

    @classmethod
    def from_record(cls, record: dict) -> 'Contaminant':
        return cls(
            id=record['contaminantId'],
            higher_is_bad=record.get('higherIsBad', True),
            name=record.get('name', ''),
            category=record.get('category', ''),
            unit=record.get('unit', ''),
        )


@dataclass(frozen=True)
class ContaminantThreshold:
    contaminant_id: str
    jurisdiction_code: str
    status: ThresholdStatus = ThresholdStatus.REGULATED
    limit_value: float | None = None
    warning_ratio: float | None = None

    @property
    def key(self) -> tuple[str, str]:
        return self.contaminant_id, self.jurisdiction_code

    @classmethod
    def from_record(cls, record: dict) -> 'ContaminantThreshold':
        return cls(
            contaminant_id=record['contaminantId'],
            jurisdiction_code=record['jurisdictionCode'],
            status=ThresholdStatus(record.get('status') or ThresholdStatus.REGULATED),
            limit_value=to_float(record.get('limitValue')),
            warning_ratio=to_float(record.get('warningRatio')),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            'contaminantId': self.contaminant_id,
            'jurisdictionCode': self.jurisdiction_code,
            'status': self.status,
            'limitValue': self.limit_value,
            'warningRatio': self.warning_ratio,
        }


@dataclass(frozen=True)
class LocationMeasurement:
    postal_code: str
    contaminant_id: str
    value: float | None
    measured_at: datetime | None = None
    source: str | None = None
    source_url: str | None = None
    notes: str | None = None

    @classmethod
    def from_record(cls, record: dict) -> 'LocationMeasurement':
        return cls(
            postal_code=record['postalCode'],
            contaminant_id=record['contaminantId'],
            value=to_float(record.get('value')),
            measured_at=to_datetime(record.get('measuredAt')),
            source=record.get('source'),
            source_url=record.get('sourceUrl'),
            notes=record.get('notes'),
        )

    def to_dict(self) -> dict[str, Any]:
        result = {
            'postalCode': self.postal_code,
            'contaminantId': self.contaminant_id,
            'value': self.value,
            'measuredAt': self.measured_at,
        }
        for key, value in (('source', self.source), ('sourceUrl', self.source_url), ('notes', self.notes)):
            if value is not None:
                result[key] = value
        return result
