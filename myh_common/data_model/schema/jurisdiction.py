# ruff: noqa: N815 invalid-name
from dataclasses import dataclass
from typing import Any

from marshmallow import pre_dump
from marshmallow.fields import Boolean, Decimal, String
from marshmallow.validate import Length

from myh_common.data_model.schema.base_record import BaseRecordSchema, JurisdictionCode
from myh_common.data_model.schema.common import JURISDICTION_TYPE, LOCATION_TYPE, to_float


@BaseRecordSchema.register_schema(JURISDICTION_TYPE)
class JurisdictionRecordSchema(BaseRecordSchema):
    """Schema for regulatory jurisdiction records"""

    _record_type = JURISDICTION_TYPE

    # Provided fields
    code = JurisdictionCode(required=True, allow_none=False)
    name = String(required=True, allow_none=False, validate=Length(1, 100))
    nameFr = String(required=False, allow_none=False)
    country = String(required=True, allow_none=False, validate=Length(2, 10))
    region = String(required=False, allow_none=False)
    parentCode = JurisdictionCode(required=False, allow_none=False)
    isDefault = Boolean(required=True, allow_none=False)

    @pre_dump
    def generate_pk_sk(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        in_data['pk'] = 'JURISDICTION'
        in_data['sk'] = f'JURISDICTION#{in_data["code"]}'
        return in_data


@BaseRecordSchema.register_schema(LOCATION_TYPE)
class LocationRecordSchema(BaseRecordSchema):
    """Schema for postal code location records, which map a postal code to its jurisdiction"""

    _record_type = LOCATION_TYPE

    # Provided fields
    postalCode = String(required=True, allow_none=False, validate=Length(3, 10))
    city = String(required=False, allow_none=False)
    state = String(required=False, allow_none=False)
    country = String(required=True, allow_none=False, validate=Length(2, 10))
    jurisdictionCode = JurisdictionCode(required=True, allow_none=False)
    latitude = Decimal(required=False, allow_none=False)
    longitude = Decimal(required=False, allow_none=False)

    @pre_dump
    def generate_pk_sk(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        in_data['pk'] = f'LOCATION#{in_data["postalCode"]}'
        in_data['sk'] = f'LOCATION#{in_data["postalCode"]}'
        return in_data


@dataclass(frozen=True)
class Jurisdiction:
    """
    A regulatory region. Jurisdictions form a tree through parent_code, which is walked for threshold fallback.
    """

    code: str
    name: str = ''
    country: str = ''
    region: str | None = None
    parent_code: str | None = None
    is_default: bool = False

    @classmethod
    def from_record(cls, record: dict) -> 'Jurisdiction':
        return cls(
            code=record['code'],
            name=record.get('name', ''),
            country=record.get('country', ''),
            region=record.get('region'),
            parent_code=record.get('parentCode') or None,
            is_default=bool(record.get('isDefault', False)),
        )

    def to_dict(self) -> dict[str, Any]:
        result = {'code': self.code, 'name': self.name, 'country': self.country, 'isDefault': self.is_default}
        if self.region is not None:
            result['region'] = self.region
        if self.parent_code is not None:
            result['parentCode'] = self.parent_code
        return result


@dataclass(frozen=True)
class Location:
    postal_code: str
    country: str
    jurisdiction_code: str
    city: str | None = None
    state: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @classmethod
    def from_record(cls, record: dict) -> 'Location':
        return cls(
            postal_code=record['postalCode'],
            country=record['country'],
            jurisdiction_code=record['jurisdictionCode'],
            city=record.get('city'),
            state=record.get('state'),
            latitude=to_float(record.get('latitude')),
            longitude=to_float(record.get('longitude')),
        )
