# ruff: noqa: N815 invalid-name
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from marshmallow import ValidationError, pre_dump, validates_schema
from marshmallow.fields import AwareDateTime, Boolean, Decimal, String, Url
from marshmallow.validate import Length

from myh_common.data_model.schema.base_record import BaseRecordSchema
from myh_common.data_model.schema.common import LOCATION_OBSERVATION_TYPE, ObservationType, to_datetime, to_float

VALUE_FIELDS = ('numericValue', 'zoneValue', 'endemicValue', 'incidenceValue', 'binaryValue')


def city_partition_key(*, country: str, state: str, city: str) -> str:
    return f'CITY#{country.upper()}#{state.upper()}#{city.lower()}'


@BaseRecordSchema.register_schema(LOCATION_OBSERVATION_TYPE)
class LocationObservationRecordSchema(BaseRecordSchema):
    """
    Schema for a single observed property value at a city.

    Exactly one of the value fields is expected to be set, matching the property's observationType.
    """

    _record_type = LOCATION_OBSERVATION_TYPE

    # Provided fields
    propertyId = String(required=True, allow_none=False, validate=Length(1, 100))
    city = String(required=True, allow_none=False, validate=Length(1, 100))
    state = String(required=True, allow_none=False, validate=Length(1, 10))
    country = String(required=True, allow_none=False, validate=Length(2, 10))
    county = String(required=False, allow_none=False)
    numericValue = Decimal(required=False, allow_none=True)
    zoneValue = String(required=False, allow_none=True)
    endemicValue = Boolean(required=False, allow_none=True)
    incidenceValue = Decimal(required=False, allow_none=True)
    binaryValue = Boolean(required=False, allow_none=True)
    observedAt = AwareDateTime(required=True, allow_none=False)
    validUntil = AwareDateTime(required=False, allow_none=True)
    source = String(required=False, allow_none=False)
    sourceUrl = Url(required=False, allow_none=False)
    notes = String(required=False, allow_none=False)

    @validates_schema
    def validate_single_value(self, data, **kwargs):  # noqa: ARG002 unused-argument
        provided = [name for name in VALUE_FIELDS if data.get(name) is not None]
        if len(provided) > 1:
            raise ValidationError(f'Only one observation value may be set, got: {", ".join(provided)}')

    @pre_dump
    def generate_pk_sk(self, in_data, **kwargs):  # noqa: ARG002 unused-argument
        observed_at = in_data['observedAt']
        if isinstance(observed_at, datetime):
            observed_at = observed_at.isoformat()
        in_data['pk'] = city_partition_key(country=in_data['country'], state=in_data['state'], city=in_data['city'])
        in_data['sk'] = f'OBSERVATION#{in_data["propertyId"]}#{observed_at}'
        return in_data


@dataclass(frozen=True)
class NumericObservation:
    value: float | None = None


@dataclass(frozen=True)
class ZoneObservation:
    value: str | None = None


@dataclass(frozen=True)
class EndemicObservation:
    value: bool | None = None


@dataclass(frozen=True)
class IncidenceObservation:
    value: float | None = None


@dataclass(frozen=True)
class BinaryObservation:
    value: bool | None = None


ObservationValue = NumericObservation | ZoneObservation | EndemicObservation | IncidenceObservation | BinaryObservation


def _as_bool(value) -> bool | None:
    return value if isinstance(value, bool) else None


def _as_str(value) -> str | None:
    return value if isinstance(value, str) else None


def observation_value_for(observation_type: str, values: dict) -> ObservationValue | None:
    """
    Pick the value shape selected by a property's observationType out of a record's value fields.

    A missing or wrong-shaped field comes back as the selected shape with value=None. An observation type we don't
    recognize comes back as None.

    :param observation_type: The observed property's observationType
    :param values: A dict carrying the camelCase value fields of an observation
    """
    match observation_type:
        case ObservationType.NUMERIC:
            return NumericObservation(to_float(values.get('numericValue')))
        case ObservationType.ZONE:
            return ZoneObservation(_as_str(values.get('zoneValue')))
        case ObservationType.ENDEMIC:
            return EndemicObservation(_as_bool(values.get('endemicValue')))
        case ObservationType.INCIDENCE:
            return IncidenceObservation(to_float(values.get('incidenceValue')))
        case ObservationType.BINARY:
            return BinaryObservation(_as_bool(values.get('binaryValue')))
    return None


@dataclass(frozen=True)
class LocationObservation:
    property_id: str
    city: str
    state: str
    country: str
    values: dict[str, Any]
    observed_at: datetime | None = None
    valid_until: datetime | None = None
    county: str | None = None
    source: str | None = None
    source_url: str | None = None
    notes: str | None = None

    def value_for(self, observation_type: str) -> ObservationValue | None:
        return observation_value_for(observation_type, self.values)

    @classmethod
    def from_record(cls, record: dict) -> 'LocationObservation':
        return cls(
            property_id=record['propertyId'],
            city=record['city'],
            state=record['state'],
            country=record['country'],
            values={name: record[name] for name in VALUE_FIELDS if record.get(name) is not None},
            observed_at=to_datetime(record.get('observedAt')),
            valid_until=to_datetime(record.get('validUntil')),
            county=record.get('county'),
            source=record.get('source'),
            source_url=record.get('sourceUrl'),
            notes=record.get('notes'),
        )

    def to_dict(self) -> dict[str, Any]:
        result = {
            'propertyId': self.property_id,
            'city': self.city,
            'state': self.state,
            'country': self.country,
            'observedAt': self.observed_at,
            **{
                name: to_float(value) if name in ('numericValue', 'incidenceValue') else value
                for name, value in self.values.items()
            },
        }
        for key, value in (
            ('validUntil', self.valid_until),
            ('county', self.county),
            ('source', self.source),
            ('sourceUrl', self.source_url),
            ('notes', self.notes),
        ):
            if value is not None:
                result[key] = value
        return result
