from datetime import datetime
from enum import StrEnum

JURISDICTION_TYPE = 'jurisdiction'
LOCATION_TYPE = 'location'
CONTAMINANT_TYPE = 'contaminant'
CONTAMINANT_THRESHOLD_TYPE = 'contaminantThreshold'
LOCATION_MEASUREMENT_TYPE = 'locationMeasurement'
OBSERVED_PROPERTY_TYPE = 'observedProperty'
PROPERTY_THRESHOLD_TYPE = 'propertyThreshold'
LOCATION_OBSERVATION_TYPE = 'locationObservation'


class SafetyStatus(StrEnum):
    """
    The derived three-level safety classification.

    Severity order is danger > warning > safe. Use `severity` to compare, never the string values.
    """

    SAFE = 'safe'
    WARNING = 'warning'
    DANGER = 'danger'

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def from_str(cls, label: str | None) -> 'SafetyStatus | None':
        try:
            return cls(label)
        except (TypeError, ValueError):
            return None


_SEVERITY = {SafetyStatus.SAFE: 0, SafetyStatus.WARNING: 1, SafetyStatus.DANGER: 2}


class ThresholdStatus(StrEnum):
    """Regulatory status of a contaminant threshold"""

    REGULATED = 'regulated'
    BANNED = 'banned'
    NOT_APPROVED = 'not_approved'
    NOT_CONTROLLED = 'not_controlled'


class PropertyThresholdStatus(StrEnum):
    """Regulatory status of an observed property threshold"""

    ACTIVE = 'active'
    BANNED = 'banned'
    NOT_APPROVED = 'not_approved'
    NOT_CONTROLLED = 'not_controlled'
    HISTORICAL = 'historical'
    NOT_APPLICABLE = 'not_applicable'

    @property
    def is_active(self) -> bool:
        return self not in _INACTIVE_PROPERTY_THRESHOLD_STATUSES


_INACTIVE_PROPERTY_THRESHOLD_STATUSES = frozenset(
    (
        PropertyThresholdStatus.NOT_CONTROLLED,
        PropertyThresholdStatus.HISTORICAL,
        PropertyThresholdStatus.NOT_APPLICABLE,
    )
)


class ObservationType(StrEnum):
    """Which measurement shape applies to an observed property"""

    NUMERIC = 'numeric'
    ZONE = 'zone'
    ENDEMIC = 'endemic'
    INCIDENCE = 'incidence'
    BINARY = 'binary'


def to_float(value) -> float | None:
    """
    Numbers come back from DynamoDB as Decimal, which won't multiply with a float. Everything past the schema layer
    works in floats.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_datetime(value) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
