from collections.abc import Iterable
from enum import StrEnum

from myh_common.data_model.schema.common import SafetyStatus, to_float
from myh_common.data_model.schema.contaminant import LocationMeasurement

# Relative change, against the recent mean, below which a value is considered unchanged
STABLE_BAND = 0.05
TREND_WINDOW = 3


def worse_status(first: SafetyStatus, second: SafetyStatus) -> SafetyStatus:
    return first if first.severity >= second.severity else second


def worst_status(statuses: Iterable[SafetyStatus]) -> SafetyStatus:
    """Most severe status in the collection, safe for an empty one"""
    worst = SafetyStatus.SAFE
    for status in statuses:
        worst = worse_status(worst, status)
    return worst


class TrendDirection(StrEnum):
    IMPROVING = 'improving'
    WORSENING = 'worsening'
    STABLE = 'stable'


def trend_direction(
    current_value, history: Iterable[LocationMeasurement], higher_is_bad: bool = True
) -> TrendDirection:
    """
    Compare a current value with the mean of the most recent historical measurements.

    Fewer than two usable history points, or a change within 5% of the mean, is stable. Otherwise the direction of
    the change is read through the entity's polarity.

    :param current_value: The latest value
    :param history: Earlier measurements of the same contaminant at the same location, in any order
    :param higher_is_bad: Polarity of the contaminant
    """
    current_value = to_float(current_value)
    points = sorted(
        (measurement for measurement in history if to_float(measurement.value) is not None),
        key=lambda measurement: measurement.measured_at.timestamp() if measurement.measured_at else float('-inf'),
    )
    if current_value is None or len(points) < 2:
        return TrendDirection.STABLE

    recent = [to_float(measurement.value) for measurement in points[-TREND_WINDOW:]]
    mean = sum(recent) / len(recent)
    if mean == 0:
        if current_value == 0:
            return TrendDirection.STABLE
        increasing = current_value > 0
    else:
        change = (current_value - mean) / abs(mean)
        if abs(change) < STABLE_BAND:
            return TrendDirection.STABLE
        increasing = change > 0

    if increasing == higher_is_bad:
        return TrendDirection.WORSENING
    return TrendDirection.IMPROVING
