"""
Safety status evaluation.

There are two evaluation policies, one per generation of the data model, and they disagree on what a missing
threshold means:

- LegacyContaminantPolicy: a contaminant with no threshold, or a banned one, is dangerous wherever it is found.
- ObservationPolicy: an observed property with no threshold, or an inactive one, cannot be evaluated and is safe.

Both are total: every input combination produces a status, nothing here raises.
"""

from myh_common.config import config
from myh_common.data_model.schema.common import SafetyStatus, ThresholdStatus, to_float
from myh_common.data_model.schema.contaminant import Contaminant, ContaminantThreshold
from myh_common.data_model.schema.observation import (
    BinaryObservation,
    EndemicObservation,
    IncidenceObservation,
    NumericObservation,
    ObservationValue,
    ZoneObservation,
)
from myh_common.data_model.schema.observed_property import ObservedProperty, PropertyThreshold


def compare_numeric(value: float, *, limit: float, warning: float | None, higher_is_bad: bool) -> SafetyStatus:
    """
    Classify a number against a danger limit and a warning boundary. Both boundaries are inclusive.

    With higher_is_bad, values at or above the limit are dangerous. Otherwise values at or below the limit are.
    A warning boundary of None never triggers.
    """
    if higher_is_bad:
        if value >= limit:
            return SafetyStatus.DANGER
        if warning is not None and value >= warning:
            return SafetyStatus.WARNING
        return SafetyStatus.SAFE

    if value <= limit:
        return SafetyStatus.DANGER
    if warning is not None and value <= warning:
        return SafetyStatus.WARNING
    return SafetyStatus.SAFE


class LegacyContaminantPolicy:
    """
    Numeric-only evaluation for contaminant measurements, with the warning boundary expressed as a ratio of the
    limit.
    """

    def __init__(self, default_warning_ratio: float = config.default_warning_ratio):
        self.default_warning_ratio = default_warning_ratio

    def evaluate(self, value, contaminant: Contaminant, threshold: ContaminantThreshold | None) -> SafetyStatus:
        if threshold is None or threshold.status == ThresholdStatus.BANNED:
            return SafetyStatus.DANGER

        limit = to_float(threshold.limit_value)
        if threshold.status == ThresholdStatus.NOT_CONTROLLED or limit is None:
            return SafetyStatus.SAFE

        value = to_float(value)
        if value is None:
            return SafetyStatus.SAFE

        # A zero limit means the contaminant must be absent, which a zero reading satisfies
        if contaminant.higher_is_bad and limit == 0 and value == 0:
            return SafetyStatus.SAFE

        ratio = to_float(threshold.warning_ratio)
        if ratio is None:
            ratio = self.default_warning_ratio
        return compare_numeric(value, limit=limit, warning=limit * ratio, higher_is_bad=contaminant.higher_is_bad)


class ObservationPolicy:
    """
    Evaluation for observed properties, dispatching on the shape of the observed value.
    """

    def evaluate(
        self,
        observation: ObservationValue | None,
        observed_property: ObservedProperty,
        threshold: PropertyThreshold | None,
    ) -> SafetyStatus:
        if threshold is None or not threshold.is_active:
            return SafetyStatus.SAFE

        match observation:
            case NumericObservation(value=value):
                return self._evaluate_numeric(value, observed_property, threshold)
            case ZoneObservation(value=value):
                return self._evaluate_zone(value, threshold)
            case EndemicObservation(value=value):
                if value is not True:
                    return SafetyStatus.SAFE
                return SafetyStatus.DANGER if threshold.endemic_is_danger else SafetyStatus.WARNING
            case IncidenceObservation(value=value):
                return self._evaluate_incidence(value, threshold)
            case BinaryObservation(value=value):
                if value is True and observed_property.higher_is_bad:
                    return SafetyStatus.DANGER
                return SafetyStatus.SAFE
            case _:
                return SafetyStatus.SAFE

    @staticmethod
    def _evaluate_numeric(value, observed_property: ObservedProperty, threshold: PropertyThreshold) -> SafetyStatus:
        value = to_float(value)
        limit = to_float(threshold.limit_value)
        if value is None or limit is None:
            return SafetyStatus.SAFE
        return compare_numeric(
            value,
            limit=limit,
            warning=to_float(threshold.warning_value),
            higher_is_bad=observed_property.higher_is_bad,
        )

    @staticmethod
    def _evaluate_zone(label, threshold: PropertyThreshold) -> SafetyStatus:
        if not isinstance(label, str) or not isinstance(threshold.zone_mapping, dict):
            return SafetyStatus.SAFE
        # Unknown labels, and mappings onto something other than a status, are not escalated
        return SafetyStatus.from_str(threshold.zone_mapping.get(label)) or SafetyStatus.SAFE

    @staticmethod
    def _evaluate_incidence(rate, threshold: PropertyThreshold) -> SafetyStatus:
        rate = to_float(rate)
        if rate is None:
            return SafetyStatus.SAFE
        danger = to_float(threshold.incidence_danger_threshold)
        if danger is not None and rate >= danger:
            return SafetyStatus.DANGER
        warning = to_float(threshold.incidence_warning_threshold)
        if warning is not None and rate >= warning:
            return SafetyStatus.WARNING
        return SafetyStatus.SAFE


legacy_contaminant_policy = LegacyContaminantPolicy()
observation_policy = ObservationPolicy()


def evaluate_contaminant(value, contaminant: Contaminant, threshold: ContaminantThreshold | None) -> SafetyStatus:
    return legacy_contaminant_policy.evaluate(value, contaminant, threshold)


def evaluate_observation(
    observation: ObservationValue | None, observed_property: ObservedProperty, threshold: PropertyThreshold | None
) -> SafetyStatus:
    return observation_policy.evaluate(observation, observed_property, threshold)
