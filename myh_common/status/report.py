"""
Location safety reports: the caller side of the status engine, attaching derived statuses to fetched records.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

from myh_common.data_model.schema import (
    Contaminant,
    LocationMeasurement,
    LocationObservation,
    ObservedProperty,
)
from myh_common.data_model.schema.common import SafetyStatus
from myh_common.status.catalog import SafetyCatalog
from myh_common.status.evaluator import evaluate_contaminant, evaluate_observation
from myh_common.status.severity import trend_direction, worse_status, worst_status


def _timestamp(record) -> float:
    moment = getattr(record, 'measured_at', None) or getattr(record, 'observed_at', None)
    return moment.timestamp() if moment is not None else float('-inf')


def _group_by(records: Iterable, attribute: str) -> dict[str, list]:
    grouped = defaultdict(list)
    for record in records:
        grouped[getattr(record, attribute)].append(record)
    for group in grouped.values():
        group.sort(key=_timestamp)
    return grouped


def threshold_fields(resolved, default_threshold) -> dict[str, Any]:
    return {
        'threshold': resolved.threshold.to_dict() if resolved is not None else None,
        'thresholdTier': resolved.tier if resolved is not None else None,
        'thresholdJurisdictionCode': resolved.jurisdiction_code if resolved is not None else None,
        'whoThreshold': default_threshold.to_dict() if default_threshold is not None else None,
    }


def _contaminant(contaminant_id: str, catalog: SafetyCatalog) -> Contaminant:
    return catalog.contaminants_by_id.get(contaminant_id) or Contaminant(id=contaminant_id)


def evaluate_measurements(
    measurements: Iterable[LocationMeasurement], jurisdiction_code: str | None, catalog: SafetyCatalog
) -> list[dict[str, Any]]:
    """
    Evaluate the latest measurement of each contaminant, with its history and trend.

    :param measurements: Every measurement at one location, in any order
    :param jurisdiction_code: The location's jurisdiction
    :param catalog: Reference tables to evaluate against
    :return: One entry per contaminant, sorted by contaminant id
    """
    resolver = catalog.contaminant_resolver
    results = []
    for contaminant_id, history in sorted(_group_by(measurements, 'contaminant_id').items()):
        contaminant = _contaminant(contaminant_id, catalog)
        resolved = resolver.resolve_with_tier(contaminant_id, jurisdiction_code)
        threshold = resolved.threshold if resolved is not None else None
        latest = history[-1]
        results.append(
            {
                **latest.to_dict(),
                'name': contaminant.name,
                'category': contaminant.category,
                'unit': contaminant.unit,
                'higherIsBad': contaminant.higher_is_bad,
                'status': evaluate_contaminant(latest.value, contaminant, threshold),
                **threshold_fields(resolved, resolver.default_threshold(contaminant_id)),
                'trend': trend_direction(latest.value, history[:-1], contaminant.higher_is_bad),
                'history': [
                    {
                        'value': measurement.value,
                        'measuredAt': measurement.measured_at,
                        'status': evaluate_contaminant(measurement.value, contaminant, threshold),
                    }
                    for measurement in history[:-1]
                ],
            }
        )
    return results


def evaluate_observations(
    observations: Iterable[LocationObservation], jurisdiction_code: str | None, catalog: SafetyCatalog
) -> list[dict[str, Any]]:
    """
    Evaluate the latest observation of each observed property.

    Observations of properties missing from the catalog are evaluated as numeric, higher-is-bad properties.
    """
    resolver = catalog.property_resolver
    results = []
    for property_id, history in sorted(_group_by(observations, 'property_id').items()):
        observed_property = catalog.observed_properties_by_id.get(property_id) or ObservedProperty(id=property_id)
        resolved = resolver.resolve_with_tier(property_id, jurisdiction_code)
        latest = history[-1]
        results.append(
            {
                **latest.to_dict(),
                'name': observed_property.name,
                'category': observed_property.category,
                'unit': observed_property.unit,
                'observationType': observed_property.observation_type,
                'higherIsBad': observed_property.higher_is_bad,
                'status': evaluate_observation(
                    latest.value_for(observed_property.observation_type),
                    observed_property,
                    resolved.threshold if resolved is not None else None,
                ),
                **threshold_fields(resolved, resolver.default_threshold(property_id)),
            }
        )
    return results


def worst_status_by_category(
    evaluated: Iterable[Mapping[str, Any]], entities_by_id: Mapping[str, Contaminant | ObservedProperty]
) -> dict[str, SafetyStatus]:
    """
    Reduce evaluated entries to the most severe status per entity category.

    Entries for entities missing from entities_by_id are grouped under their own 'category' field, if any.
    """
    statuses = defaultdict(list)
    for entry in evaluated:
        entity = entities_by_id.get(entry.get('contaminantId') or entry.get('propertyId'))
        category = entity.category if entity is not None else entry.get('category')
        if category:
            statuses[category].append(entry['status'])
    return {category: worst_status(category_statuses) for category, category_statuses in sorted(statuses.items())}


def aggregate_measurements(
    measurement_sets: Iterable[Iterable[LocationMeasurement]], catalog: SafetyCatalog, jurisdiction_code: str | None
) -> list[dict[str, Any]]:
    """
    Combine the measurements of several postal codes (e.g. every postal code of one city) into a single report.

    For each contaminant, the worst value across the locations is kept, higher or lower depending on the
    contaminant's polarity, along with the worst status seen.

    :param measurement_sets: One collection of measurements per location
    :param catalog: Reference tables to evaluate against
    :param jurisdiction_code: The jurisdiction all the locations are evaluated in
    :return: One entry per contaminant, sorted by contaminant id
    """
    combined = {}
    for measurements in measurement_sets:
        for entry in evaluate_measurements(measurements, jurisdiction_code, catalog):
            existing = combined.get(entry['contaminantId'])
            if existing is None:
                combined[entry['contaminantId']] = {**entry, 'postalCodes': [entry['postalCode']]}
                continue

            status = worse_status(existing['status'], entry['status'])
            postal_codes = [*existing['postalCodes'], entry['postalCode']]
            if _is_worse_value(entry['value'], existing['value'], higher_is_bad=entry['higherIsBad']):
                existing = {**entry}
            existing.update(status=status, postalCodes=postal_codes)
            combined[entry['contaminantId']] = existing

    results = []
    for _, entry in sorted(combined.items()):
        # Per-location fields don't carry over to the combined entry
        for key in ('postalCode', 'history', 'trend'):
            entry.pop(key, None)
        results.append(entry)
    return results


def _is_worse_value(candidate: float | None, current: float | None, *, higher_is_bad: bool) -> bool:
    if candidate is None:
        return False
    if current is None:
        return True
    return candidate > current if higher_is_bad else candidate < current
