from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from myh_common.config import logger
from myh_common.data_model.schema.jurisdiction import Jurisdiction

T = TypeVar('T')

# global -> country -> state/province -> sub-region, with room to spare
MAX_CHAIN_DEPTH = 8


class ThresholdTier(StrEnum):
    """Which step of the fallback chain a threshold was found at"""

    EXACT = 'exact'
    PARENT = 'parent'
    DEFAULT = 'default'


@dataclass(frozen=True)
class ResolvedThreshold(Generic[T]):
    threshold: T
    jurisdiction_code: str
    tier: ThresholdTier


def index_thresholds(
    thresholds: Iterable[T], key: Callable[[T], tuple[str, str]] | None = None
) -> dict[tuple[str, str], T]:
    """
    Build the (entity_id, jurisdiction_code) lookup table the resolver works from.

    :param thresholds: Threshold objects
    :param key: Function returning the composite key of a threshold, defaults to its `key` attribute
    """
    key = key or (lambda threshold: threshold.key)
    return {key(threshold): threshold for threshold in thresholds}


def find_default_jurisdiction_code(
    jurisdictions_by_code: Mapping[str, Jurisdiction], fallback: str | None = None
) -> str | None:
    """
    Find the jurisdiction flagged as the global default.

    Exactly one jurisdiction should carry the flag. If several do, the lowest code wins so the choice is stable from
    one call to the next. If none do, the fallback code is returned.
    """
    flagged = sorted(code for code, jurisdiction in jurisdictions_by_code.items() if jurisdiction.is_default)
    if not flagged:
        return fallback
    if len(flagged) > 1:
        logger.warning('Multiple jurisdictions flagged as default', jurisdiction_codes=flagged, selected=flagged[0])
    return flagged[0]


def jurisdiction_for_location(
    *,
    state: str | None,
    country: str | None,
    jurisdictions_by_code: Mapping[str, Jurisdiction],
    default_jurisdiction_code: str | None,
) -> str | None:
    """
    Map a location to the most specific jurisdiction we know about: "{COUNTRY}-{STATE}", then "{COUNTRY}", then the
    default jurisdiction.
    """
    country = (country or '').strip().upper()
    state = (state or '').strip().upper()
    if country and state:
        code = f'{country}-{state}'
        if code in jurisdictions_by_code:
            return code
    if country and country in jurisdictions_by_code:
        return country
    return default_jurisdiction_code


def _walk_chain(
    entity_id: str,
    jurisdiction_code: str,
    thresholds_by_key: Mapping[tuple[str, str], T],
    jurisdictions_by_code: Mapping[str, Jurisdiction],
) -> ResolvedThreshold[T] | None:
    visited = set()
    code = jurisdiction_code
    tier = ThresholdTier.EXACT
    while code is not None and len(visited) < MAX_CHAIN_DEPTH:
        if code in visited:
            logger.warning(
                'Cycle detected in jurisdiction hierarchy',
                entity_id=entity_id,
                jurisdiction_code=jurisdiction_code,
                repeated_code=code,
            )
            return None
        visited.add(code)

        threshold = thresholds_by_key.get((entity_id, code))
        if threshold is not None:
            return ResolvedThreshold(threshold=threshold, jurisdiction_code=code, tier=tier)

        jurisdiction = jurisdictions_by_code.get(code)
        if jurisdiction is None:
            if code != jurisdiction_code:
                logger.warning('Dangling jurisdiction parent reference', entity_id=entity_id, parent_code=code)
            return None
        code = jurisdiction.parent_code
        tier = ThresholdTier.PARENT

    if code is not None:
        logger.warning(
            'Jurisdiction hierarchy exceeds maximum depth',
            entity_id=entity_id,
            jurisdiction_code=jurisdiction_code,
            max_depth=MAX_CHAIN_DEPTH,
        )
    return None


def resolve_threshold_with_tier(
    entity_id: str,
    jurisdiction_code: str | None,
    thresholds_by_key: Mapping[tuple[str, str], T],
    jurisdictions_by_code: Mapping[str, Jurisdiction],
    default_jurisdiction_code: str | None = None,
) -> ResolvedThreshold[T] | None:
    """
    Find the most locally specific threshold for an entity, recording where it was found.

    Tiers are tried strictly in order: the jurisdiction itself, then each ancestor up its parent chain, then the
    default jurisdiction exactly once. Malformed hierarchies (dangling parents, cycles) end the chain walk and fall
    through to the default tier.

    :param entity_id: Contaminant or observed property id
    :param jurisdiction_code: The jurisdiction of the location being evaluated
    :param thresholds_by_key: Thresholds keyed by (entity_id, jurisdiction_code)
    :param jurisdictions_by_code: Jurisdiction table
    :param default_jurisdiction_code: The default jurisdiction code, looked up from the table if not provided
    :return: The resolved threshold, or None if no tier has one
    """
    if jurisdiction_code is not None:
        resolved = _walk_chain(entity_id, jurisdiction_code, thresholds_by_key, jurisdictions_by_code)
        if resolved is not None:
            logger.debug(
                'Resolved threshold',
                entity_id=entity_id,
                jurisdiction_code=jurisdiction_code,
                resolved_code=resolved.jurisdiction_code,
                tier=resolved.tier,
            )
            return resolved

    if default_jurisdiction_code is None:
        default_jurisdiction_code = find_default_jurisdiction_code(jurisdictions_by_code)
    if default_jurisdiction_code is None:
        return None

    threshold = thresholds_by_key.get((entity_id, default_jurisdiction_code))
    if threshold is None:
        logger.debug('No threshold found', entity_id=entity_id, jurisdiction_code=jurisdiction_code)
        return None
    logger.debug(
        'Resolved threshold',
        entity_id=entity_id,
        jurisdiction_code=jurisdiction_code,
        resolved_code=default_jurisdiction_code,
        tier=ThresholdTier.DEFAULT,
    )
    return ResolvedThreshold(
        threshold=threshold, jurisdiction_code=default_jurisdiction_code, tier=ThresholdTier.DEFAULT
    )


def resolve_threshold(
    entity_id: str,
    jurisdiction_code: str | None,
    thresholds_by_key: Mapping[tuple[str, str], T],
    jurisdictions_by_code: Mapping[str, Jurisdiction],
    default_jurisdiction_code: str | None = None,
) -> T | None:
    """
    Find the most locally specific threshold for an entity. See resolve_threshold_with_tier.

    A None result means the entity cannot be evaluated for this jurisdiction, it is not an error.
    """
    resolved = resolve_threshold_with_tier(
        entity_id, jurisdiction_code, thresholds_by_key, jurisdictions_by_code, default_jurisdiction_code
    )
    return resolved.threshold if resolved is not None else None


class ThresholdResolver(Generic[T]):
    """
    Threshold lookup bound to one fully materialized set of thresholds and jurisdictions.

    The tables are only read, never modified, so a single resolver can serve any number of lookups.
    """

    def __init__(
        self,
        thresholds_by_key: Mapping[tuple[str, str], T],
        jurisdictions_by_code: Mapping[str, Jurisdiction],
        default_jurisdiction_code: str | None = None,
    ):
        self.thresholds_by_key = thresholds_by_key
        self.jurisdictions_by_code = jurisdictions_by_code
        self.default_jurisdiction_code = find_default_jurisdiction_code(
            jurisdictions_by_code, fallback=default_jurisdiction_code
        )

    def resolve(self, entity_id: str, jurisdiction_code: str | None) -> T | None:
        return resolve_threshold(
            entity_id,
            jurisdiction_code,
            self.thresholds_by_key,
            self.jurisdictions_by_code,
            self.default_jurisdiction_code,
        )

    def resolve_with_tier(self, entity_id: str, jurisdiction_code: str | None) -> ResolvedThreshold[T] | None:
        return resolve_threshold_with_tier(
            entity_id,
            jurisdiction_code,
            self.thresholds_by_key,
            self.jurisdictions_by_code,
            self.default_jurisdiction_code,
        )

    def default_threshold(self, entity_id: str) -> T | None:
        """The default jurisdiction's threshold, shown alongside the local one for comparison"""
        if self.default_jurisdiction_code is None:
            return None
        return self.thresholds_by_key.get((entity_id, self.default_jurisdiction_code))
