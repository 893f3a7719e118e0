"""Tiered fuzzy lookup of a free-text label against a reference table.

Each tier is a strategy returning a ``Match`` or ``None``; ``match_best`` walks
the ladder in order and stops at the first hit. A failing tier is logged and
treated as "no match", so the ladder always ends on the fixed fallback.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Mapping, Optional, Sequence, TypeVar

from rapidfuzz import fuzz, utils

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_THRESHOLD = 0.6

@dataclass(frozen=True)
class Match(Generic[T]):
    item: T
    confidence: int
    strategy: str = ""

@dataclass(frozen=True)
class MatchPreset:
    """Per-table matching settings."""
    keys: tuple
    primary_key: str
    similarity_floor: float
    fallback_confidence: int
    threshold: float = DEFAULT_THRESHOLD

INDUSTRY_PRESET = MatchPreset(
    keys=("industry_name", "description"),
    primary_key="industry_name",
    similarity_floor=0.3,
    fallback_confidence=20,
)

# Role names within one industry vary more, hence the looser floor
JOB_ROLE_PRESET = MatchPreset(
    keys=("role_name", "description", "department", "sub_department"),
    primary_key="role_name",
    similarity_floor=0.2,
    fallback_confidence=15,
)

Strategy = Callable[[str, Sequence[Any]], Optional[Match]]

def field_text(item: Any, key: str) -> str:
    value = item.get(key) if isinstance(item, Mapping) else getattr(item, key, None)
    return value if isinstance(value, str) else ""

def to_confidence(score: float) -> int:
    return max(0, min(100, math.floor(score * 100 + 0.5)))

def approximate_search(keys: Sequence[str], threshold: float = DEFAULT_THRESHOLD) -> Strategy:
    """Tier 1: weighted ratio over every key field, best field per candidate.

    WRatio mixes partial and token-sorted/token-set comparisons, so reordered or
    abbreviated labels still score. Distance is ``1 - score/100``; candidates
    further than ``threshold`` are not hits.
    """
    def search(query: str, candidates: Sequence[Any]) -> Optional[Match]:
        best_item, best_distance = None, None
        for item in candidates:
            scores = [
                fuzz.WRatio(query, text, processor=utils.default_process)
                for text in (field_text(item, key) for key in keys) if text
            ]
            if not scores:
                continue
            distance = 1 - max(scores) / 100
            if distance > threshold:
                continue
            if best_distance is None or distance < best_distance:
                best_item, best_distance = item, distance

        if best_item is None:
            return None
        return Match(best_item, to_confidence(1 - best_distance), "approximate")
    return search

def pairwise_similarity(primary_key: str, floor: float) -> Strategy:
    """Tier 2: plain string similarity on the name field only."""
    def compare(query: str, candidates: Sequence[Any]) -> Optional[Match]:
        best_item, best_rating = None, 0.0
        for item in candidates:
            text = field_text(item, primary_key).strip()
            if not text:
                continue
            rating = fuzz.ratio(query, text, processor=utils.default_process) / 100
            if rating > best_rating:
                best_item, best_rating = item, rating

        if best_item is None or best_rating <= floor:
            return None
        return Match(best_item, to_confidence(best_rating), "similarity")
    return compare

def fixed_fallback(confidence: int) -> Strategy:
    """Tier 3: the first candidate with a fixed low confidence."""
    def fallback(query: str, candidates: Sequence[Any]) -> Optional[Match]:
        return Match(candidates[0], confidence, "fallback") if candidates else None
    return fallback

def build_ladder(preset: MatchPreset) -> List[Strategy]:
    return [
        approximate_search(preset.keys, preset.threshold),
        pairwise_similarity(preset.primary_key, preset.similarity_floor),
        fixed_fallback(preset.fallback_confidence),
    ]

def match_best(
    query: Any,
    candidates: Sequence[T],
    preset: MatchPreset,
    empty_fallback: Optional[T] = None,
) -> Optional[Match[T]]:
    """Best candidate for ``query`` with a 0-100 confidence. Never raises.

    A blank query or an empty table returns the first candidate (or
    ``empty_fallback``) with confidence 0. The result is ``None`` only when the
    table is empty and no ``empty_fallback`` was given.
    """
    if not candidates:
        return Match(empty_fallback, 0, "empty") if empty_fallback is not None else None

    if not isinstance(query, str) or not query.strip():
        return Match(candidates[0], 0, "empty")

    query = query.strip()
    for strategy in build_ladder(preset):
        try:
            result = strategy(query, candidates)
        except Exception as e:
            logger.error(f"Matching strategy failed for '{query}': {e}")
            continue
        if result is not None:
            logger.debug(f"'{query}' matched by {result.strategy} at {result.confidence}%")
            return result

    # Unreachable while fixed_fallback ends the ladder
    return Match(candidates[0], preset.fallback_confidence, "fallback")
