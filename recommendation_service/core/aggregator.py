"""
Aggregator/Ranker component for the Recommendation Service.

Merges the per-thread recommendation lists into the final ranked result.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional

from recommendation_service.config.settings import settings
from recommendation_service.models.dtos import ExtractedRecommendation

logger = logging.getLogger(__name__)

_NON_ALNUM_RX = re.compile(r"[^a-z0-9]+")


def normalize_product_name(name: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to one space, trim."""
    return _NON_ALNUM_RX.sub(" ", name.lower()).strip()


def dedup_key(item: ExtractedRecommendation) -> str:
    parts = [normalize_product_name(item.product)]
    if item.amazon_url:
        parts.append(item.amazon_url.lower())
    return "::".join(parts)


def score_of(item: ExtractedRecommendation) -> float:
    return item.endorsement_score if item.endorsement_score is not None else 0.0


def _replaces(candidate: ExtractedRecommendation, incumbent: ExtractedRecommendation) -> bool:
    candidate_score, incumbent_score = score_of(candidate), score_of(incumbent)
    if candidate_score != incumbent_score:
        return candidate_score > incumbent_score
    return len(candidate.reason or "") > len(incumbent.reason or "")


def deduplicate(items: Iterable[ExtractedRecommendation]) -> List[ExtractedRecommendation]:
    """
    Collapse items sharing a dedup key.

    The first item seen for a key stays unless a later one scores strictly
    higher, or ties with a strictly longer reason. Survivors keep the position
    of the first item seen for their key.
    """
    winners: Dict[str, ExtractedRecommendation] = {}
    for item in items:
        key = dedup_key(item)
        incumbent = winners.get(key)
        if incumbent is None or _replaces(item, incumbent):
            winners[key] = item
    return list(winners.values())


def rank(items: Iterable[ExtractedRecommendation], max_results: Optional[int] = None) -> List[ExtractedRecommendation]:
    """
    Deduplicate, sort by endorsement score (descending, stable) and cap.
    """
    limit = max_results if max_results is not None else settings.MAX_RESULTS
    deduped = deduplicate(items)
    logger.info(f"Deduplicated recommendations: {len(deduped)}")
    ranked = sorted(deduped, key=score_of, reverse=True)
    final = ranked[:limit]
    logger.info(f"Final results after cap ({limit}): {len(final)}")
    return final
