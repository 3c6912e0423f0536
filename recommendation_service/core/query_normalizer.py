"""
Query Normalizer component for the Recommendation Service.

Turns raw user input into the canonical query string used for searching and as
the cache key. Amazon product links are reduced to a readable product title.
"""
import logging
import re
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from recommendation_service.exceptions import InvalidQueryError

logger = logging.getLogger(__name__)

MARKETPLACE_HOST_MARKER = "amazon."
PRODUCT_DETAIL_SEGMENT = "dp"
_SEPARATOR_RX = re.compile(r"[-_]")
_KEYWORD_NOISE_RX = re.compile(r"[%+]")


def extract_title_from_marketplace_url(url: str) -> Optional[str]:
    """
    Recover a human-readable product title from an Amazon URL.

    The title slug normally sits right before the ``dp`` segment
    (``/pond-liner-4545/dp/B00XYZ``). Short links that put the slug right after
    ``dp`` are accepted too, provided the segment looks like a slug rather than
    an ASIN. Failing both, the ``keywords`` query parameter is used.

    Returns:
        The recovered title, or None if the input is not an Amazon URL or no
        title could be found.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None

    host = (parsed.hostname or "").lower()
    if MARKETPLACE_HOST_MARKER not in host:
        return None

    segments = parsed.path.split("/")
    title = ""
    lowered = [segment.lower() for segment in segments]
    if PRODUCT_DETAIL_SEGMENT in lowered:
        marker_index = lowered.index(PRODUCT_DETAIL_SEGMENT)
        if marker_index - 1 >= 0:
            title = _SEPARATOR_RX.sub(" ", segments[marker_index - 1])
        if not title.strip() and marker_index + 1 < len(segments):
            following = segments[marker_index + 1]
            if _SEPARATOR_RX.search(following):
                title = _SEPARATOR_RX.sub(" ", following)

    if title.strip():
        return title

    keywords = parse_qs(parsed.query).get("keywords")
    if keywords:
        cleaned = _KEYWORD_NOISE_RX.sub(" ", keywords[0])
        if cleaned.strip():
            return cleaned
    return None


def normalize_query(raw: Any) -> str:
    """
    Canonicalize a raw query: recover Amazon titles, then trim and lowercase.

    Args:
        raw: The ``query`` value from the request body.

    Returns:
        The normalized query string.

    Raises:
        InvalidQueryError: If ``raw`` is not a string or normalizes to an empty string.
    """
    if not isinstance(raw, str):
        logger.error(f"Invalid query type received: {type(raw).__name__}")
        raise InvalidQueryError("Invalid query format")

    candidate = raw.strip()
    extracted = extract_title_from_marketplace_url(candidate)
    if extracted:
        logger.info(f"Extracted keywords from Amazon link: {extracted}")
        candidate = extracted

    query = candidate.strip().lower()
    if not query:
        raise InvalidQueryError("Missing query")
    return query
