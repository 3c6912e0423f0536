"""
Recommendation Extractor component for the Recommendation Service.

Asks the extraction model to pull explicitly endorsed products out of a thread's
comments, then parses its reply defensively. The reply is untrusted free text:
only the span between the first ``[`` and the last ``]`` is parsed, and any
failure yields an empty contribution for that thread.
"""
import json
import logging
import math
from typing import Any, List, Optional, Sequence
from urllib.parse import quote

from recommendation_service.config.settings import settings
from recommendation_service.integrations.openai_client import OpenAIChatClient
from recommendation_service.models.dtos import ExtractedRecommendation, Thread

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You extract product recommendations from Reddit comments. Return ONLY valid JSON. "
    "No markdown, no explanation, no text before or after the array."
)

DEFAULT_PROMPT_SUBJECT = 'Reddit comments about "{query}"'

EXTRACTION_PROMPT = """
You are an assistant extracting only **clearly endorsed product recommendations** from {subject}.

Only include products that the commenter explicitly recommends or praises as something they have personally used or strongly support.

Skip vague mentions, jokes, comparisons, speculation, and off-topic products. Returning an empty list is fine when no clear recommendation exists.

For each recommendation, return:
- "product": The name of the recommended product.
- "reason": A short explanation of why users recommended **that specific product**.
  - The reason MUST be specific to that product, never a generic sentence shared by several items.
  - When one comment mentions several products, create a separate entry for each, each with its own reason.
  - Include one or two direct quotes from Reddit users when possible, wrapped in curly quotes (“ and ”).
- "endorsement_score": A number from 0 to 1 for the strength of the endorsement:
  - 0.81–1.00 = Strong, repeated, enthusiastic endorsements by multiple users
  - 0.51–0.80 = Clearly recommended by at least one user
  - 0.21–0.50 = Mentioned with some endorsement but less certainty or consensus
  - 0.00–0.20 = Do not include these

Very important:
- Never reuse the same "reason" text for different products.
- Every "reason" must mention at least one concrete detail or benefit of that specific product.

Output must be valid JSON: no markdown, no intro, no trailing comments. Return only the array.

Example:
[
  {{
    "product": "Firestone Pond Liner",
    "reason": "Several users said it is durable and fish-safe; one wrote “ten years and still no leaks”.",
    "endorsement_score": 0.94
  }}
]

Comments:
{comment_block}
""".strip()

VAGUE_NAME_MAX_WORDS = 2
VAGUE_NAME_MAX_CHARS = 20
# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"


def build_comment_block(comments: Sequence[str]) -> str:
    return "\n\n".join(f"{i}. {comment}" for i, comment in enumerate(comments, start=1))


def build_extraction_prompt(query: str, comments: Sequence[str], subject_template: str = DEFAULT_PROMPT_SUBJECT) -> str:
    return EXTRACTION_PROMPT.format(
        subject=subject_template.format(query=query),
        comment_block=build_comment_block(comments),
    )


def slice_json_array(raw: str) -> str:
    """
    Return the substring from the first ``[`` to the last ``]`` of ``raw``.

    Raises:
        ValueError: If no such span exists.
    """
    start = raw.find("[")
    end = raw.rfind("]")
    if start == -1 or end < start:
        raise ValueError("no JSON array found in model output")
    return raw[start:end + 1]


def parse_recommendations(raw: str) -> List[Any]:
    """
    Parse the JSON array embedded in a model reply.

    Raises:
        ValueError: If the span is missing, is not valid JSON, or is not an array.
    """
    parsed = json.loads(slice_json_array(raw))
    if not isinstance(parsed, list):
        raise ValueError(f"expected a JSON array, got {type(parsed).__name__}")
    return parsed


def coerce_endorsement_score(value: Any) -> Optional[float]:
    """
    Normalize a model-supplied score to a float in [0, 1], or None.

    Missing, non-numeric and zero scores become None.
    """
    if isinstance(value, bool) or value is None:
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(score) or score == 0:
        return None
    return min(max(score, 0.0), 1.0) or None


def is_vague_product_name(product: str, query: str) -> bool:
    """True for short, generic names that don't already mention the query."""
    name = product.strip()
    return (
        len(name.split()) <= VAGUE_NAME_MAX_WORDS
        and len(name) <= VAGUE_NAME_MAX_CHARS
        and query.lower() not in name.lower()
    )


def marketplace_search_term(product: str, query: str, broaden_vague_names: bool) -> str:
    if broaden_vague_names and is_vague_product_name(product, query):
        return f"{product.strip()} {query}"
    return product


def build_amazon_url(search_term: str, affiliate_tag: Optional[str] = None, base_url: Optional[str] = None) -> str:
    url = f"{base_url or settings.AMAZON_SEARCH_URL}?k={quote(search_term, safe=_URI_COMPONENT_SAFE)}"
    if affiliate_tag:
        url += f"&tag={quote(affiliate_tag, safe=_URI_COMPONENT_SAFE)}"
    return url


class RecommendationExtractor:
    """
    Turns a thread's comments into ExtractedRecommendation DTOs.
    """
    def __init__(
        self,
        llm_client: OpenAIChatClient,
        prompt_subject: str = DEFAULT_PROMPT_SUBJECT,
        broaden_vague_names: bool = False,
        affiliate_tag: Optional[str] = None,
    ):
        """
        Args:
            llm_client: Chat client used to run the extraction prompt.
            prompt_subject: Format string with a ``{query}`` placeholder describing the comments.
            broaden_vague_names: Append the query to generic product names in Amazon searches.
            affiliate_tag: Optional Amazon associate tag appended to search links.
        """
        self.llm_client = llm_client
        self.prompt_subject = prompt_subject
        self.broaden_vague_names = broaden_vague_names
        self.affiliate_tag = affiliate_tag

    def build_recommendations(self, items: List[Any], query: str, thread: Thread) -> List[ExtractedRecommendation]:
        """Enrich parsed model items with the thread and Amazon links, skipping malformed items."""
        recommendations: List[ExtractedRecommendation] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            product = item.get("product")
            if not isinstance(product, str) or not product.strip():
                continue
            reason = item.get("reason")
            search_term = marketplace_search_term(product, query, self.broaden_vague_names)
            recommendations.append(
                ExtractedRecommendation(
                    product=product,
                    reason=reason if isinstance(reason, str) else "",
                    endorsement_score=coerce_endorsement_score(item.get("endorsement_score")),
                    reddit_url=thread.url,
                    amazon_url=build_amazon_url(search_term, self.affiliate_tag),
                )
            )
        return recommendations

    async def extract(self, query: str, thread: Thread, comments: Sequence[str]) -> List[ExtractedRecommendation]:
        """
        Run the extraction model over ``comments`` and return its recommendations.

        Returns an empty list when there are no comments or the reply can't be parsed.
        Errors from the model call itself propagate.
        """
        if not comments:
            return []

        prompt = build_extraction_prompt(query, comments, self.prompt_subject)
        logger.debug(f"Comment block preview (first 300 chars): {build_comment_block(comments)[:300]}")

        raw = await self.llm_client.complete(SYSTEM_PROMPT, prompt)
        logger.debug(f"Model raw output (first 300 chars): {raw[:300]}")

        try:
            items = parse_recommendations(raw)
        except ValueError as e:
            logger.error(f"JSON parse error for thread {thread.url}: {e}. Raw output: {raw}")
            return []

        recommendations = self.build_recommendations(items, query, thread)
        logger.info(f"Parsed {len(recommendations)} recommendations from {thread.url}")
        return recommendations
