"""
Comment Retrieval component for the Recommendation Service.

Fetches the top-level comments of a Reddit thread and keeps the ones long
enough to carry a real recommendation.
"""
import logging
import re
from typing import Any, List, Optional

from recommendation_service.config.settings import settings
from recommendation_service.integrations.reddit import RedditClient
from recommendation_service.models.dtos import Thread

logger = logging.getLogger(__name__)

POST_ID_RX = re.compile(r"comments/(\w+)")


def extract_post_id(url: str) -> Optional[str]:
    """Return the Reddit post id from a thread URL, or None."""
    match = POST_ID_RX.search(url)
    return match.group(1) if match else None


def extract_comment_bodies(payload: Any, min_length: int, max_comments: int) -> List[str]:
    """
    Pull comment bodies out of a thread listing pair.

    The second listing holds the comments; bodies of ``min_length`` characters
    or fewer are dropped and at most ``max_comments`` are returned, in listing
    order.
    """
    if not isinstance(payload, list) or len(payload) < 2:
        return []
    listing = payload[1] if isinstance(payload[1], dict) else {}
    children = (listing.get("data") or {}).get("children") or []

    bodies: List[str] = []
    for child in children:
        if not isinstance(child, dict):
            continue
        body = (child.get("data") or {}).get("body")
        if isinstance(body, str) and len(body) > min_length:
            bodies.append(body)
            if len(bodies) >= max_comments:
                break
    return bodies


class CommentRetriever:
    """
    Retrieves filtered comment bodies for a thread.
    """
    def __init__(
        self,
        reddit_client: RedditClient,
        min_length: Optional[int] = None,
        max_comments: Optional[int] = None,
    ):
        self.reddit_client = reddit_client
        self.min_length = min_length if min_length is not None else settings.MIN_COMMENT_LENGTH
        self.max_comments = max_comments if max_comments is not None else settings.MAX_COMMENTS_PER_THREAD

    async def retrieve(self, thread: Thread) -> List[str]:
        """
        Return the usable comments of ``thread``.

        A URL without a post id yields an empty list. Reddit errors propagate
        as ``RedditAPIError`` for the caller to absorb.
        """
        post_id = extract_post_id(thread.url)
        logger.debug(f"Extracted postId: {post_id} from {thread.url}")
        if not post_id:
            logger.warning(f"Skipping thread without a post id: {thread.url}")
            return []

        payload = await self.reddit_client.fetch_thread(post_id)
        comments = extract_comment_bodies(payload, self.min_length, self.max_comments)
        logger.info(f"Thread {post_id}: {len(comments)} usable comments")
        return comments
