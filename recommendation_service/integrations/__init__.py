"""Clients for the external services used by the recommendation pipeline."""

from .openai_client import OpenAIChatClient
from .reddit import AuthToken, RedditClient, RedditTokenProvider
from .serpapi import SerpAPIClient

__all__ = [
    "AuthToken",
    "OpenAIChatClient",
    "RedditClient",
    "RedditTokenProvider",
    "SerpAPIClient",
]
