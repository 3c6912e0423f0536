"""
Thin async wrapper around the OpenAI chat completions API.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI

from recommendation_service.config.settings import settings

logger = logging.getLogger(__name__)


class OpenAIChatClient:
    """
    Sends a system + user message pair and returns the reply text.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model or settings.OPENAI_MODEL
        self.temperature = temperature if temperature is not None else settings.OPENAI_TEMPERATURE
        self.client = client or AsyncOpenAI(
            api_key=api_key or settings.OPENAI_API_KEY,
            timeout=timeout or settings.OPENAI_TIMEOUT_SECONDS,
        )

    async def close(self) -> None:
        await self.client.close()

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """
        Run one chat completion.

        Returns:
            The stripped reply text, or ``"[]"`` when the model returned no content.
        """
        completion = await self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        if not completion.choices:
            return "[]"
        content = completion.choices[0].message.content
        return (content or "").strip() or "[]"
