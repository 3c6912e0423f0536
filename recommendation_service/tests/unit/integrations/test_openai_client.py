from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from recommendation_service.integrations.openai_client import OpenAIChatClient


def completion_with(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_complete_sends_system_and_user_messages(openai_client):
    openai_client.chat.completions.create.return_value = completion_with('  [{"product": "Pump"}]\n')
    chat = OpenAIChatClient(model="gpt-3.5-turbo", temperature=0.7, client=openai_client)

    reply = await chat.complete("system text", "user text")

    assert reply == '[{"product": "Pump"}]'
    openai_client.chat.completions.create.assert_awaited_once_with(
        model="gpt-3.5-turbo",
        temperature=0.7,
        messages=[
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ],
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("completion", [completion_with(None), completion_with("   "), SimpleNamespace(choices=[])])
async def test_empty_reply_becomes_empty_array(openai_client, completion):
    openai_client.chat.completions.create.return_value = completion
    chat = OpenAIChatClient(client=openai_client)

    assert await chat.complete("system", "user") == "[]"


@pytest.mark.asyncio
async def test_api_errors_propagate(openai_client):
    openai_client.chat.completions.create.side_effect = RuntimeError("rate limited")
    chat = OpenAIChatClient(client=openai_client)

    with pytest.raises(RuntimeError):
        await chat.complete("system", "user")


@pytest.mark.asyncio
async def test_close_closes_underlying_client(openai_client):
    await OpenAIChatClient(client=openai_client).close()
    openai_client.close.assert_awaited_once()
