import json
from unittest.mock import AsyncMock

import pytest

from recommendation_service.core.recommendation_extractor import (
    SYSTEM_PROMPT,
    RecommendationExtractor,
    build_amazon_url,
    build_comment_block,
    build_extraction_prompt,
    coerce_endorsement_score,
    marketplace_search_term,
    parse_recommendations,
    slice_json_array,
)


@pytest.fixture
def llm_client():
    client = AsyncMock()
    client.complete.return_value = "[]"
    return client


def test_comment_block_is_numbered():
    assert build_comment_block(["first comment", "second comment"]) == "1. first comment\n\n2. second comment"


def test_prompt_names_query_and_embeds_comments():
    prompt = build_extraction_prompt("pond liner", ["Use EPDM, it lasts forever."])
    assert 'Reddit comments about "pond liner"' in prompt
    assert "1. Use EPDM, it lasts forever." in prompt
    assert "0.81–1.00" in prompt


def test_prompt_subject_is_configurable():
    prompt = build_extraction_prompt("my dad", ["x" * 30], 'Reddit comments about Christmas gift ideas for "{query}"')
    assert 'Christmas gift ideas for "my dad"' in prompt


def test_slice_json_array_strips_surrounding_prose():
    raw = 'Sure! Here you go:\n```json\n[{"product": "A"}]\n```'
    assert slice_json_array(raw) == '[{"product": "A"}]'


@pytest.mark.parametrize("raw", ["no array here", "] backwards [", "[{broken json}]", '{"product": "A"}'])
def test_parse_recommendations_rejects_bad_output(raw):
    with pytest.raises(ValueError):
        parse_recommendations(raw)


@pytest.mark.parametrize(
    "value, expected",
    [(0.94, 0.94), ("0.6", 0.6), (1.7, 1.0), (-0.2, None), (0, None), (None, None), ("high", None), (True, None)],
)
def test_coerce_endorsement_score(value, expected):
    assert coerce_endorsement_score(value) == expected


def test_vague_product_name_is_broadened_with_query():
    assert marketplace_search_term("liner", "pond", broaden_vague_names=True) == "liner pond"


def test_specific_product_name_is_used_as_is():
    name = "Firestone FPL-4545 Pond Liner"
    assert marketplace_search_term(name, "pond", broaden_vague_names=True) == name


def test_short_name_already_containing_query_is_not_broadened():
    assert marketplace_search_term("Pond Armor", "pond", broaden_vague_names=True) == "Pond Armor"


def test_broadening_disabled_keeps_name():
    assert marketplace_search_term("liner", "pond", broaden_vague_names=False) == "liner"


def test_amazon_url_encodes_search_term_and_tag():
    url = build_amazon_url("Liner & Pump 10'", affiliate_tag="shop-20", base_url="https://www.amazon.com/s")
    assert url == "https://www.amazon.com/s?k=Liner%20%26%20Pump%2010'&tag=shop-20"


def test_amazon_url_without_tag():
    assert build_amazon_url("liner pond", base_url="https://www.amazon.com/s") == "https://www.amazon.com/s?k=liner%20pond"


@pytest.mark.asyncio
async def test_extract_enriches_parsed_items(llm_client, pond_thread):
    llm_client.complete.return_value = "Here:\n" + json.dumps([
        {"product": "liner", "reason": "Cheap and thick.", "endorsement_score": 0.7},
        {"product": "Firestone Pond Liner", "reason": "“Lasted ten years”", "endorsement_score": 0.95},
    ])
    extractor = RecommendationExtractor(llm_client, broaden_vague_names=True)

    results = await extractor.extract("pond", pond_thread, ["A comment long enough to count."])

    assert [r.product for r in results] == ["liner", "Firestone Pond Liner"]
    assert all(r.reddit_url == pond_thread.url for r in results)
    assert results[0].amazon_url.endswith("?k=liner%20pond")
    assert results[1].amazon_url.endswith("?k=Firestone%20Pond%20Liner")
    assert results[1].endorsement_score == 0.95

    system_prompt, user_prompt = llm_client.complete.call_args.args
    assert system_prompt == SYSTEM_PROMPT
    assert "1. A comment long enough to count." in user_prompt


@pytest.mark.asyncio
async def test_extract_returns_empty_on_malformed_json(llm_client, pond_thread):
    llm_client.complete.return_value = "[{'product': 'not json'}"
    extractor = RecommendationExtractor(llm_client)

    assert await extractor.extract("pond", pond_thread, ["A comment long enough to count."]) == []


@pytest.mark.asyncio
async def test_extract_skips_malformed_items(llm_client, pond_thread):
    llm_client.complete.return_value = json.dumps(["just a string", {"reason": "no product"}, {"product": "Pump"}])
    extractor = RecommendationExtractor(llm_client)

    results = await extractor.extract("pond", pond_thread, ["A comment long enough to count."])

    assert len(results) == 1
    assert results[0].product == "Pump"
    assert results[0].reason == ""
    assert results[0].endorsement_score is None


@pytest.mark.asyncio
async def test_extract_without_comments_skips_model_call(llm_client, pond_thread):
    extractor = RecommendationExtractor(llm_client)

    assert await extractor.extract("pond", pond_thread, []) == []
    llm_client.complete.assert_not_called()


def test_payload_uses_public_key_names(recommendation_factory):
    payload = recommendation_factory("Pump", score=0.5, amazon_url="https://www.amazon.com/s?k=Pump").to_payload()
    assert set(payload) == {"product", "reason", "endorsement_score", "redditUrl", "amazonUrl"}
