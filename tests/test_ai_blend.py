"""
LLM second opinion: prompt content, number extraction, fallbacks and blending.
"""

from datetime import timedelta

import pytest

from avm.core.errors import EstimateParseError, UpstreamError
from avm.core.utils import round_half_up
from avm.data.base import ComparableListing
from avm.models.mock_model import MockModel
from avm.models.openai_model import OpenAIChatModel
from avm.schemas import MarketTrends
from avm.services.ai_blend import NO_ESTIMATE, ai_estimate, blend, build_valuation_prompt, parse_estimate

from conftest import BASE_TIME, FakeModel


@pytest.mark.parametrize("reply,expected", [
    ("1500000", 1_500_000),
    ("1,500,000", 1_500_000),
    ("Estimated value: 2,350,000 AED", 2_350_000),
    ("1,200,000.75", 1_200_000),
    ("  980000\n", 980_000),
    ("Estimate, 1,000,000", 1_000_000),
    ("AED: 2,400,000,", 2_400_000),
])
def test_parse_estimate(reply, expected):
    assert parse_estimate(reply) == expected


@pytest.mark.parametrize("reply", ["", "I cannot estimate this property.", ", ,"])
def test_parse_estimate_without_number(reply):
    with pytest.raises(EstimateParseError):
        parse_estimate(reply)


def test_blend_weights_statistics_seventy_percent():
    assert blend(1_000_000, 2_000_000) == 1_300_000
    assert blend(1_234_567, 987_654) == round_half_up(1_234_567 * 0.7 + 987_654 * 0.3)


@pytest.mark.parametrize("sentinel", [0, -5])
def test_blend_keeps_statistics_without_ai(sentinel):
    assert blend(1_000_000, sentinel) == 1_000_000


def test_blend_with_no_comparables_still_uses_ai_share():
    assert blend(0, 1_000_000) == 300_000


@pytest.mark.asyncio
async def test_ai_estimate_parses_reply():
    model = FakeModel(reply="1,750,000")
    assert await ai_estimate(model, "prompt") == 1_750_000
    assert model.prompts == ["prompt"]


@pytest.mark.asyncio
async def test_ai_estimate_skips_punctuation_before_the_number():
    assert await ai_estimate(FakeModel(reply="Estimate, 1,000,000"), "prompt") == 1_000_000


@pytest.mark.asyncio
async def test_ai_estimate_upstream_failure_returns_sentinel():
    model = FakeModel(error=UpstreamError("deepseek", "HTTP 503", 503))
    assert await ai_estimate(model, "prompt") == NO_ESTIMATE


@pytest.mark.asyncio
async def test_ai_estimate_unparseable_reply_returns_sentinel():
    assert await ai_estimate(FakeModel(reply="It depends."), "prompt") == NO_ESTIMATE


@pytest.mark.asyncio
async def test_missing_api_key_is_an_upstream_error():
    model = OpenAIChatModel(api_key=None, model="deepseek-chat", base_url="https://api.deepseek.com/v1")
    with pytest.raises(UpstreamError):
        await model.complete("prompt")
    assert await ai_estimate(model, "prompt") == NO_ESTIMATE


@pytest.mark.asyncio
async def test_mock_model_reply_is_deterministic_and_numeric():
    first = await MockModel().complete("same prompt")
    assert first == await MockModel().complete("same prompt")
    assert 350_000 <= parse_estimate(first) <= 2_200_000


def test_prompt_carries_target_comparables_and_trends(target):
    comps = [ComparableListing(id="C1", price=1_200_000, area_sqft=1000, bedrooms=2,
                               location_area="Marina", created_at=BASE_TIME - timedelta(days=1))]
    trends = MarketTrends(average_price_per_sqft=1150, median_price=1_100_000,
                          price_trend="increasing", market_activity="high")
    prompt = build_valuation_prompt(target, comps, trends, "AED")
    assert "Type: Apartment" in prompt
    assert "Area/community: Marina" in prompt
    assert "Purpose: Sale" in prompt
    assert "Price: 1200000 AED, Area: 1000 sq.ft, Bedrooms: 2, Price per sq.ft: 1200 AED" in prompt
    assert "Price trend: increasing" in prompt
    assert "Market activity: high" in prompt
    assert "ONLY a number" in prompt
