import logging
import re

from ..core.errors import EstimateParseError, UpstreamError
from ..core.metrics import AI_FALLBACKS
from ..core.utils import round_half_up
from ..data.base import ComparableListing
from ..models.base import CompletionModel
from ..schemas import MarketTrends, PropertyDetails

logger = logging.getLogger(__name__)

STATISTICAL_WEIGHT = 0.7
AI_WEIGHT = 0.3
NO_ESTIMATE = 0

_NUMBER = re.compile(r"\d[\d,]*")

def build_valuation_prompt(
    target: PropertyDetails,
    comparables: list[ComparableListing],
    trends: MarketTrends,
    currency: str = "AED",
) -> str:
    purpose = "Sale" if target.purpose == "for-sale" else "Rent"
    lines = [
        "You are a Dubai real estate valuation expert. Analyse the data below and give a precise value estimate.",
        "",
        "PROPERTY TO VALUE:",
        f"- Type: {target.property_type}",
        f"- Bedrooms: {target.bedrooms}",
        f"- Bathrooms: {target.bathrooms:g}",
        f"- Area: {target.area_sqft:g} sq.ft",
        f"- Area/community: {target.location_area}",
        f"- Purpose: {purpose}",
        f"- Completion status: {target.completion_status or 'Unknown'}",
        f"- Amenities: {len(target.amenities or [])} items",
        "",
        "COMPARABLE PROPERTIES:",
    ]
    for i, comp in enumerate(comparables, start=1):
        ppsf = round_half_up(comp.price / comp.area_sqft) if comp.area_sqft > 0 else 0
        lines.append(
            f"{i}. Price: {comp.price:.0f} {currency}, Area: {comp.area_sqft:g} sq.ft, "
            f"Bedrooms: {comp.bedrooms}, Price per sq.ft: {ppsf} {currency}"
        )
    if not comparables:
        lines.append("None found.")
    lines += [
        "",
        "MARKET TRENDS:",
        f"- Average price per sq.ft: {trends.average_price_per_sqft} {currency}",
        f"- Median price: {trends.median_price} {currency}",
        f"- Price trend: {trends.price_trend}",
        f"- Market activity: {trends.market_activity}",
        "",
        "INSTRUCTIONS:",
        "1. Analyse the comparable properties",
        "2. Take the market trends into account",
        "3. Adjust for location, size and property type",
        f"4. Reply with ONLY a number: the estimated value in {currency}, with no text or explanation",
        "",
        "Estimated value:",
    ]
    return "\n".join(lines)

def parse_estimate(text: str) -> int:
    """First number in the reply (digits with thousands commas), separators dropped."""
    match = _NUMBER.search(text or "")
    digits = match.group(0).replace(",", "") if match else ""
    if not digits:
        raise EstimateParseError(f"no number in model reply: {text!r}")
    return int(digits)

async def ai_estimate(model: CompletionModel, prompt: str) -> int:
    """
    Second-opinion estimate, or NO_ESTIMATE when the model is unavailable or
    answers with something that is not a number.
    """
    try:
        reply = await model.complete(prompt)
        estimate = parse_estimate(reply)
    except UpstreamError as exc:
        logger.warning("AI valuation unavailable, using statistics only: %s", exc)
        AI_FALLBACKS.labels(reason="upstream").inc()
        return NO_ESTIMATE
    except EstimateParseError as exc:
        logger.warning("Could not parse AI estimate: %s", exc)
        AI_FALLBACKS.labels(reason="parse").inc()
        return NO_ESTIMATE
    logger.info("AI estimate: %d", estimate)
    return estimate

def blend(statistical: int, ai: int) -> int:
    if ai > 0:
        return round_half_up(statistical * STATISTICAL_WEIGHT + ai * AI_WEIGHT)
    return statistical
