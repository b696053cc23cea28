"""Recent-market snapshot for a location, property type and purpose."""

import logging

import numpy as np

from ..core.errors import UpstreamError
from ..core.utils import round_half_up
from ..data.base import ComparableListing, ListingQuery, ListingsStore
from ..schemas import MarketTrends

logger = logging.getLogger(__name__)

TREND_SAMPLE = 50
TREND_WINDOW = 10


def upper_median(prices: list[float]) -> float:
    """
    Element at index n // 2 of the ascending prices. For even n this is the
    upper of the two middle values, not their mean; stored analytics were
    produced this way, so keep it.
    """
    ordered = sorted(prices)
    return ordered[len(ordered) // 2]


def price_trend(listings: list[ComparableListing]) -> str:
    """
    Mean price of the newest ten rows against the oldest ten. With fewer
    than twenty rows the two windows overlap.
    """
    window = min(TREND_WINDOW, len(listings))
    recent = np.mean([c.price for c in listings[:window]])
    older = np.mean([c.price for c in listings[-window:]])
    if recent > older * 1.05:
        return "increasing"
    if recent < older * 0.95:
        return "decreasing"
    return "stable"


def market_activity(count: int) -> str:
    if count > 30:
        return "high"
    if count > 15:
        return "moderate"
    return "low"


def summarize_listings(listings: list[ComparableListing]) -> MarketTrends:
    """Snapshot from listings ordered newest first."""
    if not listings:
        return MarketTrends()
    per_sqft = [c.price / c.area_sqft for c in listings if c.area_sqft > 0]
    return MarketTrends(
        average_price_per_sqft=round_half_up(float(np.mean(per_sqft))) if per_sqft else 0,
        median_price=round_half_up(upper_median([c.price for c in listings])),
        price_trend=price_trend(listings),
        market_activity=market_activity(len(listings)),
    )


async def summarize_market(
    store: ListingsStore, location_area: str, property_type: str, purpose: str
) -> MarketTrends:
    query = ListingQuery(
        purpose=purpose,
        property_type=property_type,
        location_area=location_area,
        positive_area=True,
        limit=TREND_SAMPLE,
    )
    try:
        listings = await store.search(query)
    except UpstreamError as exc:
        logger.error("Market trend lookup failed: %s", exc)
        return MarketTrends()
    return summarize_listings(listings)
