"""
Market trend snapshot: averages, the n // 2 median, trend windows, activity.
"""

from datetime import timedelta

import pytest

from avm.data.base import ComparableListing
from avm.data.listings_client import MockListings
from avm.services.market_trends import (
    market_activity,
    summarize_listings,
    summarize_market,
    upper_median,
)

from conftest import BASE_TIME, BrokenStore, listing_row


def _listings(prices, area=1000):
    """Newest first, in the order given."""
    return [
        ComparableListing(id=f"T{i}", price=p, area_sqft=area, bedrooms=2,
                          location_area="Marina", created_at=BASE_TIME - timedelta(days=i))
        for i, p in enumerate(prices)
    ]


def test_median_takes_upper_middle_for_even_counts():
    # [100, 200, 300, 400] -> index 2 -> 300, not 250
    assert upper_median([400, 100, 300, 200]) == 300
    assert summarize_listings(_listings([400, 100, 300, 200])).median_price == 300


def test_median_odd_count():
    assert upper_median([5, 1, 3]) == 3


def test_average_price_per_sqft_is_unweighted_mean():
    listings = _listings([1_000_000, 2_000_000]) + [
        ComparableListing(id="X", price=900_000, area_sqft=500, bedrooms=1,
                          location_area="Marina", created_at=BASE_TIME)
    ]
    # (1000 + 2000 + 1800) / 3 = 1600
    assert summarize_listings(listings).average_price_per_sqft == 1600


def test_empty_is_neutral():
    snap = summarize_listings([])
    assert snap.model_dump() == {
        "average_price_per_sqft": 0,
        "median_price": 0,
        "price_trend": "stable",
        "market_activity": "moderate",
    }


def test_trend_compares_newest_and_oldest_ten():
    rising = _listings([120] * 10 + [100] * 10)
    falling = _listings([90] * 10 + [100] * 10)
    flat = _listings([104] * 10 + [100] * 10)
    assert summarize_listings(rising).price_trend == "increasing"
    assert summarize_listings(falling).price_trend == "decreasing"
    assert summarize_listings(flat).price_trend == "stable"


def test_small_samples_use_overlapping_windows():
    # With five rows both windows are the same five rows, so a visible rise
    # in the newest listings still reads as stable.
    snap = summarize_listings(_listings([200, 200, 200, 100, 100]))
    assert snap.price_trend == "stable"


def test_partial_overlap_dampens_trend():
    # 12 rows: windows share rows 2..9, recent mean 110 vs older mean 100 -> increasing
    prices = [150, 150] + [100] * 10
    assert summarize_listings(_listings(prices)).price_trend == "increasing"


@pytest.mark.parametrize("count,expected", [(0, "low"), (15, "low"), (16, "moderate"), (30, "moderate"), (31, "high")])
def test_activity_thresholds(count, expected):
    assert market_activity(count) == expected


@pytest.mark.asyncio
async def test_summarize_market_reads_fifty_newest_with_area():
    rows = [listing_row(i) for i in range(60)]
    rows.append(listing_row(99, area=0))
    snap = await summarize_market(MockListings(rows=rows), "Marina", "Apartment", "for-sale")
    assert snap.market_activity == "high"
    assert snap.average_price_per_sqft == 1000
    assert snap.median_price == 1_000_000


@pytest.mark.asyncio
async def test_summarize_market_store_failure_is_neutral():
    snap = await summarize_market(BrokenStore(), "Marina", "Apartment", "for-sale")
    assert snap.price_trend == "stable"
    assert snap.market_activity == "moderate"
    assert snap.median_price == 0


@pytest.mark.asyncio
async def test_summarize_market_no_rows_is_neutral():
    snap = await summarize_market(MockListings(rows=[]), "Nowhere", "Apartment", "for-sale")
    assert snap.market_activity == "moderate"
    assert snap.average_price_per_sqft == 0
