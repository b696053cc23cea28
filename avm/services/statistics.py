"""Comparable-sales valuation: price per sqft, size adjustment, confidence."""

import math

import numpy as np

from ..core.utils import round_half_up, round_to
from ..data.base import ComparableListing
from ..schemas import MarketTrends, PropertyDetails, ValuationFactors, ValuationResult
from .market_trends import upper_median

LARGE_UNIT_SQFT = 2000
SMALL_UNIT_SQFT = 800
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0
FULL_CONFIDENCE_COMPS = 10
MAX_DISPERSION_PENALTY = 0.5


def size_factor(area_sqft: float) -> float:
    if area_sqft > LARGE_UNIT_SQFT:
        return 1.05
    if area_sqft < SMALL_UNIT_SQFT:
        return 0.95
    return 1.0


def confidence_score(comparable_count: int, prices_per_sqft: list[float]) -> float:
    """
    More comparables and tighter clustering of their price per sqft raise
    confidence; dispersion is the coefficient of variation (population).
    """
    mean = float(np.mean(prices_per_sqft))
    cv = math.sqrt(float(np.var(prices_per_sqft))) / mean
    raw = (comparable_count / FULL_CONFIDENCE_COMPS) * (1 - min(MAX_DISPERSION_PENALTY, cv))
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, raw))


def empty_valuation() -> ValuationResult:
    return ValuationResult(
        estimated_value=0,
        confidence_score=0.0,
        comparable_properties=[],
        valuation_factors=ValuationFactors(),
        market_trends=MarketTrends(market_activity="low"),
    )


def statistical_valuation(target: PropertyDetails, comparables: list[ComparableListing]) -> ValuationResult:
    prices_per_sqft = [c.price / c.area_sqft for c in comparables if c.area_sqft > 0]
    if not comparables or not prices_per_sqft:
        return empty_valuation()

    avg_ppsf = float(np.mean(prices_per_sqft))
    if avg_ppsf <= 0:
        return empty_valuation()
    base_value = avg_ppsf * target.area_sqft

    # Location and type already match exactly through the comparable filter
    factors = ValuationFactors(
        location_factor=1.0,
        size_factor=size_factor(target.area_sqft),
        type_factor=1.0,
        market_trend=1.0,
        comparable_count=len(comparables),
    )
    adjusted = (
        base_value
        * factors.location_factor
        * factors.size_factor
        * factors.type_factor
        * factors.market_trend
    )

    return ValuationResult(
        estimated_value=round_half_up(adjusted),
        confidence_score=round_to(confidence_score(len(comparables), prices_per_sqft), 2),
        comparable_properties=[c.id for c in comparables],
        valuation_factors=factors,
        market_trends=MarketTrends(
            average_price_per_sqft=round_half_up(avg_ppsf),
            median_price=round_half_up(upper_median([c.price for c in comparables])),
            price_trend="stable",
            market_activity="moderate" if len(comparables) > 5 else "low",
        ),
    )
