from typing import Literal
from pydantic import BaseModel, Field

Purpose = Literal["for-sale", "for-rent"]
PriceTrend = Literal["increasing", "decreasing", "stable"]
MarketActivity = Literal["low", "moderate", "high"]

class PropertyDetails(BaseModel):
    property_type: str = Field(min_length=1)
    bedrooms: int = Field(ge=0)
    bathrooms: float = Field(default=0, ge=0)
    area_sqft: float = Field(gt=0)
    location_area: str = Field(min_length=1)
    purpose: Purpose
    price: float | None = None
    completion_status: str | None = None
    amenities: list[str] | None = None

class ValuationRequest(BaseModel):
    property_details: PropertyDetails | None = None
    property_listing_id: str | None = None

class ValuationFactors(BaseModel):
    location_factor: float = 1.0
    size_factor: float = 1.0
    type_factor: float = 1.0
    market_trend: float = 1.0
    comparable_count: int = 0

class MarketTrends(BaseModel):
    average_price_per_sqft: int = 0
    median_price: int = 0
    price_trend: PriceTrend = "stable"
    market_activity: MarketActivity = "moderate"

class ValuationResult(BaseModel):
    estimated_value: int
    confidence_score: float = Field(ge=0, le=1)
    comparable_properties: list[str]
    valuation_factors: ValuationFactors
    market_trends: MarketTrends

class ValuationResponse(BaseModel):
    success: bool = True
    valuation: ValuationResult
    comparable_count: int
    ai_enhanced: bool
    statistical_estimate: int
    ai_estimate: int

class MatchReport(BaseModel):
    success: bool = True
    processed: int
    matched: int
    matchRate: int
    message: str

class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: str | None = None
