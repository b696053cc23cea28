import logging
from functools import lru_cache

from ..core.config import settings
from ..core.metrics import VALUATIONS
from ..data.base import ListingsStore
from ..data.listings_client import listings_client
from ..models.base import CompletionModel
from ..models.mock_model import MockModel
from ..models.openai_model import deepseek_model, openai_model
from ..schemas import PropertyDetails, ValuationResponse
from .ai_blend import ai_estimate, blend, build_valuation_prompt
from .comparables import find_comparables
from .market_trends import summarize_market
from .statistics import statistical_valuation

logger = logging.getLogger(__name__)

@lru_cache(maxsize=1)
def completion_model() -> CompletionModel:
    """
    Provider picked from env, built once per process so the AsyncOpenAI
    client and its connection pool are shared by every request.
    """
    provider = settings.MODEL_PROVIDER
    if provider == "openai":
        return openai_model()
    if provider == "mock":
        return MockModel()
    return deepseek_model()

async def close_completion_model() -> None:
    """Release the shared model's HTTP client (app shutdown)."""
    if not completion_model.cache_info().currsize:
        return
    model = completion_model()
    completion_model.cache_clear()
    close = getattr(model, "aclose", None)
    if close is not None:
        await close()

class ValuationService:
    """
    Orchestrates:
      target → comparables + market trends → statistical estimate
             → optional LLM second opinion → 70/30 blend
    Nothing is cached; every call reads the store afresh.
    """
    def __init__(self, store: ListingsStore | None = None, model: CompletionModel | None = None):
        self.store = store or listings_client()
        self.model = model or completion_model()

    async def value_property(self, target: PropertyDetails, listing_id: str | None = None) -> ValuationResponse:
        logger.info(
            "Starting AVM valuation: %s %dBR %.0f sqft in %s (%s)%s",
            target.property_type, target.bedrooms, target.area_sqft, target.location_area,
            target.purpose, f" listing {listing_id}" if listing_id else "",
        )

        # 1) Comparables (same purpose/type/area, ±1 bed, ±30% size)
        comparables = await find_comparables(self.store, target)

        # 2) Market snapshot (last 50 listings of the segment)
        trends = await summarize_market(
            self.store, target.location_area, target.property_type, target.purpose
        )

        # 3) Statistical estimate
        statistical = statistical_valuation(target, comparables)

        # 4) AI second opinion, blended when it produced a number
        prompt = build_valuation_prompt(target, comparables, trends, settings.DEFAULT_CURRENCY)
        ai_value = await ai_estimate(self.model, prompt)
        final_value = blend(statistical.estimated_value, ai_value)

        valuation = statistical.model_copy(
            update={"estimated_value": final_value, "market_trends": trends}
        )
        ai_enhanced = ai_value > 0
        VALUATIONS.labels(ai_enhanced=str(ai_enhanced).lower()).inc()

        response = ValuationResponse(
            success=True,
            valuation=valuation,
            comparable_count=len(comparables),
            ai_enhanced=ai_enhanced,
            statistical_estimate=statistical.estimated_value,
            ai_estimate=ai_value,
        )
        logger.info(
            "AVM valuation completed: %d (statistical %d, ai %d, confidence %.2f)",
            final_value, statistical.estimated_value, ai_value, valuation.confidence_score,
        )
        return response
