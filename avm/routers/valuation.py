from fastapi import APIRouter, Depends, HTTPException
from ..schemas import ErrorResponse, ValuationRequest, ValuationResponse
from ..services.valuation_service import ValuationService
from ..core.security import require_api_key, rate_limit

router = APIRouter()

def service_dep() -> ValuationService:
    # Store adapters open their HTTP clients per call; the LLM client is shared.
    return ValuationService()

@router.post(
    "/valuation",
    response_model=ValuationResponse,
    responses={400: {"model": ErrorResponse}},
)
async def post_valuation(
    body: ValuationRequest,
    _auth = Depends(require_api_key),     # API key guard
    _lim  = Depends(rate_limit),          # Rate limiting
    svc: ValuationService = Depends(service_dep),
):
    if body.property_details is None:
        raise HTTPException(status_code=400, detail="Property details are required")
    return await svc.value_property(body.property_details, body.property_listing_id)
