import logging

from fastapi import APIRouter, Depends
from ..schemas import ErrorResponse, MatchReport
from ..services.image_matcher import ImageMatchService
from ..core.errors import UpstreamError, error_response
from ..core.security import require_api_key, batch_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter()

def matcher_dep() -> ImageMatchService:
    return ImageMatchService()

@router.post(
    "/match-images",
    response_model=MatchReport,
    responses={500: {"model": ErrorResponse}},
)
async def post_match_images(
    _auth = Depends(require_api_key),
    _lim  = Depends(batch_rate_limit),
    svc: ImageMatchService = Depends(matcher_dep),
):
    """Batch job: attach photos to scraped listings that have none."""
    try:
        return await svc.run()
    except UpstreamError as exc:
        logger.error("Error in image matching: %s", exc)
        return error_response(500, str(exc), details="Failed to match properties with listing images")
