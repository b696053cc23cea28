import logging
from typing import List

from ..core.errors import UpstreamError
from ..data.base import ComparableListing, ListingQuery, ListingsStore
from ..schemas import PropertyDetails

logger = logging.getLogger(__name__)

MAX_COMPARABLES = 10
AREA_LOW, AREA_HIGH = 0.7, 1.3   # ±30% of the target's area
BEDROOM_BAND = 1      # ±1 bedroom, lower bound never below 1

def comparable_query(target: PropertyDetails) -> ListingQuery:
    return ListingQuery(
        purpose=target.purpose,
        property_type=target.property_type,
        location_area=target.location_area,
        bedrooms_min=max(1, target.bedrooms - BEDROOM_BAND),
        bedrooms_max=target.bedrooms + BEDROOM_BAND,
        area_min=target.area_sqft * AREA_LOW,
        area_max=target.area_sqft * AREA_HIGH,
        limit=MAX_COMPARABLES,
    )

async def find_comparables(store: ListingsStore, target: PropertyDetails) -> List[ComparableListing]:
    """
    Up to ten most recent listings like the target. A store failure is
    reported as "no comparables", which the valuator treats as zero confidence.
    """
    try:
        comps = await store.search(comparable_query(target))
    except UpstreamError as exc:
        logger.error("Comparable lookup failed: %s", exc)
        return []
    logger.info("Found %d comparable properties in %s", len(comps), target.location_area)
    return comps
