from typing import Protocol, List, Optional
from dataclasses import dataclass, field
from datetime import datetime

# ----- Data shapes (thin & explicit) -----

@dataclass
class ComparableListing:
    id: str
    price: float
    area_sqft: float
    bedrooms: Optional[int]
    location_area: str
    created_at: datetime

@dataclass
class ListingQuery:
    """
    Filter handed to the listings store. Equality on purpose/type/location,
    inclusive ranges when bounds are set, price > 0 always, newest first.
    """
    purpose: str
    property_type: str
    location_area: str
    bedrooms_min: Optional[int] = None
    bedrooms_max: Optional[int] = None
    area_min: Optional[float] = None
    area_max: Optional[float] = None
    positive_area: bool = False   # area > 0, used by the trend summary
    limit: int = 10

@dataclass
class ScrapedListing:
    # A scraped listing still waiting for photos
    id: str
    title: str
    property_type: Optional[str] = None
    location_area: Optional[str] = None
    bedrooms: Optional[int] = None
    price: Optional[float] = None

@dataclass
class PhotoCandidate:
    id: str
    title: str
    cover_photo: Optional[str] = None
    photos: List[str] = field(default_factory=list)

    @property
    def has_photos(self) -> bool:
        return bool(self.cover_photo) or bool(self.photos)

# ----- Protocols (interfaces) -----

class ListingsStore(Protocol):
    async def search(self, query: ListingQuery) -> List[ComparableListing]: ...
    async def missing_images(self, limit: int) -> List[ScrapedListing]: ...
    async def set_images(self, listing_id: str, images: List[str]) -> None: ...

class PhotoSearchClient(Protocol):
    async def search(
        self, query: str, hits: int, location_area: Optional[str] = None
    ) -> List[PhotoCandidate]: ...
