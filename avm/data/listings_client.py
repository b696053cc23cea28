import re
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple
from .base import ListingsStore, ListingQuery, ComparableListing, ScrapedListing
from ..core.config import settings
from ..core.errors import UpstreamError
from ..core.utils import fnv1a_32, seeded_rand
import httpx

COMPARABLE_COLUMNS = "id,price,area_sqft,bedrooms,location_area,created_at"
SCRAPED_COLUMNS = "id,title,property_type,location_area,bedrooms,price"

def _matches(row: dict, q: ListingQuery) -> bool:
    """In-memory twin of the PostgREST filter built by query_params()."""
    if row.get("purpose") != q.purpose or row.get("property_type") != q.property_type:
        return False
    if row.get("location_area") != q.location_area:
        return False
    if not (row.get("price") or 0) > 0:
        return False
    beds = row.get("bedrooms")
    if q.bedrooms_min is not None and (beds is None or beds < q.bedrooms_min):
        return False
    if q.bedrooms_max is not None and (beds is None or beds > q.bedrooms_max):
        return False
    area = row.get("area_sqft")
    if q.positive_area and not (area or 0) > 0:
        return False
    if q.area_min is not None and (area is None or area < q.area_min):
        return False
    if q.area_max is not None and (area is None or area > q.area_max):
        return False
    return True

_FRACTION = re.compile(r"\.(\d+)")
_SHORT_OFFSET = re.compile(r"T[\d:.]+[+-]\d{2}$")

def parse_timestamp(value: str) -> datetime:
    """
    Postgres timestamps as PostgREST returns them: trailing zeros of the
    fraction trimmed, offset or "Z". fromisoformat() before 3.11 only takes
    3 or 6 fraction digits and no "Z", so normalise first.
    """
    text = value.strip().replace(" ", "T", 1)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    elif _SHORT_OFFSET.search(text):
        text += ":00"
    text = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
    return datetime.fromisoformat(text)

def _to_comparable(row: dict) -> ComparableListing:
    created = row["created_at"]
    if isinstance(created, str):
        created = parse_timestamp(created)
    return ComparableListing(
        id=str(row["id"]),
        price=float(row["price"]),
        area_sqft=float(row.get("area_sqft") or 0),
        bedrooms=row.get("bedrooms"),
        location_area=row.get("location_area") or "",
        created_at=created,
    )

def _to_scraped(row: dict) -> ScrapedListing:
    return ScrapedListing(
        id=str(row["id"]), title=row.get("title") or "",
        property_type=row.get("property_type"), location_area=row.get("location_area"),
        bedrooms=row.get("bedrooms"), price=row.get("price"),
    )

class MockListings(ListingsStore):
    """
    In-memory listings store. With explicit rows it filters exactly those;
    without, it synthesizes a stable market per (purpose, type, area) so the
    API is usable offline.
    """
    def __init__(self, rows: Optional[Iterable[dict]] = None, scraped: Optional[Iterable[dict]] = None):
        self.synthetic = rows is None
        self.rows: List[dict] = list(rows or [])
        self.scraped: Dict[str, dict] = {str(r["id"]): dict(r) for r in (scraped or [])}
        if scraped is None:
            for r in _synthetic_scraped():
                self.scraped[r["id"]] = r

    async def search(self, query: ListingQuery) -> List[ComparableListing]:
        rows = self.rows
        if self.synthetic:
            rows = rows + _synthetic_market(query.purpose, query.property_type, query.location_area)
        hits = [r for r in rows if _matches(r, query)]
        hits.sort(key=lambda r: _to_comparable(r).created_at, reverse=True)
        return [_to_comparable(r) for r in hits[:query.limit]]

    async def missing_images(self, limit: int) -> List[ScrapedListing]:
        rows = [r for r in self.scraped.values() if not r.get("images")]
        return [_to_scraped(r) for r in rows[:limit]]

    async def set_images(self, listing_id: str, images: List[str]) -> None:
        row = self.scraped.get(str(listing_id))
        if row is None:
            raise UpstreamError("listings", f"no scraped listing {listing_id}", 404)
        row["images"] = list(images)
        row["updated_at"] = datetime.now(timezone.utc).isoformat()

def _synthetic_market(purpose: str, property_type: str, location_area: str, n: int = 40) -> List[dict]:
    seed = fnv1a_32(f"{purpose}|{property_type}|{location_area}")
    # Local price per sqft between ~900 and ~2,500 AED
    base_ppsf = 900 + seeded_rand(seed, 1)[0] * 1600
    now = datetime.now(timezone.utc)
    out = []
    for i in range(n):
        r = seeded_rand(seed + i * 31, 4)
        area = 450 + int(r[0] * 2800)
        ppsf = base_ppsf * (0.85 + r[1] * 0.3)
        price = area * ppsf
        if purpose == "for-rent":
            price *= 0.065  # yearly rent
        out.append({
            "id": f"mock-{seed:08x}-{i:02d}",
            "purpose": purpose,
            "property_type": property_type,
            "location_area": location_area,
            "bedrooms": int(r[2] * 5),
            "area_sqft": area,
            "price": int(price),
            "created_at": now - timedelta(days=int(r[3] * 180), minutes=i),
        })
    return out

def _synthetic_scraped() -> List[dict]:
    titles = [
        "Luxury Marina Apartment 2BR",
        "Downtown Studio with Burj View",
        "Palm Jumeirah Villa 5BR",
    ]
    return [
        {"id": f"scraped-{i}", "title": t, "property_type": None, "location_area": None,
         "bedrooms": None, "price": None, "images": None}
        for i, t in enumerate(titles)
    ]

def query_params(query: ListingQuery, columns: str = COMPARABLE_COLUMNS) -> List[Tuple[str, str]]:
    """
    PostgREST query string for a ListingQuery. A list of pairs because range
    filters repeat the column name.
    """
    params = [
        ("select", columns),
        ("purpose", f"eq.{query.purpose}"),
        ("property_type", f"eq.{query.property_type}"),
        ("location_area", f"eq.{query.location_area}"),
    ]
    if query.bedrooms_min is not None:
        params.append(("bedrooms", f"gte.{query.bedrooms_min}"))
    if query.bedrooms_max is not None:
        params.append(("bedrooms", f"lte.{query.bedrooms_max}"))
    if query.area_min is not None:
        params.append(("area_sqft", f"gte.{query.area_min}"))
    if query.area_max is not None:
        params.append(("area_sqft", f"lte.{query.area_max}"))
    params.append(("price", "gt.0"))
    if query.positive_area:
        params.append(("area_sqft", "gt.0"))
    params.append(("order", "created_at.desc"))
    params.append(("limit", str(query.limit)))
    return params

class PostgrestListings(ListingsStore):
    """
    Supabase tables through the PostgREST API with the service-role key.
    """
    def __init__(self, base_url: str, api_key: str,
                 listings_table: str = "property_listings",
                 scraped_table: str = "scraped_properties",
                 transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = base_url.rstrip("/") + "/rest/v1"
        self.api_key = api_key
        self.listings_table = listings_table
        self.scraped_table = scraped_table
        self._transport = transport

    def _headers(self) -> dict:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, table: str, params, json: dict | None = None, prefer: str | None = None):
        headers = self._headers()
        if prefer:
            headers["Prefer"] = prefer
        try:
            async with httpx.AsyncClient(timeout=15, transport=self._transport) as client:
                r = await client.request(
                    method, f"{self.base_url}/{table}", params=params, json=json, headers=headers
                )
                r.raise_for_status()
                return r.json() if r.content else None
        except httpx.HTTPStatusError as exc:
            raise UpstreamError("listings", f"HTTP {exc.response.status_code}", exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError("listings", str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise UpstreamError("listings", "invalid JSON in response") from exc

    async def search(self, query: ListingQuery) -> List[ComparableListing]:
        rows = await self._request("GET", self.listings_table, query_params(query))
        try:
            return [_to_comparable(r) for r in rows or []]
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamError("listings", f"unexpected row shape: {exc}") from exc

    async def missing_images(self, limit: int) -> List[ScrapedListing]:
        params = [
            ("select", SCRAPED_COLUMNS),
            ("or", "(images.is.null,images.eq.{})"),
            ("limit", str(limit)),
        ]
        rows = await self._request("GET", self.scraped_table, params)
        try:
            return [_to_scraped(r) for r in rows or []]
        except (KeyError, TypeError) as exc:
            raise UpstreamError("listings", f"unexpected row shape: {exc}") from exc

    async def set_images(self, listing_id: str, images: List[str]) -> None:
        await self._request(
            "PATCH", self.scraped_table, [("id", f"eq.{listing_id}")],
            json={"images": images, "updated_at": datetime.now(timezone.utc).isoformat()},
            prefer="return=minimal",
        )

def listings_client() -> ListingsStore:
    """
    Factory picks mock or http based on env flags.
    """
    if settings.LISTINGS_PROVIDER == "http" and settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY:
        return PostgrestListings(
            settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY,
            listings_table=settings.LISTINGS_TABLE, scraped_table=settings.SCRAPED_TABLE,
        )
    return MockListings()
