from typing import List, Optional
from .base import PhotoSearchClient, PhotoCandidate
from ..core.config import settings
from ..core.errors import UpstreamError
from ..core.utils import fnv1a_32, seeded_rand
import httpx

class MockPhotos(PhotoSearchClient):
    """
    Synthetic search hits echoing the query words, some with a full photo
    set, some with a cover only.
    """
    async def search(self, query: str, hits: int, location_area: Optional[str] = None) -> List[PhotoCandidate]:
        seed = fnv1a_32(query.lower())
        out: List[PhotoCandidate] = []
        for i in range(hits):
            r = seeded_rand(seed + i, 1)[0]
            base = f"https://images.example.com/{seed:08x}/{i}"
            n_photos = int(r * 14)  # 0..13, exercises the cap of 10
            out.append(PhotoCandidate(
                id=f"{seed:08x}-{i}",
                title=f"{query} {'View' if i % 2 else 'Residence'}",
                cover_photo=f"{base}/cover.jpg" if i % 3 != 2 else None,
                photos=[f"{base}/{k}.jpg" for k in range(n_photos)],
            ))
        return out

def _candidate(hit: dict) -> PhotoCandidate:
    cover = hit.get("coverPhoto") or {}
    photos = [p.get("url") for p in hit.get("photos") or [] if p.get("url")]
    return PhotoCandidate(
        id=str(hit.get("id", "")),
        title=hit.get("title") or "",
        cover_photo=cover.get("url") or None,
        photos=photos,
    )

class BayutPhotos(PhotoSearchClient):
    """
    Bayut listing search on RapidAPI; each hit may carry a coverPhoto and a
    photos list.
    """
    def __init__(self, api_key: str, base_url: str = "https://bayut.p.rapidapi.com",
                 location_id: str = "5002", transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.host = httpx.URL(self.base_url).host
        self.location_id = location_id
        self._transport = transport

    async def search(self, query: str, hits: int, location_area: Optional[str] = None) -> List[PhotoCandidate]:
        params = {
            "hitsPerPage": str(hits),
            "page": "0",
            "lang": "en",
            "sort": "city-level-score",
            "hasPhoto": "true",
            "query": query,
        }
        if location_area:
            params["locationExternalIDs"] = self.location_id
        headers = {"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": self.host}
        try:
            async with httpx.AsyncClient(timeout=15, transport=self._transport) as client:
                r = await client.get(f"{self.base_url}/properties/list", params=params, headers=headers)
                r.raise_for_status()
                items = r.json().get("hits") or []
                return [_candidate(h) for h in items]
        except httpx.HTTPStatusError as exc:
            raise UpstreamError("photos", f"HTTP {exc.response.status_code}", exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError("photos", str(exc) or type(exc).__name__) from exc
        except (ValueError, AttributeError) as exc:
            raise UpstreamError("photos", "unexpected response body") from exc

def photos_client() -> PhotoSearchClient:
    if settings.PHOTOS_PROVIDER == "http" and settings.BAYUT_API_KEY:
        return BayutPhotos(settings.BAYUT_API_KEY, settings.BAYUT_BASE_URL, settings.BAYUT_LOCATION_ID)
    return MockPhotos()
