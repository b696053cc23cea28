"""
pytest conftest for the AVM service.

Responsibilities:
1. Pins settings that would otherwise leak in from the environment
   (API key, rate limit, matcher delay) so tests run offline and instantly.
2. Clears the in-process rate-limit counters between tests.
3. Provides small in-memory fakes for the store, the LLM and the photo API.
"""

from datetime import datetime, timedelta, timezone

import pytest

from avm.core.cache import cache
from avm.core.config import settings
from avm.core.errors import UpstreamError
from avm.data.base import PhotoCandidate
from avm.schemas import PropertyDetails


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", None)
    monkeypatch.setattr(settings, "RATE_LIMIT_RPM", 10_000)
    monkeypatch.setattr(settings, "BATCH_RATE_LIMIT_RPM", 10_000)
    monkeypatch.setattr(settings, "MATCH_DELAY_SECONDS", 0.0)
    cache.clear()
    yield
    cache.clear()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

BASE_TIME = datetime(2025, 6, 1, tzinfo=timezone.utc)


def listing_row(i, price=1_000_000, area=1000, bedrooms=2, location="Marina",
                property_type="Apartment", purpose="for-sale", age_days=None):
    """A property_listings row; larger i means older unless age_days is given."""
    age = i if age_days is None else age_days
    return {
        "id": f"L{i}",
        "price": price,
        "area_sqft": area,
        "bedrooms": bedrooms,
        "location_area": location,
        "property_type": property_type,
        "purpose": purpose,
        "created_at": BASE_TIME - timedelta(days=age),
    }


@pytest.fixture
def target():
    return PropertyDetails(
        property_type="Apartment",
        bedrooms=2,
        bathrooms=2,
        area_sqft=1000,
        location_area="Marina",
        purpose="for-sale",
    )


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeModel:
    """CompletionModel returning a canned reply or raising a canned error."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class BrokenStore:
    """ListingsStore whose every call fails upstream."""

    async def search(self, query):
        raise UpstreamError("listings", "connection refused")

    async def missing_images(self, limit):
        raise UpstreamError("listings", "connection refused")

    async def set_images(self, listing_id, images):
        raise UpstreamError("listings", "connection refused")


class FakePhotos:
    """PhotoSearchClient keyed by query; a query mapped to an exception raises it."""

    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []

    async def search(self, query, hits, location_area=None):
        self.calls.append((query, hits, location_area))
        result = self.results.get(query, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


def candidate(title, cover=None, photos=None, id="c1"):
    return PhotoCandidate(id=id, title=title, cover_photo=cover, photos=list(photos or []))
