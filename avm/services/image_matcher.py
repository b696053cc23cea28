"""
Fills in photos for scraped listings that have none.

Each listing's title (first three words) is searched on the photo API; the
hits are scored by title-token overlap plus a bonus for having photos, and
the best hit above MATCH_THRESHOLD donates up to ten photo URLs.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from ..core.config import settings
from ..core.errors import UpstreamError
from ..core.metrics import IMAGE_MATCHES
from ..core.utils import first_words, round_half_up
from ..data.base import ListingsStore, PhotoCandidate, PhotoSearchClient, ScrapedListing
from ..data.listings_client import listings_client
from ..data.photos_client import photos_client
from ..schemas import MatchReport

logger = logging.getLogger(__name__)

SEARCH_HITS = 5
QUERY_WORDS = 3
MIN_TOKEN_LENGTH = 3
TITLE_WEIGHT = 0.6
PHOTOS_BONUS = 0.4
COVER_ONLY_BONUS = 0.2
MATCH_THRESHOLD = 0.3
MAX_IMAGES = 10


def _tokens(title: str) -> List[str]:
    return [w for w in title.lower().split() if len(w) >= MIN_TOKEN_LENGTH]


def title_similarity(a: str, b: str) -> float:
    """
    Share of tokens (longer than two characters) of the wordier title that
    find a partner in the other title, where either token containing the
    other counts as a match.
    """
    words_a, words_b = _tokens(a), _tokens(b)
    denominator = max(len(words_a), len(words_b))
    if denominator == 0:
        return 0.0
    matches = sum(
        1 for wa in words_a if any(wa in wb or wb in wa for wb in words_b)
    )
    return matches / denominator


def score_candidate(title: str, candidate: PhotoCandidate) -> float:
    score = title_similarity(title, candidate.title) * TITLE_WEIGHT
    if candidate.photos:
        score += PHOTOS_BONUS
    elif candidate.cover_photo:
        score += COVER_ONLY_BONUS
    return score


def pick_best(title: str, candidates: List[PhotoCandidate]) -> Optional[tuple[PhotoCandidate, float]]:
    """Highest scorer above the threshold; earlier hits win ties."""
    best: Optional[PhotoCandidate] = None
    best_score = 0.0
    for candidate in candidates:
        if not candidate.has_photos:
            continue
        score = score_candidate(title, candidate)
        if score > best_score and score > MATCH_THRESHOLD:
            best, best_score = candidate, score
    if best is None:
        return None
    return best, best_score


def collect_images(candidate: PhotoCandidate, limit: int = MAX_IMAGES) -> List[str]:
    images: List[str] = []
    if candidate.cover_photo:
        images.append(candidate.cover_photo)
    for url in candidate.photos:
        if url and url not in images:
            images.append(url)
    return images[:limit]


def search_query(title: str) -> str:
    return first_words(title, QUERY_WORDS)


@dataclass
class ListingOutcome:
    listing_id: str
    matched: bool
    score: float = 0.0
    images: int = 0


class ImageMatchService:
    def __init__(self, store: ListingsStore | None = None, photos: PhotoSearchClient | None = None,
                 delay_seconds: float | None = None):
        self.store = store or listings_client()
        self.photos = photos or photos_client()
        self.delay_seconds = settings.MATCH_DELAY_SECONDS if delay_seconds is None else delay_seconds

    async def match_listing(self, listing: ScrapedListing) -> ListingOutcome:
        """
        Raises UpstreamError when the search or the write-back fails; the
        batch loop logs it and moves on.
        """
        candidates = await self.photos.search(
            search_query(listing.title), SEARCH_HITS, location_area=listing.location_area
        )
        best = pick_best(listing.title, candidates)
        if best is None:
            logger.info("No match found for %r", listing.title)
            return ListingOutcome(listing.id, matched=False)

        candidate, score = best
        images = collect_images(candidate)
        if not images:
            return ListingOutcome(listing.id, matched=False, score=score)

        await self.store.set_images(listing.id, images)
        logger.info("Matched %r with %d images (score: %.2f)", listing.title, len(images), score)
        return ListingOutcome(listing.id, matched=True, score=score, images=len(images))

    async def run(self, batch_size: int | None = None) -> MatchReport:
        """
        One pass over listings lacking images. A failure to load the batch
        propagates; failures on a single listing do not.
        """
        limit = batch_size or settings.MATCH_BATCH_SIZE
        listings = await self.store.missing_images(limit)
        logger.info("Found %d properties without images", len(listings))

        processed = matched = 0
        for listing in listings:
            processed += 1
            logger.info("Processing %d/%d: %s", processed, len(listings), listing.title)
            try:
                outcome = await self.match_listing(listing)
            except UpstreamError as exc:
                logger.error("Error processing property %s: %s", listing.id, exc)
                IMAGE_MATCHES.labels(outcome="error").inc()
            else:
                if outcome.matched:
                    matched += 1
                IMAGE_MATCHES.labels(outcome="matched" if outcome.matched else "unmatched").inc()

            # Pacing for the photo API's rate limit
            if self.delay_seconds > 0:
                await asyncio.sleep(self.delay_seconds)

        rate = round_half_up(matched / processed * 100) if processed else 0
        report = MatchReport(
            success=True,
            processed=processed,
            matched=matched,
            matchRate=rate,
            message=f"Processed {processed} properties, matched {matched} with listing images ({rate}% success rate)",
        )
        logger.info("Matching completed: %s", report.message)
        return report
