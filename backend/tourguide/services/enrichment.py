"""
Place image enrichment

Attaches Wikimedia Commons image and licence metadata to attraction-like
places. The caller owns an EnrichmentCache: handing the same batch of place
ids back to it returns the previous result without touching the network.
Lookups run in a small worker pool with per-place timeouts, an overall
deadline and a cancellation token; one place failing never fails the batch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Iterable

from tourguide.core.config import (
    ENRICHMENT_BATCH_DEADLINE,
    ENRICHMENT_CONCURRENCY,
    ENRICHMENT_ITEM_TIMEOUT,
    ENRICHMENT_PERSIST,
)
from tourguide.core.errors import EnrichmentLookupError, TourGuideError
from tourguide.db.storage import Storage
from tourguide.models.place import Place, WikimediaImageInfo
from tourguide.services.wikimedia import WikimediaClient

logger = logging.getLogger(__name__)

AGENT_LABEL = "enrichment"


def batch_key(places: list[Place]) -> tuple[str, ...]:
    """Order-independent identity of a batch: its sorted place ids."""
    return tuple(sorted(str(p.id) for p in places))


def build_search_term(place: Place) -> str:
    return f"{place.name} {place.location} Maharashtra India"


def image_info_of(place: Place) -> WikimediaImageInfo:
    """The wikimedia fields already merged into a place."""
    return WikimediaImageInfo(
        thumbnail_url=place.wikimedia_thumbnail_url,
        description_html=place.wikimedia_description or "",
        artist_name=place.wikimedia_artist or "Unknown",
        attribution_url=place.wikimedia_attribution_url or "",
        license_name=place.wikimedia_license or "Unknown license",
        license_url=place.wikimedia_license_url or "",
    )


def apply_image_info(place: Place, info: WikimediaImageInfo) -> Place:
    """
    Merge lookup results into a copy of the place. An existing image_url is
    kept; the wikimedia fields are always replaced.
    """
    update = info.as_place_fields()
    update["image_url"] = place.image_url or info.thumbnail_url
    return place.model_copy(update=update)


@dataclass
class EnrichmentCache:
    """
    Previous batch seen by one consumer. Calls sharing a cache are
    serialised through its lock.
    """

    key: tuple[str, ...] | None = None
    result: list[Place] | None = None
    updated_ids: set[str] = field(default_factory=set)
    persisted_ids: set[str] = field(default_factory=set)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def matches(self, places: list[Place]) -> bool:
        return (
            self.key is not None
            and self.result is not None
            and len(self.key) == len(places)
            and self.key == batch_key(places)
        )

    def store(
        self,
        places: list[Place],
        result: list[Place],
        updated_ids: Iterable[str] = (),
        persisted_ids: Iterable[str] = (),
    ) -> None:
        self.key = batch_key(places)
        self.result = list(result)
        self.updated_ids = set(updated_ids)
        self.persisted_ids = set(persisted_ids)

    def unpersisted(self) -> list[Place]:
        """Places this cache enriched that have not been written back yet."""
        return [
            p for p in self.result or []
            if str(p.id) in self.updated_ids and str(p.id) not in self.persisted_ids
        ]

    def clear(self) -> None:
        self.key = None
        self.result = None
        self.updated_ids = set()
        self.persisted_ids = set()


class CancellationToken:
    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class EnrichmentOptions:
    persist: bool = ENRICHMENT_PERSIST
    concurrency: int = ENRICHMENT_CONCURRENCY
    item_timeout: float | None = ENRICHMENT_ITEM_TIMEOUT
    batch_deadline: float | None = ENRICHMENT_BATCH_DEADLINE


@dataclass
class EnrichmentResult:
    places: list[Place]
    updated_ids: list[str] = field(default_factory=list)
    failed_ids: list[str] = field(default_factory=list)
    persisted_ids: list[str] = field(default_factory=list)
    from_cache: bool = False
    completed: bool = True

    @property
    def updated_count(self) -> int:
        return len(self.updated_ids)


async def _lookup(client: WikimediaClient, place: Place, timeout: float | None) -> WikimediaImageInfo | None:
    term = build_search_term(place)
    if timeout is None:
        return await client.fetch_image(term)
    return await asyncio.wait_for(client.fetch_image(term), timeout=timeout)


async def _persist(storage: Storage, place: Place, info: WikimediaImageInfo) -> bool:
    try:
        await storage.update_place_wikimedia(str(place.id), info)
        return True
    except TourGuideError as e:
        # The in-memory result stands even if the write-back fails
        logger.warning(f"[{AGENT_LABEL}] Failed to persist wikimedia fields for {place.id}: {e}")
        return False


async def enrich_places(
    places: list[Place],
    client: WikimediaClient,
    cache: EnrichmentCache,
    options: EnrichmentOptions | None = None,
    storage: Storage | None = None,
    token: CancellationToken | None = None,
) -> EnrichmentResult:
    """
    Enrich eligible places (attraction, monument, heritage, landmark without
    wikimedia data). Returns the places in input order; unchanged input when
    nothing was updated.
    """
    options = options or EnrichmentOptions()
    if not places:
        return EnrichmentResult(places=places)

    async with cache.lock:
        if cache.matches(places):
            logger.debug(f"[{AGENT_LABEL}] Batch unchanged ({len(places)} places), using cached result")
            result = EnrichmentResult(places=list(cache.result), from_cache=True)
            if options.persist and storage is not None:
                # An earlier pass may have run without write-back
                for place in cache.unpersisted():
                    if await _persist(storage, place, image_info_of(place)):
                        result.persisted_ids.append(str(place.id))
                cache.persisted_ids.update(result.persisted_ids)
            return result

        eligible = [(i, p) for i, p in enumerate(places) if p.is_enrichable]
        if not eligible:
            cache.store(places, places)
            return EnrichmentResult(places=places)

        if options.persist and storage is None:
            logger.warning(f"[{AGENT_LABEL}] persist requested without storage; results stay in memory")

        t0 = time.time()
        updated: list[Place] = list(places)
        result = EnrichmentResult(places=places)
        queue: asyncio.Queue[tuple[int, Place]] = asyncio.Queue()
        for item in eligible:
            queue.put_nowait(item)

        async def worker() -> None:
            while not (token and token.cancelled):
                try:
                    index, place = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    info = await _lookup(client, place, options.item_timeout)
                except asyncio.TimeoutError:
                    logger.warning(f"[{AGENT_LABEL}] Lookup timed out for {place.name}")
                    result.failed_ids.append(str(place.id))
                    continue
                except EnrichmentLookupError as e:
                    logger.warning(f"[{AGENT_LABEL}] Lookup failed for {place.name}: {e}")
                    result.failed_ids.append(str(place.id))
                    continue

                if info is None:
                    continue
                updated[index] = apply_image_info(place, info)
                result.updated_ids.append(str(place.id))

                if options.persist and storage is not None and place.id:
                    if await _persist(storage, place, info):
                        result.persisted_ids.append(str(place.id))

        workers = [
            asyncio.create_task(worker()) for _ in range(min(max(1, options.concurrency), len(eligible)))
        ]
        done, pending = await asyncio.wait(workers, timeout=options.batch_deadline)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"[{AGENT_LABEL}] Batch deadline of {options.batch_deadline}s reached")
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                # Anything other than a lookup failure is a bug; surface it
                raise task.exception()

        result.completed = not pending and not (token and token.cancelled and not queue.empty())
        if result.updated_ids:
            result.places = updated
        if result.completed:
            cache.store(places, result.places, result.updated_ids, result.persisted_ids)

        logger.info(
            f"[{AGENT_LABEL}] {len(eligible)} eligible, {result.updated_count} updated, "
            f"{len(result.failed_ids)} failed in {int((time.time() - t0) * 1000)}ms"
        )
        return result
