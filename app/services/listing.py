import asyncio
from typing import Callable, List, Optional

import httpx

from app.errors import UpstreamError
from app.logger import get_logger
from app.models.catalog import (
    PAGE_SIZE,
    Category,
    ItemDetail,
    ListingPage,
    ListingQuery,
    ListingSnapshot,
    ListingState,
)
from app.services.details import BATCH_SIZE, iter_detail_batches, merge_batch
from app.services.filtering import fetch_intersection
from app.services.pagination import build_pagination, clamp_page, page_offset, total_pages
from app.services.pokeapi import PokeApiClient

logger = get_logger(__name__)

Listener = Callable[[ListingSnapshot], None]


async def fetch_listing(client: PokeApiClient, query: ListingQuery) -> ListingPage:
    """One page of stubs, filtered by every selected category when there are any."""
    offset = page_offset(query.page)
    if query.categories:
        members = await fetch_intersection(client, query.categories)
        stubs = members[offset:offset + PAGE_SIZE]
        total_count = len(members)
    else:
        stubs, total_count = await client.list_items(limit=PAGE_SIZE, offset=offset)
    return ListingPage(
        items=[ItemDetail.from_stub(stub) for stub in stubs],
        total_count=total_count,
        page=query.page,
    )


async def load_listing(client: PokeApiClient, query: ListingQuery) -> ListingPage:
    try:
        return await fetch_listing(client, query)
    except (httpx.HTTPError, UpstreamError) as e:
        logger.error("Error fetching listing for %s: %s", query.to_query_params(), e)
        return ListingPage(items=[], total_count=0, page=query.page)


async def load_categories(client: PokeApiClient) -> List[Category]:
    try:
        return await client.list_categories()
    except (httpx.HTTPError, UpstreamError) as e:
        logger.error("Error fetching types: %s", e)
        return []


class ListingController:
    """Client-driven listing: fetch the page, then resolve details in batches.

    Each ``navigate`` call starts a new epoch. Work belonging to an older epoch
    never writes into the current state; a superseded detail fetch stops at its
    next batch boundary.
    """

    def __init__(self, client: PokeApiClient, *, batch_size: int = BATCH_SIZE) -> None:
        self._client = client
        self._batch_size = batch_size
        self._epoch = 0
        self._listeners: List[Listener] = []
        self._details_task: Optional[asyncio.Task] = None

        self.state = ListingState.IDLE
        self.query = ListingQuery()
        self.categories: List[Category] = []
        self.items: List[ItemDetail] = []
        self.total_count = 0
        self.loading = False
        self.loading_images = False

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def total_pages(self) -> int:
        return total_pages(self.total_count)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> ListingSnapshot:
        return ListingSnapshot(
            epoch=self._epoch,
            state=self.state,
            query=self.query,
            items=list(self.items),
            total_count=self.total_count,
            pagination=build_pagination(self.query.page, self.total_pages),
            loading=self.loading,
            loading_images=self.loading_images,
        )

    def _emit(self) -> None:
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)

    async def load_categories(self) -> List[Category]:
        self.categories = await load_categories(self._client)
        return self.categories

    async def navigate(self, query: ListingQuery) -> None:
        self._epoch += 1
        epoch = self._epoch
        self.query = query
        self.state = ListingState.FETCHING_LIST
        self.loading = True
        self.loading_images = False
        # an older epoch's detail task is never awaited on behalf of this one
        self._details_task = None
        self._emit()

        page = await load_listing(self._client, query)
        if epoch != self._epoch:
            logger.debug("Discarding listing for superseded epoch %d", epoch)
            return

        self.items = list(page.items)
        self.total_count = page.total_count
        self.loading = False
        if not self.items:
            self.state = ListingState.READY
            self._emit()
            return

        self.state = ListingState.FETCHING_DETAILS
        self.loading_images = True
        self._emit()
        self._details_task = asyncio.create_task(self._resolve_details(epoch, page.items))

    async def _resolve_details(self, epoch: int, stubs: List[ItemDetail]) -> None:
        try:
            async for batch in iter_detail_batches(self._client, stubs, self._batch_size):
                if epoch != self._epoch:
                    logger.debug("Dropping detail batch at offset %d for superseded epoch %d", batch.offset, epoch)
                    return
                merge_batch(self.items, batch)
                self._emit()
        finally:
            if epoch == self._epoch:
                self.loading_images = False
                self.state = ListingState.READY
                self._emit()

    async def wait_details(self) -> None:
        if self._details_task is not None:
            await self._details_task

    async def run(self, query: ListingQuery) -> ListingSnapshot:
        await self.navigate(query)
        await self.wait_details()
        return self.snapshot()

    # navigation targets; None means the control is not offered

    def next_page(self) -> Optional[ListingQuery]:
        if self.query.page >= self.total_pages:
            return None
        return self.query.with_page(self.query.page + 1)

    def prev_page(self) -> Optional[ListingQuery]:
        if self.query.page <= 1:
            return None
        return self.query.with_page(clamp_page(self.query.page - 1, self.total_pages))

    def go_to_page(self, page: int) -> Optional[ListingQuery]:
        if page < 1 or page > self.total_pages:
            return None
        return self.query.with_page(page)

    def toggle_category(self, name: str) -> ListingQuery:
        return self.query.toggle_category(name)
