import asyncio
from typing import AsyncIterator, Callable, List, MutableSequence, Optional, Sequence

import httpx

from app.errors import UpstreamError
from app.logger import get_logger
from app.models.catalog import DetailBatch, ItemDetail, ItemStub
from app.services.pokeapi import PokeApiClient

logger = get_logger(__name__)

BATCH_SIZE = 5


async def resolve_detail(client: PokeApiClient, stub: ItemStub) -> ItemDetail:
    """Fetch one item's artwork and tags; a failure yields the unresolved placeholder."""
    try:
        return await client.get_item_detail(stub)
    except (httpx.HTTPError, UpstreamError) as e:
        logger.warning("Error fetching details for %s: %s", stub.name, e)
        return ItemDetail.from_stub(stub)


async def iter_detail_batches(
    client: PokeApiClient, stubs: Sequence[ItemStub], batch_size: int = BATCH_SIZE
) -> AsyncIterator[DetailBatch]:
    # At most batch_size requests are in flight; a batch starts only after the previous one finished.
    for start in range(0, len(stubs), batch_size):
        group = stubs[start:start + batch_size]
        results = await asyncio.gather(*(resolve_detail(client, stub) for stub in group))
        yield DetailBatch(offset=start, items=list(results))


def merge_batch(items: MutableSequence[ItemDetail], batch: DetailBatch) -> None:
    for i, detail in enumerate(batch.items):
        index = batch.offset + i
        if index < len(items):
            items[index] = detail


async def fetch_details_batched(
    client: PokeApiClient,
    stubs: Sequence[ItemStub],
    batch_size: int = BATCH_SIZE,
    on_batch: Optional[Callable[[DetailBatch, List[ItemDetail]], None]] = None,
) -> List[ItemDetail]:
    """Resolve ``stubs`` batch by batch, keeping every result at its original index.

    ``on_batch`` sees the partially resolved list after each merge. The returned
    list always has ``len(stubs)`` entries.
    """
    results = [ItemDetail.from_stub(stub) for stub in stubs]
    async for batch in iter_detail_batches(client, stubs, batch_size):
        merge_batch(results, batch)
        if on_batch is not None:
            on_batch(batch, results)
    return results


async def resolve_all(client: PokeApiClient, stubs: Sequence[ItemStub]) -> List[ItemDetail]:
    return list(await asyncio.gather(*(resolve_detail(client, stub) for stub in stubs)))
