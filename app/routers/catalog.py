import asyncio
from typing import AsyncIterator, List

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from app.dependencies import get_listing_query, get_pokeapi_client
from app.models.catalog import (
    Category,
    ItemDetail,
    ItemStub,
    ListingQuery,
    ListingResponse,
    ListingSnapshot,
    ListingState,
)
from app.services.details import resolve_all
from app.services.listing import ListingController, load_categories, load_listing
from app.services.pagination import build_pagination
from app.services.pokeapi import PokeApiClient

router = APIRouter(prefix="/api/v1")


@router.get("/types", response_model=List[Category])
async def list_types(client: PokeApiClient = Depends(get_pokeapi_client)) -> List[Category]:
    return await load_categories(client)


@router.get("/pokemon", response_model=ListingResponse)
async def list_pokemon(
    query: ListingQuery = Depends(get_listing_query),
    client: PokeApiClient = Depends(get_pokeapi_client),
) -> ListingResponse:
    listing = await load_listing(client, query)
    return ListingResponse(listing=listing, pagination=build_pagination(query.page, listing.total_pages))


@router.post("/pokemon/details", response_model=List[ItemDetail])
async def resolve_pokemon_details(
    stubs: List[ItemStub],
    client: PokeApiClient = Depends(get_pokeapi_client),
) -> List[ItemDetail]:
    return await resolve_all(client, stubs)


async def _snapshot_lines(controller: ListingController, query: ListingQuery) -> AsyncIterator[str]:
    snapshots: "asyncio.Queue[ListingSnapshot | None]" = asyncio.Queue()
    controller.subscribe(snapshots.put_nowait)
    run = asyncio.create_task(controller.run(query))
    # unblock the reader if the run dies before reaching READY
    run.add_done_callback(lambda _: snapshots.put_nowait(None))
    try:
        while True:
            snapshot = await snapshots.get()
            if snapshot is None:
                break
            yield snapshot.model_dump_json() + "\n"
            if snapshot.state is ListingState.READY:
                break
        await run
    finally:
        # the consumer went away: stop fetching for it
        if not run.done():
            run.cancel()


@router.get("/listing/stream")
async def stream_listing(
    query: ListingQuery = Depends(get_listing_query),
    client: PokeApiClient = Depends(get_pokeapi_client),
) -> StreamingResponse:
    controller = ListingController(client)
    return StreamingResponse(_snapshot_lines(controller, query), media_type="application/x-ndjson")
