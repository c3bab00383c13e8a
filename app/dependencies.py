from fastapi import Query, Request

from app.models.catalog import ListingQuery
from app.services.pokeapi import PokeApiClient


def get_pokeapi_client(request: Request) -> PokeApiClient:
    return request.app.state.pokeapi


def get_listing_query(
    type: str | None = Query(default=None, description="Comma-joined type names"),
    page: str | None = Query(default="1", description="1-based page number"),
) -> ListingQuery:
    return ListingQuery.from_query_params(type=type, page=page)
