from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from app.dependencies import get_listing_query, get_pokeapi_client
from app.models.catalog import ListingQuery
from app.services.listing import load_categories, load_listing
from app.services.pagination import build_pagination
from app.services.pokeapi import PokeApiClient
from app.ui import render_index_html, render_ssr_html

router = APIRouter()


def _app_root(request: Request) -> str:
    return request.scope.get("root_path", "").rstrip("/")


@router.get("/", response_class=HTMLResponse)
def index_page(request: Request) -> HTMLResponse:
    return HTMLResponse(render_index_html(_app_root(request)))


@router.get("/ssr", response_class=HTMLResponse)
async def ssr_page(
    request: Request,
    query: ListingQuery = Depends(get_listing_query),
    client: PokeApiClient = Depends(get_pokeapi_client),
) -> HTMLResponse:
    categories = await load_categories(client)
    listing = await load_listing(client, query)
    pagination = build_pagination(query.page, listing.total_pages)
    return HTMLResponse(render_ssr_html(categories, listing.items, pagination, query, _app_root(request)))
