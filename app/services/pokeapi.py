from typing import List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.config import settings
from app.errors import UpstreamError, UpstreamSchemaError
from app.logger import get_logger
from app.models.catalog import Category, ItemDetail, ItemStub
from app.models.pokeapi import (
    PokemonDetailResponse,
    PokemonListResponse,
    TypeDetailResponse,
    TypeListResponse,
)

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class PokeApiClient:
    """Read-only client for the four PokeAPI endpoints the browser uses.

    Every call raises ``httpx.HTTPError`` for transport and status failures and
    ``UpstreamSchemaError`` when the body does not match the endpoint schema.
    Callers decide how to degrade.
    """

    def __init__(
        self,
        base_url: str = settings.pokeapi_base_url,
        *,
        timeout: Optional[float] = settings.request_timeout,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get(self, url: str, schema: Type[SchemaT], **kwargs) -> SchemaT:
        logger.debug("GET %s %s", url, kwargs.get("params") or "")
        resp = await self._http.get(url, **kwargs)
        resp.raise_for_status()
        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamSchemaError(url, f"response is not JSON ({exc})") from exc
        try:
            return schema.model_validate(payload)
        except ValidationError as exc:
            raise UpstreamSchemaError(url, str(exc)) from exc

    async def list_categories(self) -> List[Category]:
        data = await self._get("/type", TypeListResponse)
        return [
            Category(id=index, name=result.name, detail_url=result.url)
            for index, result in enumerate(data.results)
        ]

    async def get_category_members(self, name: str) -> List[ItemStub]:
        data = await self._get(f"/type/{name}", TypeDetailResponse)
        return [ItemStub(name=m.pokemon.name, detail_url=m.pokemon.url) for m in data.pokemon]

    async def list_items(self, *, limit: int, offset: int) -> Tuple[List[ItemStub], int]:
        data = await self._get("/pokemon", PokemonListResponse, params={"limit": limit, "offset": offset})
        stubs = [ItemStub(name=r.name, detail_url=r.url) for r in data.results]
        return stubs, data.count

    async def get_item_detail(self, stub: ItemStub) -> ItemDetail:
        if not stub.detail_url.startswith(self.base_url + "/"):
            raise UpstreamError(stub.detail_url, "detail URL is outside the configured API")
        data = await self._get(stub.detail_url, PokemonDetailResponse)
        return ItemDetail(
            name=stub.name,
            detail_url=stub.detail_url,
            image_url=data.sprites.other.official_artwork.front_default,
            tags=[slot.type.name for slot in data.types],
        )
