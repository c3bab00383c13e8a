from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import settings
from app.logger import get_logger
from app.routers import catalog, health, pages
from app.services.pokeapi import PokeApiClient

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.pokeapi = PokeApiClient(settings.pokeapi_base_url, timeout=settings.request_timeout)
    logger.info("Using PokeAPI at %s (%s)", settings.pokeapi_base_url, settings.environment)
    try:
        yield
    finally:
        await app.state.pokeapi.aclose()


app = FastAPI(
    title="Pokedex Browser",
    description="Paginated, type-filtered PokeAPI catalog browser",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(catalog.router)
app.include_router(pages.router)
