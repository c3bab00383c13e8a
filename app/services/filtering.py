import asyncio
from typing import List, Sequence

from app.logger import get_logger
from app.models.catalog import ItemStub
from app.services.pokeapi import PokeApiClient

logger = get_logger(__name__)


def intersect_memberships(memberships: Sequence[Sequence[ItemStub]]) -> List[ItemStub]:
    """Items present in every membership list, sorted by name.

    Stubs are taken from the first list; names are the identity.
    """
    if not memberships:
        return []
    first, rest = memberships[0], memberships[1:]
    name_sets = [{stub.name for stub in members} for members in rest]
    matched = [stub for stub in first if all(stub.name in names for names in name_sets)]
    return sorted(matched, key=lambda stub: stub.name)


async def fetch_intersection(client: PokeApiClient, categories: Sequence[str]) -> List[ItemStub]:
    memberships = await asyncio.gather(*(client.get_category_members(name) for name in categories))
    result = intersect_memberships(memberships)
    logger.debug("Intersection of %s has %d items", ",".join(categories), len(result))
    return result
