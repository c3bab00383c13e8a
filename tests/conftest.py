import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_pokeapi_client
from app.main import app
from app.services.pokeapi import PokeApiClient

BASE_URL = "https://pokeapi.test/api/v2"

TYPES = {
    "fire": ["charmander", "charizard", "vulpix", "moltres", "ponyta"],
    "flying": ["pidgey", "moltres", "charizard", "zubat"],
    "water": ["squirtle", "psyduck"],
    "normal": [f"normal-{i:02d}" for i in range(1, 31)],
}


def detail_url(name: str) -> str:
    return f"{BASE_URL}/pokemon/{name}/"


def artwork_url(name: str) -> str:
    return f"https://img.test/{name}.png"


class FakePokeApi:
    """In-memory PokeAPI serving 100 unfiltered pokemon and the TYPES memberships."""

    def __init__(self) -> None:
        self.pokemon = [f"mon-{i:03d}" for i in range(1, 101)]
        self.types = dict(TYPES)
        self.failing = set()
        self.malformed = set()
        self.fail_types = False
        self.fail_list = False
        # when set, detail requests wait on it before answering
        self.detail_gate = None
        self.paths = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.paths.append(request.url.path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self.detail_gate is not None and request.url.path.startswith("/api/v2/pokemon/"):
                await self.detail_gate.wait()
            return self._route(request)
        finally:
            self.in_flight -= 1

    def _route(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v2").strip("/")
        parts = path.split("/")

        if path == "type":
            if self.fail_types:
                return httpx.Response(500)
            results = [{"name": n, "url": f"{BASE_URL}/type/{n}/"} for n in self.types]
            return httpx.Response(200, json={"count": len(results), "results": results})

        if parts[0] == "type" and len(parts) == 2:
            members = self.types.get(parts[1])
            if members is None:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, json={
                "name": parts[1],
                "pokemon": [{"pokemon": {"name": n, "url": detail_url(n)}, "slot": 1} for n in members],
            })

        if path == "pokemon":
            if self.fail_list:
                return httpx.Response(503)
            limit = int(request.url.params["limit"])
            offset = int(request.url.params["offset"])
            names = self.pokemon[offset:offset + limit]
            return httpx.Response(200, json={
                "count": len(self.pokemon),
                "results": [{"name": n, "url": detail_url(n)} for n in names],
            })

        if parts[0] == "pokemon" and len(parts) == 2:
            name = parts[1]
            if name in self.failing:
                return httpx.Response(500)
            if name in self.malformed:
                return httpx.Response(200, json={"sprites": {}, "types": []})
            tags = [t for t, members in self.types.items() if name in members] or ["normal"]
            return httpx.Response(200, json={
                "name": name,
                "sprites": {"other": {"official-artwork": {"front_default": artwork_url(name)}}},
                "types": [{"slot": i + 1, "type": {"name": t, "url": f"{BASE_URL}/type/{t}/"}} for i, t in enumerate(tags)],
            })

        return httpx.Response(404, text="Not Found")


@pytest.fixture
def fake_api():
    return FakePokeApi()


@pytest.fixture
def pokeapi(fake_api):
    return PokeApiClient(BASE_URL, transport=httpx.MockTransport(fake_api.handler))


@pytest.fixture
def client(pokeapi):
    app.dependency_overrides[get_pokeapi_client] = lambda: pokeapi
    yield TestClient(app)
    app.dependency_overrides.clear()
