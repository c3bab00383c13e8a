import asyncio
import json

from app.models.catalog import ListingQuery
from app.routers.catalog import _snapshot_lines
from app.services.listing import ListingController

from tests.conftest import artwork_url, detail_url


def stream_snapshots(client, params=None):
    response = client.get("/api/v1/listing/stream", params=params or {})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def test_types_endpoint(client):
    data = client.get("/api/v1/types").json()
    assert [t["name"] for t in data] == ["fire", "flying", "water", "normal"]
    assert [t["id"] for t in data] == [0, 1, 2, 3]


def test_types_endpoint_degrades_to_empty(client, fake_api):
    fake_api.fail_types = True
    response = client.get("/api/v1/types")
    assert response.status_code == 200
    assert response.json() == []


def test_pokemon_listing_unfiltered(client):
    data = client.get("/api/v1/pokemon", params={"page": "2"}).json()
    assert data["listing"]["total_count"] == 100
    assert data["listing"]["total_pages"] == 5
    assert data["listing"]["items"][0]["name"] == "mon-025"
    assert data["pagination"]["markers"] == [1, 2, 3, 4, 5]
    assert data["pagination"]["prev_page"] == 1


def test_pokemon_listing_filtered(client):
    data = client.get("/api/v1/pokemon", params={"type": "fire,flying"}).json()
    assert [i["name"] for i in data["listing"]["items"]] == ["charizard", "moltres"]
    assert data["listing"]["total_count"] == 2
    assert data["pagination"]["prev_page"] is None
    assert data["pagination"]["next_page"] is None


def test_pokemon_listing_failure_is_empty_not_error(client, fake_api):
    fake_api.fail_list = True
    response = client.get("/api/v1/pokemon")
    assert response.status_code == 200
    assert response.json()["listing"]["items"] == []


def test_details_endpoint_resolves_every_stub(client, fake_api):
    fake_api.failing.add("zubat")
    stubs = [{"name": n, "detail_url": detail_url(n)} for n in ("pidgey", "zubat", "vulpix")]
    data = client.post("/api/v1/pokemon/details", json=stubs).json()
    assert [d["name"] for d in data] == ["pidgey", "zubat", "vulpix"]
    assert data[0]["image_url"] == artwork_url("pidgey")
    assert data[1]["image_url"] is None
    assert data[1]["resolved"] is False
    assert data[2]["tags"] == ["fire"]


def test_stream_ends_ready_with_resolved_items(client):
    snapshots = stream_snapshots(client, {"page": "1"})
    assert snapshots[0]["state"] == "fetching_list"
    assert snapshots[1]["state"] == "fetching_details"
    assert snapshots[-1]["state"] == "ready"
    assert snapshots[-1]["loading_images"] is False
    final = snapshots[-1]["items"]
    assert len(final) == 24
    assert all(item["image_url"] for item in final)


def test_stream_of_empty_listing(client, fake_api):
    fake_api.fail_list = True
    snapshots = stream_snapshots(client)
    assert [s["state"] for s in snapshots] == ["fetching_list", "ready"]
    assert snapshots[-1]["items"] == []


def test_both_variants_agree_on_listing(client):
    params = {"type": "normal", "page": "2"}
    snapshot = stream_snapshots(client, params)[-1]
    listing = client.get("/api/v1/pokemon", params=params).json()
    html = client.get("/ssr", params=params).text

    names = [i["name"] for i in listing["listing"]["items"]]
    assert [i["name"] for i in snapshot["items"]] == names
    assert snapshot["pagination"] == listing["pagination"]
    for name in names:
        assert f"<h3>{name}</h3>" in html


def test_index_page_is_a_shell(client, fake_api):
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "/api/v1/listing/stream" in response.text
    assert fake_api.paths == []


def test_ssr_first_page_has_no_prev_control(client):
    html = client.get("/ssr").text
    assert 'rel="prev"' not in html
    assert 'rel="next"' in html
    assert '<span class="current">1</span>' in html


def test_ssr_last_page_has_no_next_control(client):
    html = client.get("/ssr", params={"page": "5"}).text
    assert 'rel="prev"' in html
    assert 'rel="next"' not in html


def test_ssr_marks_selected_types(client):
    html = client.get("/ssr", params={"type": "fire"}).text
    assert '<a class="active" href="?page=1">fire</a>' in html
    assert '<a class="" href="?page=1&amp;type=fire%2Cflying">flying</a>' in html
    assert "<h3>charizard</h3>" in html


def test_ssr_renders_placeholders_and_stub_payload(client):
    html = client.get("/ssr", params={"type": "water"}).text
    assert "Loading..." in html
    assert '"name":"psyduck"' in html
    assert "/api/v1/pokemon/details" in html


def test_ssr_survives_upstream_outage(client, fake_api):
    fake_api.fail_types = True
    fake_api.fail_list = True
    response = client.get("/ssr")
    assert response.status_code == 200
    assert "No data" in response.text


def test_closing_stream_stops_upstream_work(pokeapi, fake_api):
    async def scenario():
        lines = _snapshot_lines(ListingController(pokeapi), ListingQuery())
        await lines.__anext__()
        await lines.__anext__()
        await lines.aclose()
        at_disconnect = len(fake_api.paths)
        await asyncio.sleep(0.05)
        return at_disconnect, len(fake_api.paths)

    at_disconnect, later = asyncio.run(scenario())

    assert later == at_disconnect
    assert later < 1 + 24
