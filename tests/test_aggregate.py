import asyncio

import httpx
import pytest

from teamfeed.config import SourceDescriptor, SourceFormat
from teamfeed.fallback import resolve_fallback
from teamfeed.ingest import FetchError
from teamfeed.models import Category
from teamfeed.pipeline import SourceAdapter, aggregate, with_fallback

from tests.payloads import FakeUpstream, healthy_routes, json_response, make_config


@pytest.mark.anyio
async def test_all_sources_live():
    upstream = FakeUpstream()

    async with upstream.client() as client:
        result = await aggregate(make_config(), client=client)

    payload = result.to_payload()
    assert list(payload) == ["roster", "schedule", "stats", "standings", "news"]
    assert result.fallback_categories == []
    assert [player["name"] for player in payload["roster"]] == ["Ann-Katrin Berger", "Rose Lavelle"]
    assert payload["standings"] == {"rank": 3, "points": 40, "record": "11-6-7"}
    assert payload["stats"]["leaders"]["goals"][0] == {"name": "Esther González", "total": 8}
    assert payload["stats"]["goals-scored"] == {"label": "Goals Scored", "value": 21}
    assert "team" not in payload["stats"]
    assert [item["url"] for item in payload["news"]] == [
        "https://www.example.com/gotham-win",
        "https://news.test/preview",
    ]
    assert payload["news"][0]["source"] == "example.com"


@pytest.mark.anyio
async def test_every_category_present_when_everything_fails():
    upstream = FakeUpstream(routes={})

    async with upstream.client() as client:
        result = await aggregate(make_config(), client=client)

    payload = result.to_payload()
    assert set(payload) == {category.value for category in Category}
    assert all(value is not None for value in payload.values())
    assert sorted(result.fallback_categories) == sorted(category.value for category in Category)


@pytest.mark.anyio
async def test_one_failing_source_does_not_affect_siblings():
    routes = healthy_routes()
    routes["/matches"] = lambda request: httpx.Response(500)
    upstream = FakeUpstream(routes)

    async with upstream.client() as client:
        result = await aggregate(make_config(), client=client)

    assert result.provenance["schedule"] == "fallback"
    assert result[Category.SCHEDULE] == resolve_fallback(Category.SCHEDULE)
    assert result.provenance["roster"] == "live"
    assert result[Category.ROSTER][0].name == "Ann-Katrin Berger"
    assert result.results[Category.SCHEDULE].reason == "HTTP 500"


@pytest.mark.anyio
async def test_malformed_payload_falls_back():
    routes = healthy_routes()
    routes["/standings"] = lambda request: json_response({"standings": [{"type": "table", "teams": []}]})
    routes["/roster"] = lambda request: json_response({"players": [{"playerStatus": "Active"}]})
    upstream = FakeUpstream(routes)

    async with upstream.client() as client:
        result = await aggregate(make_config(), client=client)

    assert result.fallback_categories == ["roster", "standings"]
    assert result.results[Category.ROSTER].reason == "no usable data"


@pytest.mark.anyio
async def test_news_survives_one_failing_feed():
    routes = healthy_routes()
    routes["/feed-a.xml"] = lambda request: httpx.Response(503)
    upstream = FakeUpstream(routes)

    async with upstream.client() as client:
        result = await aggregate(make_config(), client=client)

    assert result.provenance["news"] == "live"
    assert [item.url for item in result[Category.NEWS]] == ["https://news.test/preview"]


@pytest.mark.anyio
async def test_partial_stats_sources_still_count_as_live():
    routes = healthy_routes()
    routes.pop("/stats/general")
    upstream = FakeUpstream(routes)

    async with upstream.client() as client:
        result = await aggregate(make_config(), client=client)

    stats = result[Category.STATS]
    assert result.provenance["stats"] == "live"
    assert stats.team == {}
    assert [leader.name for leader in stats.leaders["assists"]] == ["Midge Purce", "Esther González"]


@pytest.mark.anyio
async def test_enrichment_index_is_built_before_roster():
    routes = healthy_routes()
    routes["/sheet.csv"] = lambda request: httpx.Response(
        200, text="Name,Headshot,Page URL\nLavelle,https://img.test/rl.png,https://club.test/rl\n"
    )
    upstream = FakeUpstream(routes)
    config = make_config(
        enrichment_source=SourceDescriptor(
            name="sheet", url="https://upstream.test/sheet.csv", format=SourceFormat.CSV
        )
    )

    async with upstream.client() as client:
        result = await aggregate(config, client=client)

    berger, lavelle = result[Category.ROSTER]
    assert berger.headshot is None
    assert lavelle.page_url == "https://club.test/rl"
    assert upstream.calls[0] == "/sheet.csv"


@pytest.mark.anyio
async def test_json_enrichment_with_numeric_cells_keeps_every_category():
    routes = healthy_routes()
    routes["/sheet.json"] = lambda request: json_response(
        [{"Name": "Lavelle", "Headshot": 123, "Page URL": "https://club.test/rl"}]
    )
    upstream = FakeUpstream(routes)
    config = make_config(
        enrichment_source=SourceDescriptor(name="sheet", url="https://upstream.test/sheet.json")
    )

    async with upstream.client() as client:
        result = await aggregate(config, client=client)

    assert result.fallback_categories == []
    lavelle = result[Category.ROSTER][1]
    assert lavelle.headshot is None
    assert lavelle.page_url == "https://club.test/rl"


@pytest.mark.anyio
async def test_disabled_categories_are_not_fetched_and_social_added():
    upstream = FakeUpstream()
    config = make_config(include_news=False, include_standings=False, include_social=True)

    async with upstream.client() as client:
        result = await aggregate(config, client=client)

    payload = result.to_payload()
    assert list(payload) == ["roster", "schedule", "stats", "social"]
    assert "/standings" not in upstream.calls
    assert payload["social"] == []


@pytest.mark.anyio
async def test_with_fallback_absorbs_normalizer_errors():
    async def broken():
        raise KeyError("players")

    outcome = await with_fallback(Category.ROSTER, broken(), lambda: ["snapshot"])

    assert outcome.live is False
    assert outcome.value == ["snapshot"]
    assert outcome.reason.startswith("KeyError")


@pytest.mark.anyio
async def test_with_fallback_keeps_live_value():
    async def live():
        return ["live"]

    async def failing():
        raise FetchError(SourceDescriptor(name="x", url="https://x.test"), "HTTP 502")

    ok = await with_fallback(Category.NEWS, live(), lambda: ["snapshot"])
    failed = await with_fallback(Category.NEWS, failing(), lambda: ["snapshot"])

    assert (ok.live, ok.value) == (True, ["live"])
    assert (failed.live, failed.reason) == (False, "HTTP 502")


@pytest.mark.anyio
async def test_custom_adapter_can_replace_a_category():
    adapter = SourceAdapter(
        category=Category.STANDINGS,
        sources=(SourceDescriptor(name="alt", url="https://upstream.test/alt-standings"),),
        normalize=lambda payload: None,
    )
    upstream = FakeUpstream({"/alt-standings": lambda request: json_response({"rows": []})})

    async with upstream.client() as client:
        result = await aggregate(
            make_config(include_news=False),
            client=client,
            adapters={Category.STANDINGS: adapter},
        )

    assert upstream.calls == ["/alt-standings"]
    assert result.fallback_categories == ["roster", "schedule", "stats", "standings"]


@pytest.mark.anyio
async def test_cancellation_cancels_in_flight_fetches():
    started = asyncio.Event()
    cancelled: list[str] = []

    async def hang(request):
        started.set()
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            cancelled.append(request.url.path)
            raise
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(hang)) as client:
        task = asyncio.create_task(aggregate(make_config(), client=client))
        await started.wait()
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert cancelled


@pytest.mark.anyio
async def test_cancellation_closes_the_client_aggregate_opened(monkeypatch):
    started = asyncio.Event()
    opened: list[httpx.AsyncClient] = []

    async def hang(request):
        started.set()
        await asyncio.sleep(3600)
        return httpx.Response(200)

    base_client = httpx.AsyncClient

    class HangingClient(base_client):
        def __init__(self, **kwargs):
            super().__init__(transport=httpx.MockTransport(hang), **kwargs)
            opened.append(self)

    monkeypatch.setattr(httpx, "AsyncClient", HangingClient)

    task = asyncio.create_task(aggregate(make_config()))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(opened) == 1
    assert opened[0].is_closed
