import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from teamfeed.api import FALLBACK_HEADER, create_app
from teamfeed.models import SocialLink

from tests.payloads import FakeUpstream, healthy_routes, make_config


def _client_for(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")


@pytest.mark.anyio
async def test_health():
    async with FakeUpstream().client() as upstream, _client_for(create_app(make_config(), client=upstream)) as client:
        resp = await client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.anyio
async def test_aggregate_returns_every_category_live():
    async with FakeUpstream().client() as upstream, _client_for(create_app(make_config(), client=upstream)) as client:
        resp = await client.get("/aggregate")

    assert resp.status_code == 200
    assert resp.headers[FALLBACK_HEADER] == ""
    body = resp.json()
    assert list(body) == ["roster", "schedule", "stats", "standings", "news"]
    assert body["roster"][0] == {
        "name": "Ann-Katrin Berger",
        "pos": "GK",
        "num": 30,
        "bio": "Goalkeeper from Germany",
        "headshot": None,
        "pageUrl": None,
    }
    assert body["schedule"][0]["opponent"] == "Portland Thorns"
    assert body["standings"]["record"] == "11-6-7"
    assert body["stats"]["goals-conceded"] == {"label": "Goals Conceded", "value": 14}
    assert body["stats"]["leaders"]["assists"][0] == {"name": "Midge Purce", "total": 5}


@pytest.mark.anyio
async def test_upstream_failures_still_return_success_with_fallback_header():
    routes = healthy_routes()
    routes["/matches"] = lambda request: httpx.Response(500)
    routes["/standings"] = lambda request: httpx.Response(200, text="not json")
    routes.pop("/stats/general")
    routes.pop("/stats/standard")

    async with FakeUpstream(routes).client() as upstream, _client_for(create_app(make_config(), client=upstream)) as client:
        resp = await client.get("/aggregate")

    assert resp.status_code == 200
    assert resp.headers[FALLBACK_HEADER] == "schedule,stats,standings"
    body = resp.json()
    assert body["stats"] == {
        "goals-scored": {"label": "Goals scored", "value": "N/A"},
        "goals-conceded": {"label": "Goals conceded", "value": "N/A"},
        "leaders": {},
    }
    assert body["standings"] == {"rank": "N/A", "points": "N/A", "record": "N/A"}
    assert body["schedule"][0]["opponent"] == "NC Courage"
    assert body["roster"][0]["name"] == "Ann-Katrin Berger"


@pytest.mark.anyio
async def test_disabled_categories_are_omitted_and_social_included():
    config = make_config(
        include_news=False,
        include_standings=False,
        include_social=True,
        social_links=(SocialLink(platform="x", handle="@GothamFC", url="https://x.com/GothamFC"),),
    )

    async with FakeUpstream().client() as upstream, _client_for(create_app(config, client=upstream)) as client:
        resp = await client.get("/aggregate")

    body = resp.json()
    assert set(body) == {"roster", "schedule", "stats", "social"}
    assert body["social"] == [{"platform": "x", "handle": "@GothamFC", "url": "https://x.com/GothamFC"}]
