"""/stops endpoints over HTTP, backed by the in-memory stores."""

from __future__ import annotations

import pytest

from services.roadside.tests.conftest import EXAMPLE_LOCATION

pytestmark = pytest.mark.asyncio


def _stop_body(**overrides) -> dict:
    body = {
        "route_id": 1,
        "name": "Twin Peaks Lookout",
        "type": "viewpoint",
        "description": "Best at sunset",
        "location": EXAMPLE_LOCATION,
    }
    body.update(overrides)
    return body


async def test_create_and_get(client):
    created = await client.post("/stops", json=_stop_body())
    assert created.status_code == 201
    stop_id = created.json()["data"]["id"]

    resp = await client.get(f"/stops/{stop_id}")

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["route_id"] == 1
    assert data["type"] == "viewpoint"
    assert data["location"] == EXAMPLE_LOCATION


async def test_client_id_rejected(client):
    resp = await client.post("/stops", json=_stop_body(id=5))
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_linestring_location_is_invalid_geometry(client):
    resp = await client.post("/stops", json=_stop_body(location="LINESTRING(0 0, 1 1)"))
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "INVALID_GEOMETRY"


async def test_stop_for_missing_route_accepted(client):
    resp = await client.post("/stops", json=_stop_body(route_id=404))
    assert resp.status_code == 201


async def test_get_missing_is_404(client):
    resp = await client.get("/stops/77")
    assert resp.status_code == 404
    assert resp.json()["error"]["message"] == "Stop not found."


async def test_update(client):
    stop_id = (await client.post("/stops", json=_stop_body(route_id=3))).json()["data"]["id"]

    resp = await client.put(
        f"/stops/{stop_id}",
        json={"name": "Summit", "type": "landmark", "description": "", "location": "POINT(-122.4475 37.7544)"},
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Summit"
    assert data["location"] == "POINT(-122.4475 37.7544)"
    assert data["route_id"] == 3


async def test_update_cannot_move_stop_to_other_route(client):
    stop_id = (await client.post("/stops", json=_stop_body())).json()["data"]["id"]
    resp = await client.put(f"/stops/{stop_id}", json=_stop_body(route_id=2))
    assert resp.status_code == 422


async def test_update_missing_is_404(client):
    body = _stop_body()
    del body["route_id"]
    resp = await client.put("/stops/77", json=body)
    assert resp.status_code == 404


async def test_delete_idempotent(client):
    stop_id = (await client.post("/stops", json=_stop_body())).json()["data"]["id"]

    assert (await client.delete(f"/stops/{stop_id}")).json()["data"]["deleted"] is True
    assert (await client.delete(f"/stops/{stop_id}")).json()["data"]["deleted"] is False
    assert (await client.get("/routes/1/stops")).json()["data"]["count"] == 0
