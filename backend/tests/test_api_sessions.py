from collections import OrderedDict
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from api.main import app
from api.routes import sessions as sessions_router
from services.assets import BackgroundAsset
from settings import settings


@pytest.fixture
def client(no_assets, monkeypatch):
    monkeypatch.setattr(settings, "CAPTURE_SCALE", 0.25)
    monkeypatch.setattr(sessions_router, "background", BackgroundAsset.from_image(Image.new("RGB", (64, 36), (255, 0, 0))))
    monkeypatch.setattr(sessions_router, "_sessions", OrderedDict())
    with TestClient(app) as c:
        yield c


def _size(content: bytes) -> tuple:
    with Image.open(BytesIO(content)) as img:
        return img.size


def _create(client, **body) -> dict:
    resp = client.post("/lanyard/sessions", json=body or None)
    assert resp.status_code == 201
    return resp.json()


def test_create_session_starts_idle(client):
    body = _create(client)
    assert body["state"] == "idle"
    assert body["can_apply"] is False
    assert body["max_length"] == 20
    assert body["generation"] == 0
    assert client.get(f"/lanyard/sessions/{body['session_id']}").json() == body


def test_create_session_with_default_name(client):
    body = _create(client, default_name="Ada")
    assert body["draft_name"] == body["applied_name"] == "Ada"


def test_draft_edits_and_bound(client):
    sid = _create(client)["session_id"]

    body = client.put(f"/lanyard/sessions/{sid}/draft", json={"name": "ADA"}).json()
    assert body["accepted"] is True
    assert body["state"] == "dirty"
    assert body["can_apply"] is True

    body = client.put(f"/lanyard/sessions/{sid}/draft", json={"name": "x" * 21}).json()
    assert body["accepted"] is False
    assert body["draft_name"] == "ADA"

    body = client.put(f"/lanyard/sessions/{sid}/draft", json={"name": "y" * 20}).json()
    assert body["limit_status"] == "at"
    assert body["character_count"] == 20


def test_apply_then_texture_and_export(client):
    sid = _create(client)["session_id"]
    assert client.get(f"/lanyard/sessions/{sid}/texture").status_code == 404

    client.put(f"/lanyard/sessions/{sid}/draft", json={"name": "ADA"})
    body = client.post(f"/lanyard/sessions/{sid}/apply").json()
    assert body["state"] == "idle"
    assert body["applied_name"] == "ADA"
    assert body["generation"] == 1

    texture = client.get(f"/lanyard/sessions/{sid}/texture")
    assert texture.status_code == 200
    assert _size(texture.content) == (128, 128)

    exported = client.get(f"/lanyard/sessions/{sid}/export", params={"crop_fraction": 0.5, "output_scale": 1})
    assert exported.status_code == 200
    assert exported.headers["content-type"] == "image/png"
    assert "lanyard-ADA.png" in exported.headers["content-disposition"]
    assert _size(exported.content) == (640, 360)
    with Image.open(BytesIO(exported.content)) as img:
        assert img.convert("RGBA").getpixel((1, 358)) == (255, 0, 0, 255)


def test_apply_without_changes_keeps_generation(client):
    sid = _create(client, default_name="ADA")["session_id"]
    body = client.post(f"/lanyard/sessions/{sid}/apply").json()
    assert body["generation"] == 0
    assert body["state"] == "idle"


def test_export_defaults_and_generic_filename(client):
    sid = _create(client)["session_id"]
    exported = client.get(f"/lanyard/sessions/{sid}/export")
    assert exported.status_code == 200
    assert "lanyard-card.png" in exported.headers["content-disposition"]
    assert _size(exported.content) == (1536, 864)


@pytest.mark.parametrize("params", [{"crop_fraction": 0}, {"crop_fraction": 1.5}, {"output_scale": 0}])
def test_export_rejects_bad_config(client, params):
    sid = _create(client)["session_id"]
    assert client.get(f"/lanyard/sessions/{sid}/export", params=params).status_code == 422


def test_export_after_dispose_is_empty(client):
    sid = _create(client)["session_id"]
    sessions_router._sessions[sid].surface.dispose()
    resp = client.get(f"/lanyard/sessions/{sid}/export")
    assert resp.status_code == 204
    assert resp.content == b""


def test_unknown_and_deleted_sessions(client):
    assert client.get("/lanyard/sessions/nope").status_code == 404
    assert client.post("/lanyard/sessions/nope/apply").status_code == 404

    sid = _create(client)["session_id"]
    assert client.delete(f"/lanyard/sessions/{sid}").status_code == 204
    assert client.get(f"/lanyard/sessions/{sid}").status_code == 404
    assert client.delete(f"/lanyard/sessions/{sid}").status_code == 404


@pytest.mark.parametrize("value", ["inf", "-inf", "nan"])
def test_export_rejects_non_finite_scale(client, value):
    sid = _create(client)["session_id"]
    assert client.get(f"/lanyard/sessions/{sid}/export", params={"output_scale": value}).status_code == 422


def test_least_recently_used_session_is_evicted(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_SESSIONS", 2)
    first = _create(client)["session_id"]
    second = _create(client)["session_id"]
    first_surface = sessions_router._sessions[first].surface

    # Touching the first session makes the second the eviction candidate
    assert client.get(f"/lanyard/sessions/{first}").status_code == 200
    third = _create(client)["session_id"]

    assert list(sessions_router._sessions) == [first, third]
    assert client.get(f"/lanyard/sessions/{second}").status_code == 404
    assert first_surface.alive

    fourth = _create(client)["session_id"]
    assert client.get(f"/lanyard/sessions/{first}").status_code == 404
    assert not first_surface.alive
    assert client.get(f"/lanyard/sessions/{fourth}").status_code == 200
