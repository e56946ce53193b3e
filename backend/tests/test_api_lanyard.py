from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from api.main import app
from domain.models import IdentityToken, Variant
from services.lanyard_token import decode_token, encode_token


@pytest.fixture
def client(no_assets):
    with TestClient(app) as c:
        yield c


def _image(resp) -> Image.Image:
    img = Image.open(BytesIO(resp.content))
    img.load()
    return img


def test_health(client):
    assert client.get("/").json()["status"] == "ok"
    body = client.get("/health").json()
    assert body["status"] == "healthy"


@pytest.mark.parametrize("path,size", [("/lanyard/opengraph-image", (1200, 630)), ("/lanyard/twitter-image", (1200, 600))])
def test_preview_endpoints_render_token(client, path, size):
    token = encode_token(IdentityToken(username="ADA", variant=Variant.LIGHT))
    resp = client.get(path, params={"u": token})
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert "max-age" in resp.headers["cache-control"]
    img = _image(resp)
    assert img.size == size
    assert img.convert("RGB").getpixel((2, 2)) == (250, 250, 250)


@pytest.mark.parametrize("params", [{}, {"u": ""}, {"u": "garbage!!"}, {"u": "djBnZGw6Ymx1ZTpBREE"}])
def test_preview_falls_back_to_default_identity(client, params):
    resp = client.get("/lanyard/opengraph-image", params=params)
    assert resp.status_code == 200
    img = _image(resp)
    assert img.convert("RGB").getpixel((2, 2)) == (10, 10, 10)


def test_preview_etag_round_trip(client):
    token = encode_token(IdentityToken(username="ADA"))
    first = client.get("/lanyard/twitter-image", params={"u": token})
    etag = first.headers["etag"]
    second = client.get("/lanyard/twitter-image", params={"u": token}, headers={"If-None-Match": etag})
    assert second.status_code == 304

    other = client.get("/lanyard/opengraph-image", params={"u": token})
    assert other.headers["etag"] != etag


def test_mint_token(client):
    resp = client.post("/lanyard/token", json={"username": "Ada", "variant": "light"})
    assert resp.status_code == 200
    body = resp.json()
    assert decode_token(body["token"]) == IdentityToken(username="Ada", variant=Variant.LIGHT)
    assert body["share_url"].endswith(f"/lanyard?u={body['token']}")


@pytest.mark.parametrize(
    "payload",
    [{"username": ""}, {"username": "x" * 21}, {"username": "Ada", "variant": "sepia"}, {}],
)
def test_mint_token_validation(client, payload):
    assert client.post("/lanyard/token", json=payload).status_code == 422
