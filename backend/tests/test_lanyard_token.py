import base64

import pytest

from domain.models import IdentityToken, Variant
from services.lanyard_token import build_share_url, decode_token, encode_token


def _raw_token(payload: bytes) -> str:
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")


@pytest.mark.parametrize(
    "username",
    ["ADA", "a", "Grace Hopper", "x" * 20, "Zoë", "李小龙", "name:with:colons", "  spaced  ", "emoji 🎉"],
)
@pytest.mark.parametrize("variant", [Variant.DARK, Variant.LIGHT])
def test_round_trip(username, variant):
    identity = IdentityToken(username=username, variant=variant)
    assert decode_token(encode_token(identity)) == identity


def test_known_vector():
    token = encode_token(IdentityToken(username="ADA", variant=Variant.LIGHT))
    assert token == "djBnZGw6bGlnaHQ6QURB"


def test_encoding_is_url_safe_and_unpadded():
    token = encode_token(IdentityToken(username=">>>?", variant=Variant.DARK))
    assert token == "djBnZGw6ZGFyazo-Pj4_"
    assert decode_token(token) == IdentityToken(username=">>>?", variant=Variant.DARK)

    for name in ("a", "ab", "abc", "abcd"):
        assert "=" not in encode_token(IdentityToken(username=name))


def test_encode_is_deterministic():
    identity = IdentityToken(username="Ada", variant=Variant.DARK)
    assert encode_token(identity) == encode_token(identity)


@pytest.mark.parametrize(
    "token",
    [
        "",
        None,
        "not-base64-!!",
        "====",
        "ñandú",
        "%%%",
        _raw_token(b"other:dark:ADA"),
        _raw_token(b"v0gdl-dark-ADA"),
        _raw_token(b"v0gdl:dark"),
        _raw_token(b"v0gdl:"),
        _raw_token(b"v0gdl:dark:\xff\xfe"),
    ],
)
def test_decode_fails_closed(token):
    assert decode_token(token) is None


@pytest.mark.parametrize("variant", ["blue", "DARK", "Light", "", " dark"])
def test_decode_rejects_unknown_variants(variant):
    token = _raw_token(f"v0gdl:{variant}:ADA".encode("utf-8"))
    assert decode_token(token) is None


def test_decode_truncated_token_never_raises():
    token = encode_token(IdentityToken(username="Truncate Me Please", variant=Variant.LIGHT))
    for end in range(len(token) + 1):
        result = decode_token(token[:end])
        assert result is None or isinstance(result, IdentityToken)

    # Length 4k+1 can never be valid base64
    bad = token[: len(token) - (len(token) - 1) % 4]
    assert len(bad) % 4 == 1
    assert decode_token(bad) is None


def test_decode_accepts_padded_and_standard_alphabet():
    token = encode_token(IdentityToken(username=">>>?", variant=Variant.DARK))
    standard = token.replace("-", "+").replace("_", "/") + "=" * (-len(token) % 4)
    assert decode_token(standard) == IdentityToken(username=">>>?", variant=Variant.DARK)


def test_empty_username_still_decodes():
    token = _raw_token(b"v0gdl:light:")
    assert decode_token(token) == IdentityToken(username="", variant=Variant.LIGHT)


def test_custom_prefix(monkeypatch):
    from settings import settings

    identity = IdentityToken(username="ADA", variant=Variant.DARK)
    token = encode_token(identity, prefix="event42")
    assert decode_token(token) is None
    assert decode_token(token, prefix="event42") == identity

    monkeypatch.setattr(settings, "TOKEN_PREFIX", "event42")
    assert decode_token(token) == identity


def test_build_share_url():
    identity = IdentityToken(username="ADA", variant=Variant.LIGHT)
    url = build_share_url(identity, base_url="https://example.com/")
    assert url == "https://example.com/lanyard?u=djBnZGw6bGlnaHQ6QURB"
