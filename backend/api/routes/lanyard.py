"""
Lanyard preview API routes.

Social preview images for link unfurling, plus a helper to mint share tokens.
"""
import hashlib
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import BaseModel, Field

from domain.models import IdentityToken, PreviewPreset, Variant
from services.lanyard_token import build_share_url, decode_token, encode_token
from services.preview_renderer import render_preview_png
from settings import settings

router = APIRouter()


class TokenRequest(BaseModel):
    username: str = Field(..., min_length=1)
    variant: Variant = Variant.DARK


class TokenResponse(BaseModel):
    token: str
    share_url: str


def _preview_response(request: Request, token: Optional[str], preset: PreviewPreset) -> Response:
    """Decode (falling back to the default attendee) and render a preview PNG."""
    etag = '"{}"'.format(hashlib.sha1(f"{preset.value}:{token or ''}".encode("utf-8")).hexdigest())
    headers = {
        "Cache-Control": f"public, max-age={settings.PREVIEW_CACHE_SECONDS}",
        "ETag": etag,
    }
    if request.headers.get("if-none-match") == etag:
        return Response(status_code=304, headers=headers)

    identity = decode_token(token)
    return Response(content=render_preview_png(identity, preset), media_type="image/png", headers=headers)


@router.get("/opengraph-image")
def opengraph_image(request: Request, u: Optional[str] = Query(None, description="Share token")):
    """Open Graph preview (1200x630)."""
    return _preview_response(request, u, PreviewPreset.OG)


@router.get("/twitter-image")
def twitter_image(request: Request, u: Optional[str] = Query(None, description="Share token")):
    """Twitter summary_large_image preview (1200x600)."""
    return _preview_response(request, u, PreviewPreset.SOCIAL)


@router.post("/token", response_model=TokenResponse)
async def create_token(body: TokenRequest):
    """Mint a share token for a name and variant."""
    if len(body.username) > settings.MAX_NAME_LENGTH:
        raise HTTPException(status_code=422, detail=f"username must be at most {settings.MAX_NAME_LENGTH} characters")
    identity = IdentityToken(username=body.username, variant=body.variant)
    return TokenResponse(token=encode_token(identity), share_url=build_share_url(identity))
