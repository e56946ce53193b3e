"""
Share token codec.

Packs a username and card variant into a URL-safe string so it can ride along
as a query parameter. This is obfuscation, not cryptography: anything that
still parses after tampering is accepted.
"""
import base64
import binascii
import logging
from typing import Optional
from urllib.parse import urlencode

from domain.models import IdentityToken, Variant
from settings import settings

logger = logging.getLogger(__name__)

DELIMITER = ":"


def _prefix(prefix: Optional[str]) -> str:
    return prefix if prefix is not None else settings.TOKEN_PREFIX


def encode_token(identity: IdentityToken, prefix: Optional[str] = None) -> str:
    """Serialize an identity as unpadded URL-safe base64 of `prefix:variant:username`."""
    variant = Variant(identity.variant).value
    payload = DELIMITER.join((_prefix(prefix), variant, identity.username))
    encoded = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def decode_token(token: Optional[str], prefix: Optional[str] = None) -> Optional[IdentityToken]:
    """
    Recover the identity from a share token.

    Returns None for anything that is not a well-formed token: empty input,
    invalid base64 or UTF-8, wrong prefix, missing delimiter or an unknown
    variant. Never raises.
    """
    if not token or not isinstance(token, str):
        return None

    b64 = token.replace("-", "+").replace("_", "/")
    b64 += "=" * (-len(b64) % 4)
    try:
        raw = base64.b64decode(b64, validate=True)
        decoded = raw.decode("utf-8")
    except (binascii.Error, ValueError):
        logger.debug("Rejected undecodable token %r", token[:64])
        return None

    marker = _prefix(prefix) + DELIMITER
    if not decoded.startswith(marker):
        return None

    variant, sep, username = decoded[len(marker):].partition(DELIMITER)
    if not sep:
        return None
    if variant not in (Variant.DARK.value, Variant.LIGHT.value):
        return None
    return IdentityToken(username=username, variant=Variant(variant))


def build_share_url(identity: IdentityToken, base_url: Optional[str] = None) -> str:
    """Link whose preview unfurls to the attendee's card."""
    base = (base_url if base_url is not None else settings.SHARE_BASE_URL).rstrip("/")
    return f"{base}/lanyard?{urlencode({'u': encode_token(identity)})}"
