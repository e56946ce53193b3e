"""
Static image assets (card icon, export background).

Sources are either filesystem paths or http(s) URLs. Remote images are fetched
as bytes and decoded locally, so an asset from another origin composites like
any local one. Every failure degrades to "no asset".
"""
import asyncio
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

import requests
from PIL import Image

from settings import settings

logger = logging.getLogger(__name__)

_SESSION = requests.Session()
_SESSION.headers.update({"User-Agent": "lanyard-studio/0.1 (asset-fetch)"})

ImageSource = Union[str, Path]


def _is_url(source: ImageSource) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


def _fetch_bytes(url: str, timeout: float) -> Optional[bytes]:
    try:
        resp = _SESSION.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("[assets] fetch failed for %s: %s", url, exc)
        return None
    return resp.content


def load_image_source(source: Optional[ImageSource], timeout: Optional[float] = None) -> Optional[Image.Image]:
    """
    Load an image from a path or URL as RGBA.

    Returns None when the source is empty, missing, unreachable or not an
    image. Never raises.
    """
    if not source:
        return None
    timeout = settings.ASSET_FETCH_TIMEOUT if timeout is None else timeout

    if _is_url(source):
        data = _fetch_bytes(str(source), timeout)
        if data is None:
            return None
        fp = BytesIO(data)
    else:
        path = Path(source)
        if not path.exists():
            logger.info("[assets] %s not found; continuing without it", path)
            return None
        fp = path

    try:
        with Image.open(fp) as img:
            return img.convert("RGBA")
    except (OSError, ValueError):
        logger.warning("[assets] could not decode %s", source, exc_info=True)
        return None


class BackgroundAsset:
    """
    Export background, loaded once per session and read-only afterwards.

    Call init() at session start to begin the load in the background, then
    check `available` before use. A failed load leaves it unavailable, and
    exports fall back to the foreground alone.
    """

    def __init__(self, source: Optional[ImageSource] = None):
        self.source = source if source is not None else settings.BACKGROUND_SOURCE
        self._image: Optional[Image.Image] = None
        self._loaded = False
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_image(cls, image: Image.Image) -> "BackgroundAsset":
        """Wrap an already decoded image (tests, CLI)."""
        asset = cls(source="")
        asset._image = image.convert("RGBA")
        asset._loaded = True
        return asset

    @property
    def available(self) -> bool:
        return self._image is not None

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def image(self) -> Optional[Image.Image]:
        return self._image

    @property
    def size(self) -> Optional[tuple]:
        return self._image.size if self._image is not None else None

    def load(self) -> bool:
        """Blocking load; later calls are no-ops."""
        if not self._loaded:
            self._image = load_image_source(self.source)
            self._loaded = True
            if self._image is not None:
                logger.info("[assets] background loaded from %s (%sx%s)", self.source, *self._image.size)
        return self.available

    def init(self) -> asyncio.Task:
        """Begin the one-time asynchronous load. Must be called from a running event loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(asyncio.to_thread(self.load))
        return self._task

    async def wait(self) -> bool:
        if self._task is None:
            self.init()
        await self._task
        return self.available
