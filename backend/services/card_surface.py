"""
Render surface contract and a flat stand-in implementation.

The interactive card is displayed by an external scene. The controller only
needs three things from it: mount with a texture, tear down, and read back the
current frame. FlatCardSurface implements that contract with a static 2D
drawing (strap + card) so the pipeline can run headless in the API and CLI.
"""
import logging
from typing import Optional, Protocol, Tuple

from PIL import Image, ImageDraw

logger = logging.getLogger(__name__)

STRAP_COLOR = (24, 24, 24, 255)
CARD_COLOR = (12, 12, 12, 255)
CLIP_COLOR = (150, 150, 150, 255)


class RenderSurface(Protocol):
    def create(self, texture: Optional[Image.Image], generation: int) -> None:
        ...

    def dispose(self) -> None:
        ...

    def read_pixels(self) -> Optional[Image.Image]:
        ...


class FlatCardSurface:
    """Transparent frame with a lanyard strap and a textured card face."""

    def __init__(self, size: Tuple[int, int] = (1280, 720)):
        self.size = size
        self.mounts = 0
        self._alive = False
        self._texture: Optional[Image.Image] = None
        self._generation = 0
        self._frame: Optional[Image.Image] = None

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def generation(self) -> int:
        return self._generation

    def create(self, texture: Optional[Image.Image], generation: int = 0) -> None:
        if self._alive:
            logger.debug("[surface] create() on a live surface; disposing first")
            self.dispose()
        self._texture = texture.copy() if texture is not None else None
        self._generation = generation
        self._alive = True
        self._frame = None
        self.mounts += 1
        logger.debug("[surface] mounted generation %s (texture=%s)", generation, texture is not None)

    def dispose(self) -> None:
        self._alive = False
        self._texture = None
        self._frame = None

    def read_pixels(self) -> Optional[Image.Image]:
        if not self._alive:
            return None
        if self._frame is None:
            self._frame = self._render()
        return self._frame.copy()

    def _render(self) -> Image.Image:
        width, height = self.size
        frame = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(frame)

        card_w = max(8, int(height * 0.42))
        card_h = int(card_w * 1.4)
        margin = max(2, card_w // 14)
        center_x = width // 2
        card_x0 = center_x - card_w // 2
        card_y0 = max(0, (height - card_h) // 2 + height // 12)

        strap_w = max(2, card_w // 6)
        draw.rectangle((center_x - strap_w // 2, 0, center_x + strap_w // 2, card_y0 + margin), fill=STRAP_COLOR)
        draw.rounded_rectangle(
            (card_x0, card_y0, card_x0 + card_w, card_y0 + card_h),
            radius=max(1, card_w // 16),
            fill=CARD_COLOR,
        )

        face = card_w - 2 * margin
        if self._texture is not None and face > 0:
            texture = self._texture.convert("RGBA").resize((face, face), Image.Resampling.LANCZOS)
            frame.alpha_composite(texture, (card_x0 + margin, card_y0 + card_h - margin - face))

        clip_r = max(2, margin)
        draw.ellipse(
            (center_x - clip_r, card_y0 + margin - clip_r, center_x + clip_r, card_y0 + margin + clip_r),
            fill=CLIP_COLOR,
        )
        return frame
