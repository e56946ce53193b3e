"""
Card face template and on-demand texture capture.

The template is a 512x512 black square with the event icon in the middle and
the attendee name along the bottom. Capturing rasterizes its current state at
a supersampling factor and hands the bitmap to a callback as a
CaptureArtifact tagged with a generation number.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PIL import Image, ImageDraw

from domain.models import CaptureArtifact
from services.assets import ImageSource, load_image_source
from services.typography import draw_text, line_height, load_font, text_width
from settings import settings

logger = logging.getLogger(__name__)

TEMPLATE_SIZE = 512
TEMPLATE_PADDING = 32
TEMPLATE_BACKGROUND = (0, 0, 0, 255)
ICON_SIZE = 128
NAME_SIZE = 24
NAME_TRACKING_EM = 0.1
NAME_COLOR = (255, 255, 255, 255)
PLACEHOLDER_NAME = "YOUR NAME"


@dataclass
class CardTemplate:
    """Offscreen card face. `user_name` tracks the draft as it is edited."""
    user_name: str = ""
    icon: Optional[Image.Image] = None
    size: int = TEMPLATE_SIZE

    @classmethod
    def with_icon_source(cls, source: Optional[ImageSource] = None, user_name: str = "") -> "CardTemplate":
        icon = load_image_source(source if source is not None else settings.ICON_SOURCE)
        return cls(user_name=user_name, icon=icon)

    def display_name(self, user_name: Optional[str] = None) -> str:
        name = self.user_name if user_name is None else user_name
        return (name or PLACEHOLDER_NAME).upper()

    def rasterize(self, user_name: Optional[str] = None, scale: float = 2.0) -> Image.Image:
        """Render the template at `scale` times its logical size."""
        px = int(round(self.size * scale))
        image = Image.new("RGBA", (px, px), TEMPLATE_BACKGROUND)
        draw = ImageDraw.Draw(image)

        padding = TEMPLATE_PADDING * scale
        name = self.display_name(user_name)
        name_size = NAME_SIZE * scale
        name_lh = line_height(name_size)
        name_top = px - padding - name_lh

        # Icon centered in the space above the name
        if self.icon is not None:
            icon_px = int(round(ICON_SIZE * scale))
            icon = self.icon.convert("RGBA").resize((icon_px, icon_px), Image.Resampling.LANCZOS)
            free_top = padding
            ix = int(round((px - icon_px) / 2))
            iy = int(round(free_top + (name_top - free_top - icon_px) / 2))
            image.alpha_composite(icon, (ix, iy))

        font = load_font(name_size, bold=True)
        tracking = NAME_TRACKING_EM * name_size
        x = (px - text_width(name, font, tracking)) / 2
        y = name_top + (name_lh - name_size) / 2
        draw_text(draw, (x, y), name, font, NAME_COLOR, tracking=tracking)
        return image


TextureCallback = Callable[[CaptureArtifact], None]


class TextureCaptureService:
    """
    Imperative capture handle for a card template.

    Captures are never triggered implicitly; callers commit the draft name to
    the template first, then await capture_texture(). Concurrent captures are
    allowed; each gets its own generation and consumers discard stale ones.
    """

    def __init__(
        self,
        template: Optional[CardTemplate],
        on_texture_ready: TextureCallback,
        scale: Optional[float] = None,
    ):
        self.template = template
        self.on_texture_ready = on_texture_ready
        self.scale = settings.CAPTURE_SCALE if scale is None else scale
        self._issued = 0

    @property
    def generation(self) -> int:
        """Generation of the most recently requested capture."""
        return self._issued

    async def capture_texture(self) -> Optional[CaptureArtifact]:
        template = self.template
        if template is None:
            logger.warning("[capture] no template attached; skipping capture")
            return None

        self._issued += 1
        generation = self._issued
        user_name = template.user_name
        try:
            image = await asyncio.to_thread(template.rasterize, user_name, self.scale)
        except Exception:
            logger.warning("[capture] rasterization failed for generation %s", generation, exc_info=True)
            return None

        artifact = CaptureArtifact(image=image, generation=generation)
        logger.debug("[capture] generation %s ready (%sx%s)", generation, *image.size)
        self.on_texture_ready(artifact)
        return artifact


def create_texture_capture(
    template: Optional[CardTemplate],
    on_texture_ready: TextureCallback,
    scale: Optional[float] = None,
) -> TextureCaptureService:
    return TextureCaptureService(template, on_texture_ready, scale=scale)
