"""
Core domain models for the lanyard card generator.
These are framework-agnostic and can be used across all services.
"""
import base64
import math
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from typing import Tuple

from PIL import Image


class Variant(str, Enum):
    """Visual theme of a lanyard card. Only these two exist."""
    DARK = "dark"
    LIGHT = "light"


class PreviewPreset(str, Enum):
    """
    Output presets for social preview images.

    Both share one layout; they differ only in canvas size and scale.
    - OG: Open Graph (1200x630)
    - SOCIAL: Twitter summary_large_image (1200x600)
    """
    OG = "og"
    SOCIAL = "social"

    @property
    def size(self) -> Tuple[int, int]:
        return _PRESET_GEOMETRY[self][0]

    @property
    def scale(self) -> float:
        return _PRESET_GEOMETRY[self][1]


_PRESET_GEOMETRY = {
    PreviewPreset.OG: ((1200, 630), 1.0),
    PreviewPreset.SOCIAL: ((1200, 600), 0.875),
}


class CardState(str, Enum):
    """States of the card personalization controls."""
    IDLE = "idle"
    DIRTY = "dirty"
    CAPTURING = "capturing"


class LimitStatus(str, Enum):
    """Character counter affordance. Visual only."""
    OK = "ok"
    NEAR = "near"
    AT = "at"


@dataclass(frozen=True)
class IdentityToken:
    """The attendee identity carried by share tokens."""
    username: str
    variant: Variant = Variant.DARK


DEFAULT_IDENTITY = IdentityToken(username="ATTENDEE", variant=Variant.DARK)


@dataclass(frozen=True)
class RenderTheme:
    """Palette derived from a variant (hex colors)."""
    background: str
    foreground: str
    muted: str
    accent: str
    border: str


@dataclass
class CardDraftState:
    """Draft vs. committed name of the interactive card."""
    draft_name: str = ""
    applied_name: str = ""

    @property
    def is_dirty(self) -> bool:
        return self.draft_name != self.applied_name


@dataclass(frozen=True)
class CaptureArtifact:
    """
    A rasterized card texture.

    generation increases with every capture request so consumers can drop
    results that arrive after a newer one.
    """
    image: Image.Image
    generation: int

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def to_png(self) -> bytes:
        buf = BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()

    def to_data_url(self) -> str:
        b64 = base64.b64encode(self.to_png()).decode("ascii")
        return f"data:image/png;base64,{b64}"


@dataclass(frozen=True)
class ExportConfig:
    """Crop/upscale parameters for exporting the render surface."""
    crop_fraction: float = 0.6
    output_scale: float = 2.0

    def __post_init__(self) -> None:
        if not 0 < self.crop_fraction <= 1:
            raise ValueError(f"crop_fraction must be in (0, 1], got {self.crop_fraction}")
        if not (self.output_scale > 0 and math.isfinite(self.output_scale)):
            raise ValueError(f"output_scale must be a finite positive number, got {self.output_scale}")


@dataclass(frozen=True)
class ExportedImage:
    """A composited export ready to be offered as a download."""
    filename: str
    data: bytes
    width: int
    height: int
    media_type: str = "image/png"
