"""
Export compositor.

Crops the centre of the live render surface, upsamples it, and layers it over
the background image to produce the downloadable card.
"""
import logging
import re
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image

from domain.models import ExportConfig, ExportedImage
from services.assets import BackgroundAsset

logger = logging.getLogger(__name__)

Rect = Tuple[float, float, float, float]  # x, y, width, height


def crop_rect(width: float, height: float, crop_fraction: float) -> Rect:
    """Centered sub-rectangle covering `crop_fraction` of each dimension."""
    crop_w = width * crop_fraction
    crop_h = height * crop_fraction
    return ((width - crop_w) / 2, (height - crop_h) / 2, crop_w, crop_h)


def output_size(crop_w: float, crop_h: float, output_scale: float) -> Tuple[int, int]:
    return (max(1, int(round(crop_w * output_scale))), max(1, int(round(crop_h * output_scale))))


def cover_rect(bg_w: float, bg_h: float, out_w: float, out_h: float) -> Rect:
    """
    Where to draw a background so it covers the whole output, keeping aspect.

    A relatively wider background matches the output height and is centre
    cropped horizontally; otherwise it matches the width and is cropped
    vertically.
    """
    bg_aspect = bg_w / bg_h
    out_aspect = out_w / out_h
    if bg_aspect > out_aspect:
        draw_h = out_h
        draw_w = out_h * bg_aspect
        return ((out_w - draw_w) / 2, 0.0, draw_w, draw_h)
    draw_w = out_w
    draw_h = out_w / bg_aspect
    return (0.0, (out_h - draw_h) / 2, draw_w, draw_h)


def export_filename(applied_name: Optional[str]) -> str:
    return f"lanyard-{applied_name or 'card'}.png"


_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w.-]+")


def safe_file_stem(applied_name: Optional[str]) -> str:
    """Name usable as a single path component; separators and dot prefixes are stripped."""
    stem = _UNSAFE_FILENAME_CHARS.sub("_", applied_name or "").strip("._")
    return stem or "card"


def _background_layer(image: Image.Image, out_w: int, out_h: int) -> Image.Image:
    bg_w, bg_h = image.size
    dx, dy, dw, dh = cover_rect(bg_w, bg_h, out_w, out_h)
    # Map the output canvas back into background pixel space
    sx = bg_w / dw
    sy = bg_h / dh
    box = (-dx * sx, -dy * sy, (out_w - dx) * sx, (out_h - dy) * sy)
    return image.convert("RGBA").resize((out_w, out_h), Image.Resampling.LANCZOS, box=box)


def export_composite(
    surface_pixels: Optional[Image.Image],
    background: Optional[BackgroundAsset],
    config: ExportConfig,
    applied_name: Optional[str] = None,
) -> Optional[ExportedImage]:
    """
    Composite the cropped surface over the background and encode it as PNG.

    Returns None (and produces nothing) when there is no surface to read.
    Without an available background only the surface is drawn.
    """
    if surface_pixels is None:
        logger.info("[export] no surface pixels; nothing to export")
        return None
    width, height = surface_pixels.size
    if not width or not height:
        logger.info("[export] empty surface; nothing to export")
        return None

    try:
        crop_x, crop_y, crop_w, crop_h = crop_rect(width, height, config.crop_fraction)
        out_w, out_h = output_size(crop_w, crop_h, config.output_scale)
        canvas = Image.new("RGBA", (out_w, out_h), (0, 0, 0, 0))
        if background is not None and background.available:
            canvas.alpha_composite(_background_layer(background.image, out_w, out_h))

        foreground = surface_pixels.convert("RGBA").resize(
            (out_w, out_h),
            Image.Resampling.LANCZOS,
            box=(crop_x, crop_y, crop_x + crop_w, crop_y + crop_h),
        )
        canvas.alpha_composite(foreground)

        buf = BytesIO()
        canvas.save(buf, format="PNG")
    except (OSError, ValueError, OverflowError, MemoryError):
        logger.warning("[export] compositing failed for %sx%s surface", width, height, exc_info=True)
        return None

    return ExportedImage(
        filename=export_filename(applied_name),
        data=buf.getvalue(),
        width=out_w,
        height=out_h,
    )
