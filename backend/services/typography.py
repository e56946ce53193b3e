"""
Font loading and text layout helpers shared by the preview renderer and the
card template.
"""
import logging
from functools import lru_cache
from typing import List, Tuple

from PIL import ImageDraw, ImageFont

from settings import settings

logger = logging.getLogger(__name__)

DEFAULT_LINE_HEIGHT = 1.2


@lru_cache(maxsize=128)
def _load_font(font_path: str, size: int):
    try:
        return ImageFont.truetype(font_path, size)
    except OSError:
        logger.debug("Font %s not found, using Pillow default at %spx", font_path, size)
        return ImageFont.load_default(size=size)


def load_font(size: float, bold: bool = False):
    """Monospace font at the given pixel size, falling back to Pillow's default."""
    path = settings.FONT_BOLD_PATH if bold else settings.FONT_PATH
    return _load_font(path, max(1, int(round(size))))


def line_height(size: float, factor: float = DEFAULT_LINE_HEIGHT) -> float:
    return size * factor


def text_width(text: str, font, tracking: float = 0.0) -> float:
    """Advance width of text with extra letter spacing between glyphs."""
    if not text:
        return 0.0
    return font.getlength(text) + tracking * (len(text) - 1)


def draw_text(
    draw: ImageDraw.ImageDraw,
    xy: Tuple[float, float],
    text: str,
    font,
    fill,
    tracking: float = 0.0,
) -> None:
    x, y = xy
    if not tracking:
        draw.text((x, y), text, font=font, fill=fill)
        return
    for ch in text:
        draw.text((x, y), ch, font=font, fill=fill)
        x += font.getlength(ch) + tracking


def _fit_prefix(word: str, font, max_width: float, tracking: float) -> int:
    # At least one glyph per line so wrapping always makes progress.
    n = 1
    while n < len(word) and text_width(word[: n + 1], font, tracking) <= max_width:
        n += 1
    return n


def wrap_text(text: str, font, max_width: float, tracking: float = 0.0) -> List[str]:
    """
    Greedy word wrap that also breaks words wider than the line.

    Mirrors CSS `word-break: break-word`: whole words move to the next line,
    and only a word that cannot fit on a line by itself is split.
    """
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if text_width(candidate, font, tracking) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
            current = ""
        while text_width(word, font, tracking) > max_width:
            cut = _fit_prefix(word, font, max_width, tracking)
            lines.append(word[:cut])
            word = word[cut:]
        current = word
    if current:
        lines.append(current)
    return lines or [""]
