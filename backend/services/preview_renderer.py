"""
Social preview renderer using Pillow.

Generates the link-unfurl image for an attendee: event branding, the
attendee's name and a lanyard card mock on the right. The Open Graph and
Twitter variants share one layout; every measurement is defined once at OG
scale and multiplied by the preset scale.
"""
import logging
from dataclasses import dataclass, field, fields, replace
from io import BytesIO
from typing import List, Optional, Tuple, Union

from PIL import Image, ImageDraw

from domain.models import DEFAULT_IDENTITY, IdentityToken, PreviewPreset, RenderTheme
from services.themes import resolve_theme, with_alpha
from services.typography import draw_text, line_height, load_font, text_width, wrap_text
from settings import settings

logger = logging.getLogger(__name__)

CARD_LABEL_MAX_CHARS = 15
ELLIPSIS = "..."
HEADLINE_LINE_HEIGHT = 1.1
PATTERN_OPACITY = 0.3


@dataclass(frozen=True)
class LayoutMetrics:
    """Pixel measurements at scale 1.0 (the 1200x630 Open Graph canvas)."""
    padding_x: float = 60
    padding_y: float = 60
    brand_size: float = 48
    tagline_size: float = 20
    brand_gap: float = 8
    headline_size: float = 64
    headline_max_width: float = 500
    headline_gap: float = 12
    rule_width: float = 80
    rule_height: float = 4
    city_size: float = 28
    date_size: float = 20
    meta_gap: float = 4
    right_width: float = 400
    strap_width: float = 4
    strap_height: float = 60
    strap_gap: float = 20
    card_width: float = 280
    card_height: float = 380
    card_radius: float = 16
    card_padding: float = 32
    card_border: float = 2
    card_city_size: float = 18
    card_date_size: float = 14
    card_meta_gap: float = 4
    pattern_cell: float = 32
    pattern_gap: float = 8
    pattern_radius: float = 4
    card_name_size: float = 16

    def scaled(self, scale: float) -> "LayoutMetrics":
        return replace(self, **{f.name: getattr(self, f.name) * scale for f in fields(self)})


BASE_METRICS = LayoutMetrics()


@dataclass(frozen=True)
class TextElement:
    role: str
    text: str
    x: float
    y: float
    size: float
    bold: bool
    color: str
    tracking: float = 0.0
    line_height: float = 0.0


@dataclass(frozen=True)
class BoxElement:
    role: str
    box: Tuple[float, float, float, float]
    fill: Union[str, Tuple[int, int, int, int], None]
    outline: Optional[str] = None
    outline_width: float = 0
    radius: float = 0


Element = Union[TextElement, BoxElement]


@dataclass
class PreviewLayout:
    size: Tuple[int, int]
    identity: IdentityToken
    theme: RenderTheme
    headline_lines: List[str]
    card_label: str
    elements: List[Element] = field(default_factory=list)

    def find(self, role: str) -> List[Element]:
        return [el for el in self.elements if el.role == role]


def truncate_card_label(username: str, limit: int = CARD_LABEL_MAX_CHARS) -> str:
    """Card corner label: the first `limit` characters plus an ellipsis when longer."""
    if len(username) > limit:
        return username[:limit] + ELLIPSIS
    return username


def _text(role, text, x, y, size, bold, color, tracking_em=0.0, lh_factor=None) -> TextElement:
    lh = line_height(size) if lh_factor is None else line_height(size, lh_factor)
    return TextElement(
        role=role,
        text=text,
        x=x,
        y=y,
        size=size,
        bold=bold,
        color=color,
        tracking=tracking_em * size,
        line_height=lh,
    )


def compose_preview(
    identity: Optional[IdentityToken],
    preset: PreviewPreset = PreviewPreset.OG,
) -> PreviewLayout:
    """
    Lay out a preview without drawing it.

    A missing identity (or one with an empty username) falls back to the
    default attendee so the preview always has a headline.
    """
    identity = identity or DEFAULT_IDENTITY
    username = identity.username or DEFAULT_IDENTITY.username
    theme = resolve_theme(identity.variant)
    width, height = preset.size
    m = BASE_METRICS.scaled(preset.scale)

    elements: List[Element] = []
    left = m.padding_x
    top = m.padding_y
    bottom = height - m.padding_y
    right_col_x = width - m.padding_x - m.right_width
    column_width = right_col_x - left

    # Left column, top: event branding
    brand = _text("brand", settings.EVENT_NAME, left, top, m.brand_size, True, theme.foreground, -0.02)
    tagline_y = top + brand.line_height + m.brand_gap
    tagline = _text("tagline", settings.EVENT_TAGLINE.upper(), left, tagline_y, m.tagline_size, False, theme.muted, 0.1)
    elements += [brand, tagline]
    top_end = tagline_y + tagline.line_height

    # Left column, bottom: city and date
    date_y = bottom - line_height(m.date_size)
    city_y = date_y - m.meta_gap - line_height(m.city_size)
    city = _text("city", settings.EVENT_CITY.upper(), left, city_y, m.city_size, True, theme.foreground, 0.05)
    date = _text("date", settings.EVENT_DATE.upper(), left, date_y, m.date_size, False, theme.muted, 0.1)

    # Left column, middle: the attendee name, wrapped within the max width
    headline_font = load_font(m.headline_size, bold=True)
    headline_tracking = -0.02 * m.headline_size
    max_width = min(m.headline_max_width, column_width)
    lines = wrap_text(username.upper(), headline_font, max_width, headline_tracking)
    headline_lh = line_height(m.headline_size, HEADLINE_LINE_HEIGHT)
    block_height = len(lines) * headline_lh + m.headline_gap + m.rule_height
    y = top_end + max(city_y - top_end - block_height, 0) / 2
    for line in lines:
        elements.append(
            _text("headline", line, left, y, m.headline_size, True, theme.foreground, -0.02, HEADLINE_LINE_HEIGHT)
        )
        y += headline_lh
    y += m.headline_gap
    elements.append(BoxElement("rule", (left, y, left + m.rule_width, y + m.rule_height), theme.foreground))
    elements += [city, date]

    # Right column: strap and card, centered
    center_x = right_col_x + m.right_width / 2
    group_height = m.strap_height + m.strap_gap + m.card_height
    group_y = top + (bottom - top - group_height) / 2
    elements.append(
        BoxElement(
            "strap",
            (center_x - m.strap_width / 2, group_y, center_x + m.strap_width / 2, group_y + m.strap_height),
            theme.muted,
        )
    )
    card_x0 = center_x - m.card_width / 2
    card_y0 = group_y + m.strap_height + m.strap_gap
    card_x1 = card_x0 + m.card_width
    card_y1 = card_y0 + m.card_height
    elements.append(
        BoxElement(
            "card",
            (card_x0, card_y0, card_x1, card_y1),
            theme.accent,
            outline=theme.border,
            outline_width=m.card_border,
            radius=m.card_radius,
        )
    )

    inner_x0 = card_x0 + m.card_padding
    inner_y0 = card_y0 + m.card_padding
    inner_x1 = card_x1 - m.card_padding
    inner_y1 = card_y1 - m.card_padding
    card_city = _text("card_city", settings.EVENT_CITY.upper(), inner_x0, inner_y0, m.card_city_size, True, theme.foreground, 0.05)
    card_date_y = inner_y0 + card_city.line_height + m.card_meta_gap
    card_date = _text("card_date", settings.EVENT_DATE.upper(), inner_x0, card_date_y, m.card_date_size, False, theme.muted)
    elements += [card_city, card_date]
    meta_end = card_date_y + card_date.line_height

    label = truncate_card_label(username).upper()
    label_font = load_font(m.card_name_size, bold=True)
    label_tracking = 0.02 * m.card_name_size
    label_x = inner_x1 - text_width(label, label_font, label_tracking)
    label_y = inner_y1 - line_height(m.card_name_size)

    # 3x3 pattern centered between the card header and the name
    pattern_size = 3 * m.pattern_cell + 2 * m.pattern_gap
    pattern_x = (inner_x0 + inner_x1) / 2 - pattern_size / 2
    pattern_y = meta_end + (label_y - meta_end - pattern_size) / 2
    pattern_fill = with_alpha(theme.foreground, PATTERN_OPACITY)
    for i in range(9):
        if i % 2:
            continue
        row, col = divmod(i, 3)
        x0 = pattern_x + col * (m.pattern_cell + m.pattern_gap)
        y0 = pattern_y + row * (m.pattern_cell + m.pattern_gap)
        elements.append(
            BoxElement("pattern", (x0, y0, x0 + m.pattern_cell, y0 + m.pattern_cell), pattern_fill, radius=m.pattern_radius)
        )

    elements.append(_text("card_label", label, label_x, label_y, m.card_name_size, True, theme.foreground, 0.02))

    return PreviewLayout(
        size=(width, height),
        identity=IdentityToken(username=username, variant=identity.variant),
        theme=theme,
        headline_lines=lines,
        card_label=label,
        elements=elements,
    )


def _ibox(box: Tuple[float, float, float, float]) -> Tuple[int, int, int, int]:
    x0, y0, x1, y1 = (int(round(v)) for v in box)
    return (x0, y0, max(x1, x0), max(y1, y0))


def _draw_element(draw: ImageDraw.ImageDraw, el: Element) -> None:
    if isinstance(el, BoxElement):
        draw.rounded_rectangle(
            _ibox(el.box),
            radius=int(round(el.radius)),
            fill=el.fill,
            outline=el.outline,
            width=max(1, int(round(el.outline_width))) if el.outline else 0,
        )
        return
    font = load_font(el.size, bold=el.bold)
    y = el.y + (el.line_height - el.size) / 2
    draw_text(draw, (el.x, y), el.text, font, el.color, tracking=el.tracking)


def render_preview(
    identity: Optional[IdentityToken],
    preset: PreviewPreset = PreviewPreset.OG,
) -> Image.Image:
    """Render the preview image. Pure: same inputs give the same pixels."""
    layout = compose_preview(identity, preset)
    image = Image.new("RGB", layout.size, layout.theme.background)
    draw = ImageDraw.Draw(image, "RGBA")
    for el in layout.elements:
        _draw_element(draw, el)
    return image


def render_preview_png(
    identity: Optional[IdentityToken],
    preset: PreviewPreset = PreviewPreset.OG,
) -> bytes:
    buf = BytesIO()
    render_preview(identity, preset).save(buf, format="PNG")
    return buf.getvalue()
