"""Card palettes, one per variant."""

from __future__ import annotations

from domain.models import RenderTheme, Variant

THEMES: dict[Variant, RenderTheme] = {
    Variant.DARK: RenderTheme(
        background="#0a0a0a",
        foreground="#ffffff",
        muted="#878787",
        accent="#1a1a1a",
        border="#333333",
    ),
    Variant.LIGHT: RenderTheme(
        background="#fafafa",
        foreground="#000000",
        muted="#666666",
        accent="#f0f0f0",
        border="#dddddd",
    ),
}


def resolve_theme(variant: Variant | str) -> RenderTheme:
    return THEMES[Variant(variant)]


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    value = value.lstrip("#")
    return tuple(int(value[i : i + 2], 16) for i in (0, 2, 4))  # type: ignore[return-value]


def with_alpha(value: str, opacity: float) -> tuple[int, int, int, int]:
    r, g, b = hex_to_rgb(value)
    return (r, g, b, int(round(255 * opacity)))
