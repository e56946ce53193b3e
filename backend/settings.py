import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BASE_DIR = Path(__file__).resolve().parent
ASSETS_DIR = BASE_DIR / "assets"


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        # Event copy shown on previews and cards (static, never user input)
        self.EVENT_NAME: str = os.getenv("LANYARD_EVENT_NAME", "v0 IRL")
        self.EVENT_TAGLINE: str = os.getenv("LANYARD_EVENT_TAGLINE", "Prompt to Production")
        self.EVENT_CITY: str = os.getenv("LANYARD_EVENT_CITY", "GUADALAJARA")
        self.EVENT_DATE: str = os.getenv("LANYARD_EVENT_DATE", "FEBRUARY 2026")

        # Token codec
        self.TOKEN_PREFIX: str = os.getenv("LANYARD_TOKEN_PREFIX", "v0gdl")
        self.SHARE_BASE_URL: str = os.getenv("LANYARD_SHARE_BASE_URL", "http://localhost:3000")

        # Static assets; either a filesystem path or an http(s) URL
        self.ICON_SOURCE: str = os.getenv("LANYARD_ICON_SOURCE", str(ASSETS_DIR / "icon.png"))
        self.BACKGROUND_SOURCE: str = os.getenv("LANYARD_BACKGROUND_SOURCE", str(ASSETS_DIR / "export-bg.webp"))
        self.ASSET_FETCH_TIMEOUT: float = _as_float(os.getenv("LANYARD_ASSET_FETCH_TIMEOUT"), 5.0)
        self.FONT_PATH: str = os.getenv("LANYARD_FONT_PATH", "DejaVuSansMono.ttf")
        self.FONT_BOLD_PATH: str = os.getenv("LANYARD_FONT_BOLD_PATH", "DejaVuSansMono-Bold.ttf")

        # Interactive card
        self.MAX_NAME_LENGTH: int = _as_int(os.getenv("LANYARD_MAX_NAME_LENGTH"), 20)
        self.CAPTURE_SCALE: float = _as_float(os.getenv("LANYARD_CAPTURE_SCALE"), 2.0)
        self.EXPORT_CROP_FRACTION: float = _as_float(os.getenv("LANYARD_EXPORT_CROP_FRACTION"), 0.6)
        self.EXPORT_OUTPUT_SCALE: float = _as_float(os.getenv("LANYARD_EXPORT_OUTPUT_SCALE"), 2.0)
        self.MAX_SESSIONS: int = _as_int(os.getenv("LANYARD_MAX_SESSIONS"), 100)

        # HTTP
        self.PREVIEW_CACHE_SECONDS: int = _as_int(os.getenv("LANYARD_PREVIEW_CACHE_SECONDS"), 86400)
        self.CORS_ALLOW_ALL: bool = _as_bool(os.getenv("LANYARD_CORS_ALLOW_ALL"), True)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
