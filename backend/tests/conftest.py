import sys
from pathlib import Path

import pytest
from PIL import Image

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


def _make_png(path: Path, size=(40, 40), color=(200, 30, 30, 255)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGBA", size, color).save(path, format="PNG")
    return path


@pytest.fixture
def make_png():
    return _make_png


@pytest.fixture
def red_icon(tmp_path) -> Path:
    return _make_png(tmp_path / "icon.png", (16, 16), (255, 0, 0, 255))


@pytest.fixture
def no_assets(monkeypatch, tmp_path):
    """Point icon/background settings at paths that do not exist."""
    from settings import settings

    monkeypatch.setattr(settings, "ICON_SOURCE", str(tmp_path / "missing-icon.png"))
    monkeypatch.setattr(settings, "BACKGROUND_SOURCE", str(tmp_path / "missing-bg.webp"))
