"""Render lanyard previews and cards from the command line.

Usage:
    python -m scripts.render_lanyard preview --token <u> [--preset og|social] [--out preview.png]
    python -m scripts.render_lanyard preview --name ADA --variant light
    python -m scripts.render_lanyard card --name ADA [--background bg.webp] [--out-dir exports]

`preview` renders the same image the unfurl endpoints serve. `card` runs the
interactive pipeline headless: apply the name, capture the texture, mount it
on the flat surface and export the composite.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from pathlib import Path
from typing import List, Optional

from domain.models import ExportConfig, IdentityToken, PreviewPreset, Variant
from services.assets import BackgroundAsset
from services.card_controls import CardController
from services.card_surface import FlatCardSurface
from services.card_template import CardTemplate
from services.export_compositor import export_filename, safe_file_stem
from services.lanyard_token import decode_token, encode_token
from services.preview_renderer import render_preview
from settings import settings

logger = logging.getLogger("render_lanyard")


def _preview(args: argparse.Namespace) -> int:
    if args.token:
        identity = decode_token(args.token)
        if identity is None:
            logger.warning("Token did not decode; rendering the default attendee")
    elif args.name:
        identity = IdentityToken(username=args.name, variant=Variant(args.variant))
        logger.info("Token: %s", encode_token(identity))
    else:
        identity = None

    preset = PreviewPreset(args.preset)
    out = Path(args.out or f"preview-{preset.value}.png")
    out.parent.mkdir(parents=True, exist_ok=True)
    render_preview(identity, preset).save(out, format="PNG")
    logger.info("Wrote %s", out)
    return 0


async def _run_card(args: argparse.Namespace) -> Optional[Path]:
    controller = CardController(
        surface=FlatCardSurface(size=(args.width, args.height)),
        background=BackgroundAsset(args.background),
        template=CardTemplate.with_icon_source(args.icon),
        export_config=ExportConfig(crop_fraction=args.crop, output_scale=args.scale),
    )
    await controller.start()
    await controller.background.wait()
    if not controller.edit(args.name):
        logger.error("Name is longer than %s characters", controller.max_length)
        return None
    await controller.apply()

    exported = await controller.export()
    if exported is None:
        logger.error("Nothing to export")
        return None
    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = safe_file_stem(controller.draft.applied_name)
    out = out_dir / export_filename(stem)
    out.write_bytes(exported.data)
    if args.texture and controller.texture is not None:
        controller.texture.image.save(out_dir / f"texture-{stem}.png")
    return out


def _card(args: argparse.Namespace) -> int:
    out = asyncio.run(_run_card(args))
    if out is None:
        return 1
    logger.info("Wrote %s", out)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    if not logger.handlers:
        logging.basicConfig(level=settings.LOG_LEVEL, format="%(message)s")
    parser = argparse.ArgumentParser(description="Render lanyard previews and cards.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("preview", help="Render a social preview image.")
    p.add_argument("--token", default=None, help="Share token (the `u` query value).")
    p.add_argument("--name", default=None, help="Attendee name; ignored when --token is given.")
    p.add_argument("--variant", choices=[v.value for v in Variant], default=Variant.DARK.value)
    p.add_argument("--preset", choices=[preset.value for preset in PreviewPreset], default=PreviewPreset.OG.value)
    p.add_argument("--out", default=None)
    p.set_defaults(func=_preview)

    c = sub.add_parser("card", help="Apply a name and export the composited card.")
    c.add_argument("--name", required=True)
    c.add_argument("--icon", default=None, help="Icon path or URL (defaults to LANYARD_ICON_SOURCE).")
    c.add_argument("--background", default=None, help="Background path or URL (defaults to LANYARD_BACKGROUND_SOURCE).")
    c.add_argument("--width", type=int, default=1280)
    c.add_argument("--height", type=int, default=720)
    c.add_argument("--crop", type=float, default=settings.EXPORT_CROP_FRACTION)
    c.add_argument("--scale", type=float, default=settings.EXPORT_OUTPUT_SCALE)
    c.add_argument("--out-dir", default="exports")
    c.add_argument("--texture", action="store_true", help="Also save the captured card texture.")
    c.set_defaults(func=_card)

    args = parser.parse_args(argv)
    if args.command == "card" and not (0 < args.crop <= 1 and args.scale > 0 and math.isfinite(args.scale)):
        parser.error("--crop must be in (0, 1] and --scale must be a finite positive number")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
