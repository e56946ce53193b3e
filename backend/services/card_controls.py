"""
Card personalization controls.

Glue between the name input, the texture capture and the render surface:

    idle      draft == applied, apply disabled
    dirty     draft != applied, apply (or Enter) commits
    capturing a committed name is being rasterized

Rapid repeated commits are not coalesced: every capture runs to completion,
the newest generation wins the surface, and only the newest commit updates
the applied name.
"""
import asyncio
import logging
from typing import Optional

from domain.models import CaptureArtifact, CardDraftState, CardState, ExportConfig, ExportedImage, LimitStatus
from services.assets import BackgroundAsset
from services.card_surface import RenderSurface
from services.card_template import CardTemplate, create_texture_capture
from services.export_compositor import export_composite
from settings import settings

logger = logging.getLogger(__name__)

NEAR_LIMIT_MARGIN = 5


class CardController:
    def __init__(
        self,
        surface: RenderSurface,
        background: Optional[BackgroundAsset] = None,
        template: Optional[CardTemplate] = None,
        default_name: str = "",
        max_length: Optional[int] = None,
        export_config: Optional[ExportConfig] = None,
    ):
        self.max_length = settings.MAX_NAME_LENGTH if max_length is None else max_length
        self.draft = CardDraftState(draft_name=default_name, applied_name=default_name)
        self.surface = surface
        self.background = background
        self.template = template if template is not None else CardTemplate(user_name=default_name)
        self.template.user_name = default_name
        self.export_config = export_config or ExportConfig(
            crop_fraction=settings.EXPORT_CROP_FRACTION,
            output_scale=settings.EXPORT_OUTPUT_SCALE,
        )
        self.capture = create_texture_capture(self.template, self._on_texture_ready)
        self.texture: Optional[CaptureArtifact] = None
        self._displayed_generation = 0
        self._in_flight = 0
        self._commits = 0

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> CardState:
        if self._in_flight:
            return CardState.CAPTURING
        if self.draft.is_dirty:
            return CardState.DIRTY
        return CardState.IDLE

    @property
    def can_apply(self) -> bool:
        return self.draft.is_dirty

    @property
    def displayed_generation(self) -> int:
        return self._displayed_generation

    @property
    def character_count(self) -> int:
        return len(self.draft.draft_name)

    @property
    def limit_status(self) -> LimitStatus:
        count = self.character_count
        if count >= self.max_length:
            return LimitStatus.AT
        if count >= self.max_length - NEAR_LIMIT_MARGIN:
            return LimitStatus.NEAR
        return LimitStatus.OK

    # -- lifecycle ---------------------------------------------------------

    async def start(self) -> None:
        """Begin loading the background and mount the surface without a texture."""
        if self.background is not None:
            self.background.init()
        self.surface.create(None, self._displayed_generation)

    # -- input -------------------------------------------------------------

    def edit(self, value: str) -> bool:
        """Replace the draft name. Values over the limit are rejected, not truncated."""
        if len(value) > self.max_length:
            return False
        self.draft.draft_name = value
        self.template.user_name = value
        return True

    async def key_down(self, key: str) -> bool:
        if key == "Enter" and self.can_apply:
            return await self.apply()
        return False

    async def apply(self) -> bool:
        """
        Commit the draft and capture a new texture.

        Returns True when this commit's texture reached the surface.
        """
        if not self.can_apply:
            return False

        name = self.draft.draft_name
        self.template.user_name = name
        self._commits += 1
        commit = self._commits
        self._in_flight += 1
        try:
            artifact = await self.capture.capture_texture()
        finally:
            self._in_flight -= 1

        if commit == self._commits:
            self.draft.applied_name = name
        else:
            logger.debug("[controls] commit %s superseded by %s", commit, self._commits)
        return artifact is not None and artifact.generation == self._displayed_generation

    def _on_texture_ready(self, artifact: CaptureArtifact) -> None:
        if artifact.generation <= self._displayed_generation:
            logger.debug(
                "[controls] dropping stale texture generation %s (showing %s)",
                artifact.generation,
                self._displayed_generation,
            )
            return
        self.texture = artifact
        self._displayed_generation = artifact.generation
        # Remount so the surface discards state derived from the old texture
        self.surface.dispose()
        self.surface.create(artifact.image, artifact.generation)

    # -- export ------------------------------------------------------------

    async def export(self, config: Optional[ExportConfig] = None) -> Optional[ExportedImage]:
        """Read the surface and composite it off the event loop."""
        return await asyncio.to_thread(
            self._export_blocking,
            config or self.export_config,
            self.draft.applied_name,
        )

    def _export_blocking(self, config: ExportConfig, applied_name: str) -> Optional[ExportedImage]:
        return export_composite(self.surface.read_pixels(), self.background, config, applied_name)
