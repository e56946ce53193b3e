"""
Interactive card session routes.

Each session owns a CardController bound to its own render surface. Sessions
live in memory; beyond MAX_SESSIONS the least recently used one is evicted
and its surface disposed. The export background is shared by every session and
loaded once at startup.
"""
import logging
import uuid
from collections import OrderedDict
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Query, Response
from pydantic import BaseModel

from domain.models import ExportConfig
from services.assets import BackgroundAsset
from services.card_controls import CardController
from services.card_surface import FlatCardSurface
from services.card_template import CardTemplate
from settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()
background = BackgroundAsset()
_sessions: "OrderedDict[str, CardController]" = OrderedDict()


class SessionCreate(BaseModel):
    default_name: str = ""


class DraftUpdate(BaseModel):
    name: str


class SessionResponse(BaseModel):
    session_id: str
    state: str
    draft_name: str
    applied_name: str
    can_apply: bool
    character_count: int
    max_length: int
    limit_status: str
    generation: int
    accepted: Optional[bool] = None


def session_to_response(session_id: str, controller: CardController, accepted: Optional[bool] = None) -> SessionResponse:
    return SessionResponse(
        session_id=session_id,
        state=controller.state.value,
        draft_name=controller.draft.draft_name,
        applied_name=controller.draft.applied_name,
        can_apply=controller.can_apply,
        character_count=controller.character_count,
        max_length=controller.max_length,
        limit_status=controller.limit_status.value,
        generation=controller.displayed_generation,
        accepted=accepted,
    )


def _get_session(session_id: str) -> CardController:
    controller = _sessions.get(session_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="Session not found")
    _sessions.move_to_end(session_id)
    return controller


def _store_session(session_id: str, controller: CardController) -> None:
    """Insert a session, evicting the least recently used ones beyond MAX_SESSIONS."""
    _sessions[session_id] = controller
    while len(_sessions) > max(1, settings.MAX_SESSIONS):
        evicted_id, evicted = _sessions.popitem(last=False)
        evicted.surface.dispose()
        logger.info("[sessions] evicted idle session %s", evicted_id)


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(body: Optional[SessionCreate] = None):
    """Start a personalization session with a fresh surface."""
    default_name = body.default_name if body else ""
    if len(default_name) > settings.MAX_NAME_LENGTH:
        raise HTTPException(status_code=422, detail=f"default_name must be at most {settings.MAX_NAME_LENGTH} characters")
    controller = CardController(
        surface=FlatCardSurface(),
        background=background,
        template=CardTemplate.with_icon_source(),
        default_name=default_name,
    )
    await controller.start()
    session_id = str(uuid.uuid4())
    _store_session(session_id, controller)
    return session_to_response(session_id, controller)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return session_to_response(session_id, _get_session(session_id))


@router.put("/{session_id}/draft", response_model=SessionResponse)
async def update_draft(session_id: str, body: DraftUpdate):
    """Edit the draft name. Over-long names are rejected and leave the draft as is."""
    controller = _get_session(session_id)
    accepted = controller.edit(body.name)
    return session_to_response(session_id, controller, accepted=accepted)


@router.post("/{session_id}/apply", response_model=SessionResponse)
async def apply_draft(session_id: str):
    """Commit the draft and capture a new card texture."""
    controller = _get_session(session_id)
    await controller.apply()
    return session_to_response(session_id, controller)


@router.get("/{session_id}/texture")
async def get_texture(session_id: str):
    controller = _get_session(session_id)
    if controller.texture is None:
        raise HTTPException(status_code=404, detail="No texture captured yet")
    return Response(content=controller.texture.to_png(), media_type="image/png")


@router.get("/{session_id}/export")
async def export_card(
    session_id: str,
    crop_fraction: Optional[float] = Query(None, gt=0, le=1),
    output_scale: Optional[float] = Query(None, gt=0, allow_inf_nan=False),
):
    """Composite the current surface over the background as a PNG download."""
    controller = _get_session(session_id)
    config = ExportConfig(
        crop_fraction=crop_fraction if crop_fraction is not None else controller.export_config.crop_fraction,
        output_scale=output_scale if output_scale is not None else controller.export_config.output_scale,
    )
    exported = await controller.export(config)
    if exported is None:
        return Response(status_code=204)
    disposition = f"attachment; filename*=UTF-8''{quote(exported.filename)}"
    return Response(
        content=exported.data,
        media_type=exported.media_type,
        headers={"Content-Disposition": disposition},
    )


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str):
    controller = _sessions.pop(session_id, None)
    if controller is None:
        raise HTTPException(status_code=404, detail="Session not found")
    controller.surface.dispose()
    return Response(status_code=204)
