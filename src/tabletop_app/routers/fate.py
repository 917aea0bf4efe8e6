from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, Response

from ..errors import BadInputError, NotFoundError
from ..models import CharacterSheet
from ..rendering import render_template
from ..repositories import CharacterRepository, get_character_repository
from ..schemas import CharacterUpdate
from ..sheets import assemble_character_sheet, parse_editable

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/fate",
    tags=["fate"],
)


async def _load_sheet(repo: CharacterRepository, character_id: UUID, editable: bool) -> CharacterSheet:
    record = await repo.get_character(character_id)
    if record is None:
        raise NotFoundError("Character not found")
    all_skills = await repo.allowed_skills()
    return assemble_character_sheet(record, all_skills, editable)


# PUBLIC_INTERFACE
@router.get(
    "/characters/{character_id}",
    response_class=HTMLResponse,
    summary="Show Character",
    description="Render a character sheet, optionally as an edit form.",
    responses={
        200: {"description": "Character sheet"},
        400: {"description": "Malformed character id"},
        404: {"description": "Character not found"},
        502: {"description": "Storage failure or malformed stored record"},
    },
)
async def show_character(
    request: Request,
    character_id: UUID,
    editable: Optional[str] = Query(None, description="Render the sheet as a form ('true' / 'false')"),
    repo: CharacterRepository = Depends(get_character_repository),
) -> Response:
    sheet = await _load_sheet(repo, character_id, parse_editable(editable))
    return render_template(request, "character-sheet.html", sheet)


# PUBLIC_INTERFACE
@router.post(
    "/characters/{character_id}",
    response_class=HTMLResponse,
    summary="Update Character",
    description=(
        "Replace a character's name, aspects, skills and stunts from the edit form.\n\n"
        "Form fields:\n"
        "- name: character name (required)\n"
        "- aspect / aspect_type: parallel repeated fields; type is High, Trouble or Other\n"
        "- skill / rating: parallel repeated fields; skill must be an allowed skill, rating 0..255\n"
        "- stunt: repeated field\n\n"
        "Returns the read-only sheet as stored after the update."
    ),
    responses={
        200: {"description": "Updated character sheet"},
        400: {"description": "Invalid form"},
        404: {"description": "Character not found"},
        502: {"description": "Storage failure"},
    },
)
async def update_character(
    request: Request,
    character_id: UUID,
    name: str = Form(...),
    aspect: List[str] = Form([]),
    aspect_type: List[str] = Form([]),
    skill: List[str] = Form([]),
    rating: List[str] = Form([]),
    stunt: List[str] = Form([]),
    repo: CharacterRepository = Depends(get_character_repository),
) -> Response:
    try:
        update = CharacterUpdate.from_form(name, aspect, aspect_type, skill, rating, stunt)
    except ValueError as exc:
        raise BadInputError("Invalid character form", detail=str(exc)) from exc

    allowed = set(await repo.allowed_skills())
    unknown = [s.name for s in update.skills if s.name not in allowed]
    if unknown:
        raise BadInputError("Unknown skills", detail=unknown)

    if not await repo.update_character(character_id, update):
        raise NotFoundError("Character not found")
    logger.info("Updated character %s", character_id)

    sheet = await _load_sheet(repo, character_id, editable=False)
    return render_template(request, "character-sheet.html", sheet)
