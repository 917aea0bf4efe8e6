"""
Reshape raw character records into the character-sheet view-model.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .errors import InvalidRecordError
from .models import Character, CharacterSheet, Skill
from .schemas import MAX_RATING, AspectRecord, CharacterRecord, SkillRecord
from .settings import parse_bool


# PUBLIC_INTERFACE
def sort_aspects(aspects: Iterable[AspectRecord]) -> List[AspectRecord]:
    """Order aspects High, Trouble, Other, keeping input order within a category."""
    return sorted(aspects, key=lambda a: a.aspect_type.rank)


# PUBLIC_INTERFACE
def to_skill(record: SkillRecord) -> Skill:
    """
    Flatten `{name: {name}, level}` into a Skill.

    Raises:
        InvalidRecordError if the level does not fit a 0..255 rating.
    """
    if not 0 <= record.level <= MAX_RATING:
        raise InvalidRecordError(
            f"Skill {record.name.name!r} has level {record.level}, "
            f"expected 0..{MAX_RATING}"
        )
    return Skill(name=record.name.name, rating=record.level)


# PUBLIC_INTERFACE
def parse_editable(raw: Optional[str]) -> bool:
    """Read the `editable` query flag. Missing or unparseable means False."""
    if raw is None:
        return False
    return parse_bool(raw, False)


# PUBLIC_INTERFACE
def assemble_character_sheet(
    record: CharacterRecord,
    all_skills: Sequence[str],
    editable: bool = False,
) -> CharacterSheet:
    """Build the character-sheet view-model from a raw record."""
    aspects = sort_aspects(record.aspects)
    character = Character(
        name=record.name,
        aspects=[a.description for a in aspects],
        skills=[to_skill(s) for s in record.skills],
        stunts=list(record.stunts),
    )
    return CharacterSheet(
        character=character,
        aspect_types=[a.aspect_type.value for a in aspects],
        all_skills=list(all_skills),
        editable=editable,
    )
