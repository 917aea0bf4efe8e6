from __future__ import annotations

from enum import Enum
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_RATING = 255


# PUBLIC_INTERFACE
class AspectType(str, Enum):
    """
    Aspect category as stored in the database.

    Declaration order is display order: the high concept (primary) first,
    then the trouble (complicating), then everything else.
    """

    HIGH = "High"
    TROUBLE = "Trouble"
    OTHER = "Other"

    @property
    def rank(self) -> int:
        return list(AspectType).index(self)


class SkillName(BaseModel):
    name: str


class SkillRecord(BaseModel):
    """A skill as returned by the character query: `{name: {name}, level}`."""

    name: SkillName
    level: int


class AspectRecord(BaseModel):
    description: str
    aspect_type: AspectType


# PUBLIC_INTERFACE
class CharacterRecord(BaseModel):
    """
    Raw `fate::PC` record before it is reshaped for the character sheet.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Zird the Arcane",
                "stunts": ["Scholar of the Old Ways"],
                "skills": [{"name": {"name": "Lore"}, "level": 4}],
                "aspects": [
                    {"description": "Rival of the Collegia Arcana", "aspect_type": "Trouble"},
                    {"description": "Wizard for hire", "aspect_type": "High"},
                ],
            }
        }
    )

    name: str
    stunts: List[str] = Field(default_factory=list)
    skills: List[SkillRecord] = Field(default_factory=list)
    aspects: List[AspectRecord] = Field(default_factory=list)


class SkillUpdate(BaseModel):
    name: str = Field(..., min_length=1)
    rating: int = Field(..., ge=0, le=MAX_RATING)


# PUBLIC_INTERFACE
class CharacterUpdate(BaseModel):
    """
    Full replacement of a character's editable fields, as submitted by the
    editable character sheet.
    """

    name: str = Field(..., min_length=1, max_length=200)
    aspects: List[AspectRecord] = Field(default_factory=list)
    skills: List[SkillUpdate] = Field(default_factory=list)
    stunts: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("name must not be blank")
        return s

    @classmethod
    def from_form(
        cls,
        name: str,
        aspects: Sequence[str],
        aspect_types: Sequence[str],
        skills: Sequence[str],
        ratings: Sequence[str],
        stunts: Sequence[str],
    ) -> "CharacterUpdate":
        """
        Build an update from the repeated form fields of the sheet.

        `aspects`/`aspect_types` and `skills`/`ratings` are parallel lists.
        Rows whose text is blank are dropped, so empty "add another" inputs
        can be submitted as-is.

        Raises:
            ValueError (or pydantic's ValidationError) on malformed input.
        """
        if len(aspects) != len(aspect_types):
            raise ValueError("every aspect needs exactly one aspect_type")
        if len(skills) != len(ratings):
            raise ValueError("every skill needs exactly one rating")

        names = [s.strip() for s in skills if s.strip()]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"skills listed more than once: {', '.join(duplicates)}")

        return cls.model_validate(
            {
                "name": name,
                "aspects": [
                    {"description": d.strip(), "aspect_type": t}
                    for d, t in zip(aspects, aspect_types)
                    if d.strip()
                ],
                "skills": [
                    {"name": s.strip(), "rating": r.strip()}
                    for s, r in zip(skills, ratings)
                    if s.strip()
                ],
                "stunts": [s.strip() for s in stunts if s.strip()],
            }
        )
