from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


# PUBLIC_INTERFACE
@dataclass
class TodoList:
    """
    View-model for the home page and the todo-list fragment.

    Fields:
    - todos: todo texts in submission order
    """

    todos: List[str] = field(default_factory=list)


@dataclass
class AnotherPage:
    """The static page has no data."""


@dataclass
class Skill:
    name: str
    rating: int


@dataclass
class Character:
    name: str
    aspects: List[str] = field(default_factory=list)
    skills: List[Skill] = field(default_factory=list)
    stunts: List[str] = field(default_factory=list)


# PUBLIC_INTERFACE
@dataclass
class CharacterSheet:
    """
    View-model for `character-sheet.html`.

    Fields:
    - character: flattened character (aspects already in display order)
    - aspect_types: category of each entry in character.aspects, same order
    - all_skills: every allowed skill name, alphabetical, for the skill picker
    - editable: render form inputs instead of plain text
    """

    character: Character
    aspect_types: List[str] = field(default_factory=list)
    all_skills: List[str] = field(default_factory=list)
    editable: bool = False
