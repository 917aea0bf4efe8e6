from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import UUID, uuid4

from fastapi import Request

from .schemas import CharacterRecord, CharacterUpdate, SkillName, SkillRecord
from .settings import Settings

# Fate Core default skill list, used when no database is configured.
DEFAULT_SKILLS = (
    "Athletics", "Burglary", "Contacts", "Crafts", "Deceive", "Drive",
    "Empathy", "Fight", "Investigate", "Lore", "Notice", "Physique",
    "Provoke", "Rapport", "Resources", "Shoot", "Stealth", "Will",
)


# PUBLIC_INTERFACE
class TodoStore(ABC):
    """Abstract storage contract for todo items."""

    @abstractmethod
    async def append(self, item: str) -> UUID:
        """Store a todo at the end of the list and return its identifier."""

    @abstractmethod
    async def list_all(self) -> List[str]:
        """Return every todo in submission order."""


class InMemoryTodoStore(TodoStore):
    """
    In-process todo list guarded by an asyncio lock. Lives as long as the app.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._items: List[str] = []

    async def append(self, item: str) -> UUID:
        # The identifier is not kept next to the item.
        todo_id = uuid4()
        async with self._lock:
            self._items.append(item)
        return todo_id

    async def list_all(self) -> List[str]:
        async with self._lock:
            return list(self._items)


# PUBLIC_INTERFACE
class CharacterRepository(ABC):
    """Abstract storage contract for character sheets."""

    @abstractmethod
    async def get_character(self, character_id: UUID) -> Optional[CharacterRecord]:
        """Return the raw character record, or None if not found."""

    @abstractmethod
    async def allowed_skills(self) -> List[str]:
        """Return every allowed skill name in alphabetical order."""

    @abstractmethod
    async def update_character(self, character_id: UUID, update: CharacterUpdate) -> bool:
        """Replace the editable fields of a character. Return False if not found."""


class InMemoryCharacterRepository(CharacterRepository):
    """
    Dict-backed character storage for the `memory` backend and for tests.
    """

    def __init__(
        self,
        records: Optional[Mapping[UUID, CharacterRecord]] = None,
        allowed_skills: Iterable[str] = DEFAULT_SKILLS,
    ) -> None:
        self._lock = asyncio.Lock()
        self._records: Dict[UUID, CharacterRecord] = dict(records or {})
        self._skills = sorted(allowed_skills)

    def add(self, record: CharacterRecord, character_id: Optional[UUID] = None) -> UUID:
        """Seed a character and return its id."""
        cid = character_id or uuid4()
        self._records[cid] = record
        return cid

    async def get_character(self, character_id: UUID) -> Optional[CharacterRecord]:
        async with self._lock:
            record = self._records.get(character_id)
            return None if record is None else record.model_copy(deep=True)

    async def allowed_skills(self) -> List[str]:
        return list(self._skills)

    async def update_character(self, character_id: UUID, update: CharacterUpdate) -> bool:
        async with self._lock:
            if character_id not in self._records:
                return False
            self._records[character_id] = CharacterRecord(
                name=update.name,
                stunts=list(update.stunts),
                aspects=[a.model_copy() for a in update.aspects],
                skills=[
                    SkillRecord(name=SkillName(name=s.name), level=s.rating)
                    for s in update.skills
                ],
            )
            return True


@dataclass
class Stores:
    """
    The storage objects shared by every request, created once at startup.

    `client` is the EdgeDB client when the `edgedb` backend is configured.
    """

    todos: TodoStore
    characters: CharacterRepository
    client: Optional[Any] = None

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()


# PUBLIC_INTERFACE
def create_stores(settings: Settings) -> Stores:
    """
    Factory to build the configured storage backends.
    - memory: InMemoryTodoStore + InMemoryCharacterRepository
    - edgedb: EdgeDBTodoStore + EdgeDBCharacterRepository sharing one client
    """
    if settings.persistence_backend == "edgedb":
        from .db import EdgeDBCharacterRepository, EdgeDBTodoStore, create_db_client

        client = create_db_client(settings)
        return Stores(
            todos=EdgeDBTodoStore(client),
            characters=EdgeDBCharacterRepository(client),
            client=client,
        )
    return Stores(todos=InMemoryTodoStore(), characters=InMemoryCharacterRepository())


# PUBLIC_INTERFACE
def get_todo_store(request: Request) -> TodoStore:
    """FastAPI dependency returning the app's todo store."""
    return request.app.state.stores.todos


# PUBLIC_INTERFACE
def get_character_repository(request: Request) -> CharacterRepository:
    """FastAPI dependency returning the app's character repository."""
    return request.app.state.stores.characters
