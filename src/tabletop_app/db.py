from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional
from uuid import UUID

import edgedb
from pydantic import TypeAdapter, ValidationError

from .errors import StorageError
from .repositories import CharacterRepository, TodoStore
from .schemas import CharacterRecord, CharacterUpdate, SkillName
from .settings import Settings

logger = logging.getLogger(__name__)

INSERT_TODO = """
    with
        msg := <str>$0,
        new := (insert Todos { todo := msg })
    select new.id
"""

SELECT_TODOS = "select Todos.todo"

SELECT_CHARACTER = """
    select fate::PC {
        name,
        stunts,
        skills: { name: { name }, level },
        aspects: { description, aspect_type },
    }
    filter .id = <uuid>$id
"""

SELECT_ALLOWED_SKILLS = "select fate::AllowedSkill { name } order by .name"

# Aspects and skills are replaced wholesale by freshly inserted objects.
UPDATE_CHARACTER = """
    with
        new_aspects := <json>$aspects,
        new_skills := <json>$skills,
        updated := (
            update fate::PC
            filter .id = <uuid>$id
            set {
                name := <str>$name,
                stunts := <array<str>>$stunts,
                aspects := (
                    for a in json_array_unpack(new_aspects) union (
                        insert fate::Aspect {
                            description := <str>a['description'],
                            aspect_type := <fate::AspectType><str>a['aspect_type'],
                        }
                    )
                ),
                skills := (
                    for s in json_array_unpack(new_skills) union (
                        insert fate::Skill {
                            name := assert_exists(assert_single((
                                select fate::AllowedSkill filter .name = <str>s['name']
                            ))),
                            level := <int32>s['level'],
                        }
                    )
                ),
            }
        )
    select updated.id
"""

_skill_names = TypeAdapter(List[SkillName])


# PUBLIC_INTERFACE
def create_db_client(settings: Settings) -> edgedb.AsyncIOClient:
    """
    Create the async EdgeDB client. Connections are opened lazily on the
    first query; transient failures are retried up to DB_RETRY_ATTEMPTS.
    """
    client = edgedb.create_async_client(dsn=settings.edgedb_dsn)
    return client.with_retry_options(
        edgedb.RetryOptions(attempts=settings.db_retry_attempts)
    )


def log_query_error(exc: edgedb.EdgeDBError) -> edgedb.EdgeDBError:
    """Dump what EdgeDB reported about a failed query at debug level."""
    logger.debug(
        "edgedb error: kind=%s code=%s message=%s",
        type(exc).__name__,
        exc.get_code(),
        exc,
        exc_info=exc,
    )
    return exc


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except edgedb.EdgeDBError as exc:
        log_query_error(exc)
        logger.error("Could not %s: %s", action, type(exc).__name__)
        raise StorageError(f"Could not {action}") from exc


class EdgeDBTodoStore(TodoStore):
    """
    Todo storage backed by the `Todos` type. Every call is its own round trip.
    """

    def __init__(self, client: edgedb.AsyncIOClient) -> None:
        self._client = client

    async def append(self, item: str) -> UUID:
        with _storage_errors("save todo"):
            return await self._client.query_required_single(INSERT_TODO, item)

    async def list_all(self) -> List[str]:
        with _storage_errors("load todos"):
            todos = await self._client.query(SELECT_TODOS)
        return list(todos)


class EdgeDBCharacterRepository(CharacterRepository):
    """Character sheets backed by the `fate` module."""

    def __init__(self, client: edgedb.AsyncIOClient) -> None:
        self._client = client

    async def get_character(self, character_id: UUID) -> Optional[CharacterRecord]:
        with _storage_errors("load character"):
            raw = await self._client.query_single_json(SELECT_CHARACTER, id=character_id)
        if raw is None or raw == "null":
            return None
        try:
            return CharacterRecord.model_validate_json(raw)
        except ValidationError as exc:
            logger.error("Malformed character record %s: %s", character_id, exc)
            raise StorageError("Malformed character record") from exc

    async def allowed_skills(self) -> List[str]:
        with _storage_errors("load allowed skills"):
            raw = await self._client.query_json(SELECT_ALLOWED_SKILLS)
        try:
            return [s.name for s in _skill_names.validate_json(raw)]
        except ValidationError as exc:
            logger.error("Malformed allowed skill list: %s", exc)
            raise StorageError("Malformed allowed skill list") from exc

    async def update_character(self, character_id: UUID, update: CharacterUpdate) -> bool:
        aspects = [
            {"description": a.description, "aspect_type": a.aspect_type.value}
            for a in update.aspects
        ]
        skills = [{"name": s.name, "level": s.rating} for s in update.skills]
        with _storage_errors("update character"):
            updated = await self._client.query_single(
                UPDATE_CHARACTER,
                id=character_id,
                name=update.name,
                stunts=list(update.stunts),
                aspects=json.dumps(aspects),
                skills=json.dumps(skills),
            )
        return updated is not None
