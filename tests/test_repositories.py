import asyncio
import json
from uuid import UUID, uuid4

import edgedb
import pytest

from tabletop_app.db import EdgeDBCharacterRepository, EdgeDBTodoStore
from tabletop_app.errors import StorageError
from tabletop_app.repositories import InMemoryCharacterRepository, InMemoryTodoStore, create_stores
from tabletop_app.schemas import CharacterRecord, CharacterUpdate
from tabletop_app.settings import Settings

CHARACTER_JSON = json.dumps(
    {
        "name": "Zird the Arcane",
        "stunts": ["Scholar of the Old Ways"],
        "skills": [{"name": {"name": "Lore"}, "level": 4}],
        "aspects": [
            {"description": "Rival of the Collegia Arcana", "aspect_type": "Trouble"},
            {"description": "Wizard for hire", "aspect_type": "High"},
        ],
    }
)


class FakeEdgeDBClient:
    """
    Stands in for edgedb.AsyncIOClient: records every call and answers from
    canned values. `error` is raised by every query when set.
    """

    def __init__(self, character_json="null", skills_json="[]", update_result=None, error=None):
        self.todos = []
        self.calls = []
        self.character_json = character_json
        self.skills_json = skills_json
        self.update_result = update_result
        self.error = error

    def _record(self, method, query, args, kwargs):
        self.calls.append((method, query, args, kwargs))
        if self.error is not None:
            raise self.error

    async def query_required_single(self, query, *args, **kwargs):
        self._record("query_required_single", query, args, kwargs)
        self.todos.append(args[0])
        return uuid4()

    async def query(self, query, *args, **kwargs):
        self._record("query", query, args, kwargs)
        return list(self.todos)

    async def query_single_json(self, query, *args, **kwargs):
        self._record("query_single_json", query, args, kwargs)
        return self.character_json

    async def query_json(self, query, *args, **kwargs):
        self._record("query_json", query, args, kwargs)
        return self.skills_json

    async def query_single(self, query, *args, **kwargs):
        self._record("query_single", query, args, kwargs)
        return self.update_result


async def append_all(store, items):
    ids = [await store.append(item) for item in items]
    return ids, await store.list_all()


class TestInMemoryTodoStore:
    def test_empty_store_lists_nothing(self):
        assert asyncio.run(InMemoryTodoStore().list_all()) == []

    def test_append_then_list_preserves_order(self):
        items = ["Buy milk", "Walk dog", "Buy milk", "File taxes"]
        ids, listed = asyncio.run(append_all(InMemoryTodoStore(), items))
        assert listed == items
        assert len(set(ids)) == len(items)
        assert all(isinstance(i, UUID) for i in ids)

    def test_list_returns_a_copy(self):
        store = InMemoryTodoStore()

        async def scenario():
            await store.append("Buy milk")
            listed = await store.list_all()
            listed.append("sneaky")
            return await store.list_all()

        assert asyncio.run(scenario()) == ["Buy milk"]

    def test_concurrent_appends_are_all_kept(self):
        store = InMemoryTodoStore()

        async def scenario():
            await asyncio.gather(*(store.append(f"todo {i}") for i in range(50)))
            return await store.list_all()

        listed = asyncio.run(scenario())
        assert sorted(listed) == sorted(f"todo {i}" for i in range(50))


class TestEdgeDBTodoStore:
    def test_append_then_list_preserves_order(self):
        client = FakeEdgeDBClient()
        items = ["Buy milk", "Walk dog"]
        ids, listed = asyncio.run(append_all(EdgeDBTodoStore(client), items))
        assert listed == items
        assert len(set(ids)) == 2

    def test_append_passes_text_as_query_argument(self):
        client = FakeEdgeDBClient()
        asyncio.run(EdgeDBTodoStore(client).append("Buy milk"))
        method, query, args, _ = client.calls[0]
        assert method == "query_required_single"
        assert "insert Todos" in query
        assert "Buy milk" not in query
        assert args == ("Buy milk",)

    def test_empty_database_lists_nothing(self):
        assert asyncio.run(EdgeDBTodoStore(FakeEdgeDBClient()).list_all()) == []

    def test_query_errors_become_storage_errors(self):
        client = FakeEdgeDBClient(error=edgedb.ClientConnectionError("connection refused"))
        store = EdgeDBTodoStore(client)
        with pytest.raises(StorageError) as excinfo:
            asyncio.run(store.list_all())
        assert excinfo.value.message == "Could not load todos"
        assert "select" not in excinfo.value.message
        assert isinstance(excinfo.value.__cause__, edgedb.ClientConnectionError)

        with pytest.raises(StorageError):
            asyncio.run(store.append("Buy milk"))


class TestEdgeDBCharacterRepository:
    def test_get_character_parses_record(self):
        client = FakeEdgeDBClient(character_json=CHARACTER_JSON)
        cid = uuid4()
        record = asyncio.run(EdgeDBCharacterRepository(client).get_character(cid))
        assert record.name == "Zird the Arcane"
        assert record.skills[0].name.name == "Lore"
        assert record.skills[0].level == 4
        assert [a.aspect_type.value for a in record.aspects] == ["Trouble", "High"]
        assert client.calls[0][3] == {"id": cid}

    def test_missing_character_is_none(self):
        repo = EdgeDBCharacterRepository(FakeEdgeDBClient(character_json="null"))
        assert asyncio.run(repo.get_character(uuid4())) is None

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            json.dumps({"stunts": []}),
            json.dumps({"name": "X", "aspects": [{"description": "d", "aspect_type": "Weird"}]}),
        ],
    )
    def test_malformed_record_is_storage_error(self, raw):
        repo = EdgeDBCharacterRepository(FakeEdgeDBClient(character_json=raw))
        with pytest.raises(StorageError):
            asyncio.run(repo.get_character(uuid4()))

    def test_allowed_skills(self):
        client = FakeEdgeDBClient(skills_json=json.dumps([{"name": "Athletics"}, {"name": "Lore"}]))
        assert asyncio.run(EdgeDBCharacterRepository(client).allowed_skills()) == ["Athletics", "Lore"]
        assert "order by .name" in client.calls[0][1]

    def test_update_sends_replacement_fields(self):
        cid = uuid4()
        client = FakeEdgeDBClient(update_result=cid)
        update = CharacterUpdate.from_form(
            "Zird the Wise",
            ["Archmage", "Owes the Guild"],
            ["High", "Trouble"],
            ["Lore"],
            ["5"],
            ["Ritualist"],
        )
        assert asyncio.run(EdgeDBCharacterRepository(client).update_character(cid, update)) is True

        method, query, _, kwargs = client.calls[0]
        assert method == "query_single"
        assert "update fate::PC" in query
        assert kwargs["id"] == cid
        assert kwargs["name"] == "Zird the Wise"
        assert kwargs["stunts"] == ["Ritualist"]
        assert json.loads(kwargs["aspects"]) == [
            {"description": "Archmage", "aspect_type": "High"},
            {"description": "Owes the Guild", "aspect_type": "Trouble"},
        ]
        assert json.loads(kwargs["skills"]) == [{"name": "Lore", "level": 5}]

    def test_update_of_missing_character_is_false(self):
        repo = EdgeDBCharacterRepository(FakeEdgeDBClient(update_result=None))
        update = CharacterUpdate(name="Nobody")
        assert asyncio.run(repo.update_character(uuid4(), update)) is False


class TestInMemoryCharacterRepository:
    def test_allowed_skills_are_alphabetical(self):
        repo = InMemoryCharacterRepository(allowed_skills=["Will", "Athletics", "Lore"])
        assert asyncio.run(repo.allowed_skills()) == ["Athletics", "Lore", "Will"]

    def test_get_returns_a_copy(self):
        repo = InMemoryCharacterRepository()
        cid = repo.add(CharacterRecord.model_validate_json(CHARACTER_JSON))

        async def scenario():
            record = await repo.get_character(cid)
            record.stunts.append("sneaky")
            return await repo.get_character(cid)

        assert asyncio.run(scenario()).stunts == ["Scholar of the Old Ways"]

    def test_update_missing_character_is_false(self):
        repo = InMemoryCharacterRepository()
        assert asyncio.run(repo.update_character(uuid4(), CharacterUpdate(name="Nobody"))) is False


class TestCreateStores:
    def test_memory_backend(self):
        stores = create_stores(Settings(persistence_backend="memory"))
        assert isinstance(stores.todos, InMemoryTodoStore)
        assert isinstance(stores.characters, InMemoryCharacterRepository)
        assert stores.client is None
        asyncio.run(stores.aclose())

    def test_edgedb_backend_shares_one_client(self):
        settings = Settings(persistence_backend="edgedb", edgedb_dsn="edgedb://edgedb@localhost:5656/main")
        stores = create_stores(settings)
        assert isinstance(stores.todos, EdgeDBTodoStore)
        assert isinstance(stores.characters, EdgeDBCharacterRepository)
        assert stores.client is not None
        asyncio.run(stores.aclose())
