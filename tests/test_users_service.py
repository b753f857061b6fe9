"""
Users service operations against an in-memory store
"""

import pytest

from models.enums import ErrorKind
from models.user import User
from services.user_validator import AGE_ERROR, EMAIL_ERROR, NAME_ERROR
from services.users_service import UsersService, parse_user_id
from storage.json_store import DataCorruptedError, InMemoryUserStore, PersistenceError


def seeded_user(user_id: int, email: str, name: str = "Seed") -> User:
    return User(
        id=user_id,
        name=name,
        email=email,
        age=None,
        created_at="2024-01-01T00:00:00.000Z",
        updated_at="2024-01-01T00:00:00.000Z",
    )


class BrokenStore:
    """Store whose load or save raises the given exception"""

    def __init__(self, load_error=None, save_error=None):
        self.load_error = load_error
        self.save_error = save_error
        self.load_calls = 0

    async def load(self):
        self.load_calls += 1
        if self.load_error:
            raise self.load_error
        return []

    async def save(self, users):
        if self.save_error:
            raise self.save_error

    async def exists(self):
        return True


class TestParseUserId:

    @pytest.mark.parametrize("raw,expected", [("1", 1), (" 42 ", 42), ("+7", 7), ("-3", -3), ("007", 7), (5, 5)])
    def test_integers(self, raw, expected):
        assert parse_user_id(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "", "1.5", "12abc", "1_000", "0x10", None, True])
    def test_not_integers(self, raw):
        assert parse_user_id(raw) is None


class TestScenario:

    @pytest.mark.asyncio
    async def test_create_duplicate_invalid_update_delete(self, users_service, memory_store):
        created = await users_service.create_user({"name": "Ann", "email": "Ann@X.com"})
        assert created.success
        assert created.data.id == 1
        assert created.data.email == "ann@x.com"

        duplicate = await users_service.create_user({"name": "Bo", "email": "ANN@x.com"})
        assert not duplicate.success
        assert duplicate.error_type == ErrorKind.DUPLICATE_EMAIL
        assert duplicate.error == "Email already exists"

        invalid = await users_service.update_user("1", {"age": 200})
        assert invalid.error_type == ErrorKind.VALIDATION_FAILED
        assert invalid.errors == [AGE_ERROR]

        deleted = await users_service.delete_user("1")
        assert deleted.success
        assert deleted.data.id == 1
        assert await memory_store.load() == []


class TestCreate:

    @pytest.mark.asyncio
    async def test_builds_normalized_record(self, users_service):
        result = await users_service.create_user({"name": "  Ann Lee ", "email": "Ann.Lee@Example.COM", "age": 31})

        user = result.data
        assert user.name == "Ann Lee"
        assert user.email == "ann.lee@example.com"
        assert user.age == 31
        assert user.created_at == "2024-05-01T12:00:00.000Z"
        assert user.updated_at == user.created_at

    @pytest.mark.asyncio
    async def test_new_id_exceeds_existing_and_is_retrievable(self, clock):
        store = InMemoryUserStore([seeded_user(7, "a@x.com"), seeded_user(3, "b@x.com")])
        service = UsersService(store, clock=clock)

        created = await service.create_user({"name": "Cy", "email": "cy@x.com"})
        assert created.data.id == 8

        fetched = await service.get_user_by_id(str(created.data.id))
        assert fetched.success
        assert fetched.data == created.data

    @pytest.mark.asyncio
    async def test_appends_in_insertion_order(self, users_service, memory_store):
        for name in ("Ann", "Bo", "Cy"):
            await users_service.create_user({"name": name, "email": f"{name.lower()}@x.com"})

        assert [user.name for user in await memory_store.load()] == ["Ann", "Bo", "Cy"]

    @pytest.mark.asyncio
    async def test_age_zero_and_missing_age(self, users_service):
        baby = await users_service.create_user({"name": "Baby", "email": "baby@x.com", "age": 0})
        adult = await users_service.create_user({"name": "Adult", "email": "adult@x.com"})

        assert baby.data.age == 0
        assert adult.data.age is None

    @pytest.mark.asyncio
    async def test_validation_happens_before_load(self):
        store = BrokenStore(load_error=DataCorruptedError())
        service = UsersService(store)

        result = await service.create_user({"email": "bad"})

        assert result.error_type == ErrorKind.VALIDATION_FAILED
        assert result.errors == [NAME_ERROR, EMAIL_ERROR]
        assert store.load_calls == 0

    @pytest.mark.asyncio
    async def test_duplicate_does_not_save(self, clock):
        store = InMemoryUserStore([seeded_user(1, "ann@x.com")])
        service = UsersService(store, clock=clock)

        result = await service.create_user({"name": "Ann", "email": "ANN@X.COM"})

        assert result.error_type == ErrorKind.DUPLICATE_EMAIL
        assert store.save_count == 0


class TestGet:

    @pytest.mark.asyncio
    async def test_list_returns_collection_and_count(self, clock):
        store = InMemoryUserStore([seeded_user(2, "a@x.com"), seeded_user(1, "b@x.com")])
        result = await UsersService(store, clock=clock).list_users()

        assert result.success
        assert result.count == 2
        assert [user.id for user in result.data] == [2, 1]

    @pytest.mark.asyncio
    async def test_invalid_id(self, users_service):
        result = await users_service.get_user_by_id("abc")
        assert result.error_type == ErrorKind.INVALID_ID
        assert result.error == "Invalid user ID format. ID must be a number."

    @pytest.mark.asyncio
    async def test_not_found(self, users_service):
        result = await users_service.get_user_by_id("99")
        assert result.error_type == ErrorKind.NOT_FOUND
        assert result.error == "User with ID 99 not found"


class TestUpdate:

    @pytest.fixture
    def store(self):
        return InMemoryUserStore([
            seeded_user(1, "ann@x.com", name="Ann"),
            seeded_user(2, "bo@x.com", name="Bo"),
        ])

    @pytest.fixture
    def service(self, store, clock):
        return UsersService(store, clock=clock)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"nickname": "Annie"}])
    async def test_no_fields_leaves_store_untouched(self, service, store, payload):
        before = await store.load()

        result = await service.update_user("1", payload)

        assert result.error_type == ErrorKind.NO_FIELDS_PROVIDED
        assert result.error == "At least one field (name, email, or age) must be provided for update"
        assert store.save_count == 0
        assert await store.load() == before

    @pytest.mark.asyncio
    async def test_age_only_keeps_other_fields(self, service, clock):
        clock.advance(60)

        result = await service.update_user("1", {"age": 45})

        user = result.data
        assert user.age == 45
        assert user.name == "Ann"
        assert user.email == "ann@x.com"
        assert user.created_at == "2024-01-01T00:00:00.000Z"
        assert user.updated_at == "2024-05-01T12:01:00.000Z"

    @pytest.mark.asyncio
    async def test_updated_at_advances_between_updates(self, service, clock):
        first = await service.update_user("2", {"name": "Bob"})
        clock.advance(1.5)
        second = await service.update_user("2", {"name": "Bobby"})

        assert second.data.updated_at > first.data.updated_at
        assert second.data.created_at == first.data.created_at

    @pytest.mark.asyncio
    async def test_applies_and_normalizes_fields(self, service, store):
        result = await service.update_user("2", {"name": " Bo Dee ", "email": "Bo.Dee@X.com"})

        assert result.success
        stored = (await store.load())[1]
        assert stored.id == 2
        assert stored.name == "Bo Dee"
        assert stored.email == "bo.dee@x.com"

    @pytest.mark.asyncio
    async def test_null_age_clears_age(self, service):
        await service.update_user("1", {"age": 30})
        result = await service.update_user("1", {"age": None})

        assert result.success
        assert result.data.age is None

    @pytest.mark.asyncio
    async def test_email_owned_by_other_user_is_duplicate(self, service, store):
        result = await service.update_user("1", {"email": "BO@x.com"})

        assert result.error_type == ErrorKind.DUPLICATE_EMAIL
        assert store.save_count == 0

    @pytest.mark.asyncio
    async def test_own_email_in_new_case_is_allowed(self, service):
        result = await service.update_user("1", {"email": "ANN@X.COM"})

        assert result.success
        assert result.data.email == "ann@x.com"

    @pytest.mark.asyncio
    async def test_empty_name_is_validation_failure(self, service):
        result = await service.update_user("1", {"name": ""})

        assert result.error_type == ErrorKind.VALIDATION_FAILED
        assert result.errors == [NAME_ERROR]

    @pytest.mark.asyncio
    async def test_invalid_id_checked_first(self, service):
        result = await service.update_user("x1", {})
        assert result.error_type == ErrorKind.INVALID_ID

    @pytest.mark.asyncio
    async def test_not_found(self, service, store):
        result = await service.update_user("3", {"age": 20})

        assert result.error_type == ErrorKind.NOT_FOUND
        assert store.save_count == 0


class TestDelete:

    @pytest.mark.asyncio
    async def test_removes_one_and_keeps_order(self, clock):
        store = InMemoryUserStore([
            seeded_user(1, "a@x.com"),
            seeded_user(2, "b@x.com"),
            seeded_user(3, "c@x.com"),
            seeded_user(4, "d@x.com"),
        ])
        service = UsersService(store, clock=clock)

        result = await service.delete_user("2")

        assert result.data.id == 2
        assert [user.id for user in await store.load()] == [1, 3, 4]

    @pytest.mark.asyncio
    async def test_missing_id_leaves_store_untouched(self, clock):
        store = InMemoryUserStore([seeded_user(1, "a@x.com")])
        service = UsersService(store, clock=clock)

        result = await service.delete_user("5")

        assert result.error_type == ErrorKind.NOT_FOUND
        assert store.save_count == 0
        assert [user.id for user in await store.load()] == [1]

    @pytest.mark.asyncio
    async def test_invalid_id(self, users_service):
        result = await users_service.delete_user("one")
        assert result.error_type == ErrorKind.INVALID_ID


class TestStorageFailures:

    @pytest.mark.asyncio
    async def test_corrupted_data(self):
        service = UsersService(BrokenStore(load_error=DataCorruptedError()))

        result = await service.list_users()

        assert result.error_type == ErrorKind.DATA_CORRUPTED
        assert result.error == "Data file is corrupted. Please contact administrator."

    @pytest.mark.asyncio
    async def test_failed_save(self):
        service = UsersService(BrokenStore(save_error=PersistenceError()))

        result = await service.create_user({"name": "Ann", "email": "ann@x.com"})

        assert result.error_type == ErrorKind.PERSISTENCE_FAILURE
        assert result.error == "Failed to save data. Please try again."

    @pytest.mark.asyncio
    async def test_unexpected_error_is_internal(self):
        service = UsersService(BrokenStore(load_error=RuntimeError("disk on fire")))

        result = await service.delete_user("1")

        assert result.error_type == ErrorKind.INTERNAL
        assert "disk on fire" not in result.error

    @pytest.mark.asyncio
    async def test_undecodable_file_is_corrupted_data(self, file_users_service, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_bytes(b'[{"name": "\xff\xfe"}]')

        result = await file_users_service.list_users()

        assert result.error_type == ErrorKind.DATA_CORRUPTED
