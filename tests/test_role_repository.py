import copy

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from accessvault.role_model import Role
from accessvault.role_repository import (
    EmptyCollectionError,
    EmptyIdError,
    EmptyNameError,
    EmptyTextSearchError,
    InvalidRoleIdError,
    NameAlreadyTakenError,
    RoleDatabaseError,
    RoleNotFoundError,
    RoleRepository,
    UserCleanupError,
)


def _matches(document, query):
    for key, condition in query.items():
        if key == "$text":
            needle = condition["$search"].lower()
            if needle not in str(document.get("name", "")).lower():
                return False
            continue
        value = document.get(key)
        if isinstance(condition, dict):
            if "$in" in condition and value not in condition["$in"]:
                return False
            if "$regex" in condition:
                pattern = condition["$regex"].try_compile()
                if not isinstance(value, str) or not pattern.search(value):
                    return False
        elif value != condition:
            return False
    return True


class FakeCollection:
    def __init__(self):
        self.documents = []

    def insert_one(self, document):
        self.documents.append(copy.deepcopy(document))

    def find_one(self, query):
        for document in self.documents:
            if _matches(document, query):
                return copy.deepcopy(document)
        return None

    def find(self, query, limit=0, skip=0):
        found = [copy.deepcopy(d) for d in self.documents if _matches(d, query)]
        found = found[skip:]
        return found[:limit] if limit else found

    def find_one_and_update(self, query, update):
        for document in self.documents:
            if _matches(document, query):
                before = copy.deepcopy(document)
                document.update(copy.deepcopy(update["$set"]))
                return before
        return None

    def delete_one(self, query):
        for index, document in enumerate(self.documents):
            if _matches(document, query):
                del self.documents[index]
                return

    def update_many(self, query, update):
        for document in self.documents:
            if _matches(document, query):
                for field_name, value in update["$pull"].items():
                    items = document.get(field_name)
                    if isinstance(items, list):
                        document[field_name] = [item for item in items if item != value]


class FakeDb(dict):
    def __missing__(self, key):
        collection = FakeCollection()
        self[key] = collection
        return collection


class FailingCollection:
    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise PyMongoError("boom")

        return fail


class FailingDb:
    def __getitem__(self, key):
        return FailingCollection()


class RecordingUserService:
    def __init__(self):
        self.calls = []

    def delete_role_from_all_users(self, role_id, db):
        self.calls.append(role_id)


class FailingUserService:
    def delete_role_from_all_users(self, role_id, db):
        raise RuntimeError("cleanup failed")


@pytest.fixture
def db():
    return FakeDb()


@pytest.fixture
def repo():
    return RoleRepository("roles")


def test_empty_collection_rejected():
    with pytest.raises(EmptyCollectionError) as info:
        RoleRepository("")
    assert str(info.value) == "Empty collection"


def test_create_and_find_by_id_round_trip(repo, db):
    permission = ObjectId()
    role = Role.create("Admin", "Administrators", [permission])
    stored = repo.create(role, db)
    assert stored.id == role.id
    assert stored.name == "Admin"
    assert stored.permissions == [permission]
    found = repo.find_by_id(str(role.id), db)
    assert found.description == "Administrators"


def test_create_duplicate_name_ignoring_case(repo, db):
    repo.create(Role.create("Admin", None, None), db)
    with pytest.raises(NameAlreadyTakenError) as info:
        repo.create(Role.create("ADMIN", None, None), db)
    assert str(info.value) == "Role name already taken"


def test_find_by_name_is_case_insensitive_and_escaped(repo, db):
    repo.create(Role.create("a.b", None, None), db)
    repo.create(Role.create("axb-other", None, None), db)
    assert repo.find_by_name("A.B", db).name == "a.b"
    assert repo.find_by_name("axb", db) is None


def test_find_by_name_empty(repo, db):
    with pytest.raises(EmptyNameError):
        repo.find_by_name("", db)


def test_find_by_id_errors(repo, db):
    with pytest.raises(EmptyIdError) as info:
        repo.find_by_id("", db)
    assert str(info.value) == "Empty Role ID"
    with pytest.raises(InvalidRoleIdError) as bad:
        repo.find_by_id("xyz", db)
    assert str(bad.value).startswith("Invalid Role ID: ")


def test_find_by_id_missing_returns_none(repo, db):
    assert repo.find_by_id(str(ObjectId()), db) is None


def test_find_all_pages(repo, db):
    names = [f"role{n}" for n in range(5)]
    for name in names:
        repo.create(Role.create(name, None, None), db)
    assert [r.name for r in repo.find_all(None, None, db)] == names
    assert [r.name for r in repo.find_all(2, 2, db)] == names[2:4]
    assert [r.name for r in repo.find_all(2, 1, db)] == names[:2]


def test_find_by_id_vec(repo, db):
    first = repo.create(Role.create("one", None, None), db)
    repo.create(Role.create("two", None, None), db)
    assert repo.find_by_id_vec([], db) == []
    found = repo.find_by_id_vec([str(first.id)], db)
    assert [r.name for r in found] == ["one"]
    with pytest.raises(InvalidRoleIdError):
        repo.find_by_id_vec(["nothex"], db)


def test_update_returns_previous_and_stores_new(repo, db):
    role = repo.create(Role.create("Editor", "old", None), db)
    permission = ObjectId()
    role.name = "Writer"
    role.description = "new"
    role.permissions = [permission]
    previous = repo.update(role, db)
    assert previous.name == "Editor"
    current = repo.find_by_id(str(role.id), db)
    assert current.name == "Writer"
    assert current.permissions == [permission]


def test_update_same_name_same_role_allowed(repo, db):
    role = repo.create(Role.create("Editor", None, None), db)
    role.description = "changed"
    repo.update(role, db)
    assert repo.find_by_id(str(role.id), db).description == "changed"


def test_update_name_taken_by_other(repo, db):
    repo.create(Role.create("Editor", None, None), db)
    other = repo.create(Role.create("Viewer", None, None), db)
    other.name = "editor"
    with pytest.raises(NameAlreadyTakenError):
        repo.update(other, db)


def test_update_missing_role(repo, db):
    role = Role.create("Ghost", None, None)
    with pytest.raises(RoleNotFoundError) as info:
        repo.update(role, db)
    assert info.value.role_id == str(role.id)


def test_delete_calls_user_service(repo, db):
    role = repo.create(Role.create("Temp", None, None), db)
    service = RecordingUserService()
    repo.delete(str(role.id), db, service)
    assert service.calls == [str(role.id)]
    assert repo.find_by_id(str(role.id), db) is None


def test_delete_wraps_user_service_failure(repo, db):
    role = repo.create(Role.create("Temp", None, None), db)
    with pytest.raises(UserCleanupError) as info:
        repo.delete(str(role.id), db, FailingUserService())
    assert str(info.value) == "User error: cleanup failed"


def test_delete_empty_id(repo, db):
    with pytest.raises(EmptyIdError):
        repo.delete("", db, RecordingUserService())


def test_delete_permission_from_all_roles(repo, db):
    removed, kept = ObjectId(), ObjectId()
    first = repo.create(Role.create("one", None, [removed, kept]), db)
    second = repo.create(Role.create("two", None, [removed]), db)
    repo.delete_permission_from_all_roles(str(removed), db)
    assert repo.find_by_id(str(first.id), db).permissions == [kept]
    assert repo.find_by_id(str(second.id), db).permissions == []


def test_delete_permission_invalid_id(repo, db):
    with pytest.raises(EmptyIdError):
        repo.delete_permission_from_all_roles("", db)
    with pytest.raises(InvalidRoleIdError):
        repo.delete_permission_from_all_roles("zz", db)


def test_search(repo, db):
    repo.create(Role.create("Manager", None, None), db)
    repo.create(Role.create("Viewer", None, None), db)
    assert [r.name for r in repo.search("manager", None, None, db)] == ["Manager"]
    with pytest.raises(EmptyTextSearchError) as info:
        repo.search("", None, None, db)
    assert str(info.value) == "Empty text search"


def test_database_error_wrapped(repo):
    with pytest.raises(RoleDatabaseError) as info:
        repo.find_all(None, None, FailingDb())
    assert str(info.value) == "MongoDB error: boom"