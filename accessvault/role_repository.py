"""Storage of roles in a MongoDB collection."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import PyMongoError

from accessvault.queries import (
    exact_match_filter,
    find_kwargs,
    parse_object_ids,
    text_search_filter,
)
from accessvault.role_model import Role


class UserCleanup(Protocol):
    """Anything that can remove a role from every user."""

    def delete_role_from_all_users(self, role_id: str, db: Any) -> None: ...


class RoleRepositoryError(Exception):
    """Base class of role repository errors."""


class InvalidRoleIdError(RoleRepositoryError):
    """A role id could not be parsed."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid Role ID: {detail}")


class EmptyCollectionError(RoleRepositoryError):
    """The collection name is empty."""

    def __init__(self) -> None:
        super().__init__("Empty collection")


class EmptyIdError(RoleRepositoryError):
    """A role id is empty."""

    def __init__(self) -> None:
        super().__init__("Empty Role ID")


class EmptyNameError(RoleRepositoryError):
    """A role name is empty."""

    def __init__(self) -> None:
        super().__init__("Empty Role name")


class EmptyTextSearchError(RoleRepositoryError):
    """A text search was requested without text."""

    def __init__(self) -> None:
        super().__init__("Empty text search")


class NameAlreadyTakenError(RoleRepositoryError):
    """Another role already has this name."""

    def __init__(self) -> None:
        super().__init__("Role name already taken")


class RoleNotFoundError(RoleRepositoryError):
    """No role with the given id exists."""

    def __init__(self, role_id: str) -> None:
        self.role_id = role_id
        super().__init__(f"Role not found: {role_id}")


class RoleDatabaseError(RoleRepositoryError):
    """The database reported an error."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"MongoDB error: {cause}")


class UserCleanupError(RoleRepositoryError):
    """Removing a deleted role from the users failed."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"User error: {cause}")


def _parse_id(role_id: str) -> ObjectId:
    if not role_id:
        raise EmptyIdError()
    try:
        (target,) = parse_object_ids([role_id])
    except InvalidId as exc:
        raise InvalidRoleIdError(str(exc)) from exc
    return target


class RoleRepository:
    """Reads and writes roles in one collection."""

    def __init__(self, collection: str) -> None:
        if not collection:
            raise EmptyCollectionError()
        self.collection = collection

    def create(self, role: Role, db: Any) -> Role:
        """Store a new role and return it as stored."""
        if self.find_by_name(role.name.lower(), db) is not None:
            raise NameAlreadyTakenError()

        role_id = str(role.id)
        try:
            db[self.collection].insert_one(role.to_document())
        except PyMongoError as exc:
            raise RoleDatabaseError(exc) from exc

        stored = self.find_by_id(role_id, db)
        if stored is None:
            raise RoleNotFoundError(role_id)
        return stored

    def find_all(self, limit: int | None, page: int | None, db: Any) -> list[Role]:
        """Return one page of roles."""
        return self._find({}, db, **find_kwargs(limit, page))

    def find_by_id_vec(self, ids: list[str], db: Any) -> list[Role]:
        """Return the roles whose ids are in ``ids``."""
        try:
            object_ids = parse_object_ids(ids)
        except InvalidId as exc:
            raise InvalidRoleIdError(str(exc)) from exc
        if not object_ids:
            return []
        return self._find({"_id": {"$in": object_ids}}, db)

    def find_by_id(self, role_id: str, db: Any) -> Role | None:
        """Return the role with ``role_id``, or None if there is none."""
        target = _parse_id(role_id)
        return self._find_one({"_id": target}, db)

    def find_by_name(self, name: str, db: Any) -> Role | None:
        """Return the role whose name equals ``name`` ignoring case, or None."""
        if not name:
            raise EmptyNameError()
        return self._find_one(exact_match_filter("name", name), db)

    def update(self, role: Role, db: Any) -> Role:
        """Update name, description and permissions; return the role as it was before."""
        existing = self.find_by_name(role.name.lower(), db)
        if existing is not None and existing.id != role.id:
            raise NameAlreadyTakenError()

        update = {
            "$set": {
                "name": role.name,
                "description": role.description,
                "permissions": None if role.permissions is None else list(role.permissions),
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
        }
        try:
            document = db[self.collection].find_one_and_update({"_id": role.id}, update)
        except PyMongoError as exc:
            raise RoleDatabaseError(exc) from exc
        if document is None:
            raise RoleNotFoundError(str(role.id))
        return Role.from_document(document)

    def delete(self, role_id: str, db: Any, user_service: UserCleanup) -> None:
        """Delete a role and remove it from every user."""
        target = _parse_id(role_id)
        try:
            db[self.collection].delete_one({"_id": target})
        except PyMongoError as exc:
            raise RoleDatabaseError(exc) from exc
        try:
            user_service.delete_role_from_all_users(role_id, db)
        except Exception as exc:
            raise UserCleanupError(exc) from exc

    def delete_permission_from_all_roles(self, permission_id: str, db: Any) -> None:
        """Remove a permission from the permission list of every role."""
        target = _parse_id(permission_id)
        try:
            db[self.collection].update_many({}, {"$pull": {"permissions": target}})
        except PyMongoError as exc:
            raise RoleDatabaseError(exc) from exc

    def search(self, text: str, limit: int | None, page: int | None, db: Any) -> list[Role]:
        """Return one page of roles matching a full-text search."""
        if not text:
            raise EmptyTextSearchError()
        return self._find(text_search_filter(text), db, **find_kwargs(limit, page))

    def _find_one(self, query: dict[str, Any], db: Any) -> Role | None:
        try:
            document = db[self.collection].find_one(query)
        except PyMongoError as exc:
            raise RoleDatabaseError(exc) from exc
        return None if document is None else Role.from_document(document)

    def _find(self, query: dict[str, Any], db: Any, **options: int) -> list[Role]:
        try:
            cursor = db[self.collection].find(query, **options)
        except PyMongoError as exc:
            raise RoleDatabaseError(exc) from exc
        try:
            return [Role.from_document(document) for document in cursor]
        except (PyMongoError, KeyError, ValueError):
            return []