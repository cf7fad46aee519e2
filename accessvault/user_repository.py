"""Storage of users in a MongoDB collection."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import PyMongoError

from accessvault.queries import (
    exact_match_filter,
    find_kwargs,
    parse_object_ids,
    text_search_filter,
)
from accessvault.user_model import User


class UserRepositoryError(Exception):
    """Base class of user repository errors."""


class InvalidUserIdError(UserRepositoryError):
    """A user id could not be parsed."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid User ID: {detail}")


class EmptyIdError(UserRepositoryError):
    """A user id is empty."""

    def __init__(self) -> None:
        super().__init__("Empty User ID")


class EmptyUsernameError(UserRepositoryError):
    """A username is empty."""

    def __init__(self) -> None:
        super().__init__("Empty username")


class EmptyCollectionError(UserRepositoryError):
    """The collection name is empty."""

    def __init__(self) -> None:
        super().__init__("Empty collection")


class EmptyEmailError(UserRepositoryError):
    """An email address is empty."""

    def __init__(self) -> None:
        super().__init__("Empty email")


class EmptyPasswordError(UserRepositoryError):
    """A password is empty."""

    def __init__(self) -> None:
        super().__init__("Empty password")


class EmptyTextSearchError(UserRepositoryError):
    """A text search was requested without text."""

    def __init__(self) -> None:
        super().__init__("Empty text search")


class UserNotFoundError(UserRepositoryError):
    """No user with the given id exists."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class UsernameAlreadyTakenError(UserRepositoryError):
    """Another user already has this username."""

    def __init__(self) -> None:
        super().__init__("Username already taken")


class EmailAlreadyTakenError(UserRepositoryError):
    """A user already has this email address."""

    def __init__(self) -> None:
        super().__init__("Email already taken")


class InvalidEmailError(UserRepositoryError):
    """An email address does not match the configured pattern."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Invalid email address: {email}")


class UserDatabaseError(UserRepositoryError):
    """The database reported an error."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"MongoDB error: {cause}")


def _parse_id(user_id: str) -> ObjectId:
    if not user_id:
        raise EmptyIdError()
    try:
        (target,) = parse_object_ids([user_id])
    except InvalidId as exc:
        raise InvalidUserIdError(str(exc)) from exc
    return target


def _now_text() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserRepository:
    """Reads and writes users in one collection."""

    def __init__(self, collection: str, email_regex: str | re.Pattern[str]) -> None:
        if not collection:
            raise EmptyCollectionError()
        self.collection = collection
        self.email_regex = re.compile(email_regex)

    def _check_email(self, email: str | None, db: Any) -> None:
        if email is None:
            return
        if not self.email_regex.search(email):
            raise InvalidEmailError(email)
        if self.find_by_email(email.lower(), db) is not None:
            raise EmailAlreadyTakenError()

    def create(self, user: User, db: Any) -> User:
        """Store a new user and return it as stored."""
        self._check_email(user.email, db)
        if self.find_by_username(user.username, db) is not None:
            raise UsernameAlreadyTakenError()

        user_id = str(user.id)
        try:
            db[self.collection].insert_one(user.to_document())
        except PyMongoError as exc:
            raise UserDatabaseError(exc) from exc

        stored = self.find_by_id(user_id, db)
        if stored is None:
            raise UserNotFoundError(user_id)
        return stored

    def find_all(self, limit: int | None, page: int | None, db: Any) -> list[User]:
        """Return one page of users."""
        return self._find({}, db, **find_kwargs(limit, page))

    def find_by_id(self, user_id: str, db: Any) -> User | None:
        """Return the user with ``user_id``, or None if there is none."""
        target = _parse_id(user_id)
        return self._find_one({"_id": target}, db)

    def find_by_username(self, username: str, db: Any) -> User | None:
        """Return the user whose username equals ``username`` ignoring case, or None."""
        if not username:
            raise EmptyUsernameError()
        return self._find_one(exact_match_filter("username", username), db)

    def find_by_email(self, email: str, db: Any) -> User | None:
        """Return the user with exactly this email address, or None."""
        if not email:
            raise EmptyEmailError()
        return self._find_one({"email": email}, db)

    def update(self, user: User, db: Any) -> User:
        """Update the user's profile fields; return the user as it was before."""
        self._check_email(user.email, db)
        existing = self.find_by_username(user.username.lower(), db)
        if existing is not None and existing.id != user.id:
            raise UsernameAlreadyTakenError()

        update = {
            "$set": {
                "username": user.username,
                "email": user.email,
                "firstName": user.first_name,
                "lastName": user.last_name,
                "roles": None if user.roles is None else list(user.roles),
                "updated_at": _now_text(),
                "enabled": user.enabled,
            }
        }
        try:
            document = db[self.collection].find_one_and_update({"_id": user.id}, update)
        except PyMongoError as exc:
            raise UserDatabaseError(exc) from exc
        if document is None:
            raise UserNotFoundError(str(user.id))
        return User.from_document(document)

    def update_password(self, user_id: str, password: str, db: Any) -> None:
        """Replace the stored password of a user."""
        if not user_id:
            raise EmptyIdError()
        if not password:
            raise EmptyPasswordError()
        target = _parse_id(user_id)
        update = {"$set": {"password": password, "updated_at": _now_text()}}
        try:
            db[self.collection].update_one({"_id": target}, update)
        except PyMongoError as exc:
            raise UserDatabaseError(exc) from exc

    def delete(self, user_id: str, db: Any) -> None:
        """Delete a user."""
        target = _parse_id(user_id)
        try:
            db[self.collection].delete_one({"_id": target})
        except PyMongoError as exc:
            raise UserDatabaseError(exc) from exc

    def delete_role_from_all_users(self, role_id: str, db: Any) -> None:
        """Remove a role from the role list of every user."""
        target = _parse_id(role_id)
        try:
            db[self.collection].update_many({}, {"$pull": {"roles": target}})
        except PyMongoError as exc:
            raise UserDatabaseError(exc) from exc

    def search(self, text: str, limit: int | None, page: int | None, db: Any) -> list[User]:
        """Return one page of users matching a full-text search."""
        if not text:
            raise EmptyTextSearchError()
        return self._find(text_search_filter(text), db, **find_kwargs(limit, page))

    def _find_one(self, query: dict[str, Any], db: Any) -> User | None:
        try:
            document = db[self.collection].find_one(query)
        except PyMongoError as exc:
            raise UserDatabaseError(exc) from exc
        return None if document is None else User.from_document(document)

    def _find(self, query: dict[str, Any], db: Any, **options: int) -> list[User]:
        try:
            cursor = db[self.collection].find(query, **options)
        except PyMongoError as exc:
            raise UserDatabaseError(exc) from exc
        try:
            return [User.from_document(document) for document in cursor]
        except (PyMongoError, KeyError, ValueError):
            return []