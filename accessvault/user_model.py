"""User entity."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId

from accessvault.audit_model import _as_utc, _format_timestamp
from accessvault.role_model import _debug_ids, _valid_object_ids


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """An account that can authenticate and holds roles."""

    username: str
    password: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    roles: list[ObjectId] | None = None
    enabled: bool = True
    id: ObjectId = field(default_factory=ObjectId)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @classmethod
    def create(
        cls,
        username: str,
        email: str | None,
        first_name: str | None,
        last_name: str | None,
        password: str,
        roles: Iterable[str] | None,
        enabled: bool,
    ) -> User:
        """Create a new user, dropping role ids that do not parse."""
        now = _now()
        return cls(
            username=username,
            password=password,
            email=email,
            first_name=first_name,
            last_name=last_name,
            roles=None if roles is None else _valid_object_ids(roles),
            enabled=enabled,
            id=ObjectId(),
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_registration(
        cls,
        username: str,
        email: str | None,
        first_name: str | None,
        last_name: str | None,
        password: str,
    ) -> User:
        """Create an enabled user without roles from a registration."""
        return cls.create(username, email, first_name, last_name, password, None, True)

    def to_document(self) -> dict[str, Any]:
        """Return the stored document form of this user."""
        return {
            "_id": self.id,
            "username": self.username,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "password": self.password,
            "roles": None if self.roles is None else list(self.roles),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "enabled": self.enabled,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> User:
        """Build a user from its stored document form."""
        roles = document.get("roles")
        return cls(
            id=document["_id"],
            username=document["username"],
            email=document.get("email"),
            first_name=document.get("firstName"),
            last_name=document.get("lastName"),
            password=document["password"],
            roles=None if roles is None else list(roles),
            created_at=_as_utc(document["createdAt"]),
            updated_at=_as_utc(document["updatedAt"]),
            enabled=document["enabled"],
        )

    def __str__(self) -> str:
        email = "None" if self.email is None else self.email
        roles = "None" if self.roles is None else _debug_ids(self.roles)
        return (
            f"User: [id: {self.id}, username: {self.username}, email: {email}, "
            f"first_name: {self.first_name or ''}, last_name: {self.last_name or ''}, "
            f"password: {self.password}, roles: {roles}, "
            f"created_at: {_format_timestamp(self.created_at)}, "
            f"updated_at: {_format_timestamp(self.updated_at)}, "
            f"enabled: {str(self.enabled).lower()}]"
        )