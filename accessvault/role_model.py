"""Role entity."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from accessvault.audit_model import _as_utc, _format_timestamp
from accessvault.queries import parse_object_ids


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _valid_object_ids(values: Iterable[str]) -> list[ObjectId]:
    ids: list[ObjectId] = []
    for value in values:
        try:
            ids.extend(parse_object_ids([value]))
        except InvalidId:
            continue
    return ids


def _debug_ids(ids: Iterable[ObjectId]) -> str:
    return "[" + ", ".join(f'ObjectId("{oid}")' for oid in ids) + "]"


@dataclass
class Role:
    """A named set of permissions."""

    name: str
    description: str | None = None
    permissions: list[ObjectId] | None = None
    id: ObjectId = field(default_factory=ObjectId)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @classmethod
    def create(
        cls, name: str, description: str | None, permissions: list[ObjectId] | None
    ) -> Role:
        """Create a new role with a fresh id and the current time."""
        now = _now()
        return cls(
            name=name,
            description=description,
            permissions=None if permissions is None else list(permissions),
            id=ObjectId(),
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def from_request(
        cls, name: str, description: str | None, permission_ids: Iterable[str] | None
    ) -> Role:
        """Create a role from request data, dropping permission ids that do not parse."""
        permissions = None if permission_ids is None else _valid_object_ids(permission_ids)
        return cls.create(name, description, permissions)

    def to_document(self) -> dict[str, Any]:
        """Return the stored document form of this role."""
        return {
            "_id": self.id,
            "name": self.name,
            "description": self.description,
            "permissions": None if self.permissions is None else list(self.permissions),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Role:
        """Build a role from its stored document form."""
        permissions = document.get("permissions")
        return cls(
            id=document["_id"],
            name=document["name"],
            description=document.get("description"),
            permissions=None if permissions is None else list(permissions),
            created_at=_as_utc(document["createdAt"]),
            updated_at=_as_utc(document["updatedAt"]),
        )

    def __str__(self) -> str:
        description = "None" if self.description is None else self.description
        return (
            f"Role: {{ id: {self.id}, name: {self.name}, description: {description}, "
            f"permissions: {_debug_ids(self.permissions or [])}, "
            f"created_at: {_format_timestamp(self.created_at)}, "
            f"updated_at: {_format_timestamp(self.updated_at)} }}"
        )