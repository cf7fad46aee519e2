"""Audit records of changes made to permissions, roles and users."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from bson import ObjectId


def _display_name(value: str) -> str:
    return value[:1].upper() + value[1:]


def _format_timestamp(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc) if moment.tzinfo else moment
    text = moment.strftime("%Y-%m-%d %H:%M:%S")
    micros = moment.microsecond
    if micros:
        text += f".{micros // 1000:03d}" if micros % 1000 == 0 else f".{micros:06d}"
    return f"{text} UTC"


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class ResourceType(Enum):
    """Kind of resource an audit entry refers to."""

    PERMISSION = "permission"
    ROLE = "role"
    USER = "user"

    def __str__(self) -> str:
        return _display_name(self.value)


class ResourceIdType(Enum):
    """How the audited resource was identified."""

    PERMISSION_ID = "permissionId"
    PERMISSION_ID_VEC = "permissionIdVec"
    PERMISSION_NAME = "permissionName"
    PERMISSION_SEARCH = "permissionSearch"
    ROLE_ID = "roleId"
    ROLE_ID_VEC = "roleIdVec"
    ROLE_NAME = "roleName"
    ROLE_SEARCH = "roleSearch"
    USER_ID = "userId"
    USER_NAME = "userName"
    USER_SEARCH = "userSearch"
    NONE = "none"

    def __str__(self) -> str:
        return _display_name(self.value)


class Action(Enum):
    """Change that was made to a resource."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    def __str__(self) -> str:
        return _display_name(self.value)


@dataclass
class Audit:
    """A single audit entry."""

    user_id: ObjectId
    action: Action
    resource_id: ObjectId
    resource_id_type: ResourceIdType
    resource_type: ResourceType
    id: ObjectId = field(default_factory=ObjectId)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        user_id: ObjectId,
        action: Action,
        resource_id: ObjectId,
        resource_id_type: ResourceIdType,
        resource_type: ResourceType,
    ) -> Audit:
        """Create a new entry with a fresh id, stamped with the current time."""
        return cls(
            user_id=user_id,
            action=action,
            resource_id=resource_id,
            resource_id_type=resource_id_type,
            resource_type=resource_type,
            id=ObjectId(),
            created_at=datetime.now(timezone.utc),
        )

    def to_document(self) -> dict[str, Any]:
        """Return the stored document form of this entry."""
        return {
            "_id": self.id,
            "userId": self.user_id,
            "action": self.action.value,
            "resourceId": self.resource_id,
            "resourceIdType": self.resource_id_type.value,
            "resourceType": self.resource_type.value,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> Audit:
        """Build an entry from its stored document form."""
        return cls(
            id=document["_id"],
            user_id=document["userId"],
            action=Action(document["action"]),
            resource_id=document["resourceId"],
            resource_id_type=ResourceIdType(document["resourceIdType"]),
            resource_type=ResourceType(document["resourceType"]),
            created_at=_as_utc(document["createdAt"]),
        )

    def __str__(self) -> str:
        return (
            f"Audit {{ id: {self.id}, user_id: {self.user_id}, action: {self.action}, "
            f"resource_id: {self.resource_id}, resource_type: {self.resource_type}, "
            f"created_at: {_format_timestamp(self.created_at)} }}"
        )