"""Type definitions module for PowerContent.

Domain-specific type aliases and enumerations shared by the facade, the
protocols and the in-memory host.

Usage patterns:
    >>> from powercontent.types import NodeId, RelationKind, VersionStatus
    >>>
    >>> parent = NodeId(2)
    >>> RelationKind.EMBED.value
    'embed'
"""

from enum import Enum, IntEnum
from typing import Literal, NewType

ObjectId = NewType("ObjectId", int)
NodeId = NewType("NodeId", int)
RemoteId = NewType("RemoteId", str)
ClassIdentifier = NewType("ClassIdentifier", str)

VisibilityAction = Literal["show", "hide"]


class VersionStatus(IntEnum):
    """Content version status values, as numbered by the host."""

    DRAFT = 0
    PUBLISHED = 1
    PENDING = 2
    ARCHIVED = 3
    REJECTED = 4
    INTERNAL_DRAFT = 5


class RelationKind(str, Enum):
    """Kinds of object relations collected from rich text."""

    LINK = "link"
    EMBED = "embed"


__all__ = [
    "ObjectId",
    "NodeId",
    "RemoteId",
    "ClassIdentifier",
    "VisibilityAction",
    "VersionStatus",
    "RelationKind",
]
