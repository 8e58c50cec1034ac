"""
Content entity protocol definitions.

This module defines the shapes of the entities the host content-management
framework hands to PowerContent: content classes, objects, versions,
attributes, tree nodes and node assignments. PowerContent never creates or
destroys these directly; it reads them and asks them to store or purge
themselves.
"""

from typing import Protocol, Dict, Any, Iterable, List, Optional
from abc import abstractmethod

from ..types import NodeId, ObjectId, RelationKind, VersionStatus


class TreeNode(Protocol):
    """Protocol for a location of a content object in the content tree."""

    @property
    @abstractmethod
    def node_id(self) -> NodeId:
        """Identifier of this tree node."""
        ...

    @property
    @abstractmethod
    def parent_node_id(self) -> NodeId:
        """Identifier of the parent tree node."""
        ...

    @property
    @abstractmethod
    def object_id(self) -> ObjectId:
        """Identifier of the content object placed at this node."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Display name of the node (the object's name)."""
        ...

    @property
    @abstractmethod
    def is_hidden(self) -> bool:
        """Whether this node itself was hidden."""
        ...

    @property
    @abstractmethod
    def is_invisible(self) -> bool:
        """Whether this node is invisible because it or an ancestor is hidden."""
        ...

    @property
    @abstractmethod
    def object(self) -> "ContentObject":
        """The content object placed at this node."""
        ...


class ImageContent(Protocol):
    """Protocol for the image handler behind an image attribute."""

    @abstractmethod
    def initialize_from_file(self, path: str, alternative_text: Optional[str] = None) -> None:
        """
        Load image data from a local file.

        Args:
            path: Local file holding the image
            alternative_text: Optional alternative text for the image
        """
        ...

    @abstractmethod
    def store(self, attribute: "ContentAttribute") -> None:
        """Persist the image data for the given attribute."""
        ...


class ContentAttribute(Protocol):
    """
    Protocol for a typed attribute value on a content object.

    Attributes may additionally expose ``from_string(value)``; encoders
    check for it at write time.
    """

    data_text: Optional[str]

    @property
    @abstractmethod
    def identifier(self) -> str:
        """Attribute identifier within its content class."""
        ...

    @property
    @abstractmethod
    def data_type_string(self) -> str:
        """Declared data type tag (e.g. ``ezimage``, ``ezxmltext``)."""
        ...

    @property
    @abstractmethod
    def content(self) -> Any:
        """Type-specific content handler (an ImageContent for images)."""
        ...

    @abstractmethod
    def store(self) -> None:
        """Persist the attribute value."""
        ...


class ContentVersion(Protocol):
    """Protocol for a single version of a content object."""

    status: VersionStatus
    modified: int

    @property
    @abstractmethod
    def version(self) -> int:
        """Version number."""
        ...

    @abstractmethod
    def store(self) -> None:
        """Persist version metadata."""
        ...


class ContentObject(Protocol):
    """Protocol for a content object managed by the host."""

    published: int
    modified: int
    remote_id: Optional[str]

    @property
    @abstractmethod
    def id(self) -> ObjectId:
        """Object identifier."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Object name as derived by the host on publish."""
        ...

    @property
    @abstractmethod
    def class_name(self) -> str:
        """Human readable name of the object's content class."""
        ...

    @property
    @abstractmethod
    def class_identifier(self) -> str:
        """Identifier of the object's content class."""
        ...

    @property
    @abstractmethod
    def section_id(self) -> int:
        """Section the object belongs to."""
        ...

    @property
    @abstractmethod
    def current_version(self) -> int:
        """Current version number."""
        ...

    @property
    @abstractmethod
    def main_node(self) -> Optional[TreeNode]:
        """Main tree location, or None when the object is not placed yet."""
        ...

    @property
    @abstractmethod
    def main_node_id(self) -> Optional[NodeId]:
        """Identifier of the main tree location."""
        ...

    @abstractmethod
    def store(self) -> None:
        """Persist object metadata."""
        ...

    @abstractmethod
    def purge(self) -> None:
        """Delete the object and all of its versions."""
        ...

    @abstractmethod
    def version(self, version: int) -> Optional[ContentVersion]:
        """Fetch a version of this object."""
        ...

    @abstractmethod
    def data_map(self) -> Dict[str, ContentAttribute]:
        """Attributes of the current version keyed by identifier."""
        ...

    @abstractmethod
    def reset_data_map(self) -> None:
        """Drop any cached attribute map."""
        ...

    @abstractmethod
    def append_input_relations(self, object_ids: Iterable[int], kind: RelationKind) -> None:
        """
        Add object ids to the pending relation list.

        Args:
            object_ids: Related object identifiers
            kind: Relation kind (link or embed)
        """
        ...

    @abstractmethod
    def commit_input_relations(self, version: int) -> None:
        """Store the pending relation list against the given version."""
        ...

    @abstractmethod
    def reset_input_relations(self) -> None:
        """Clear the pending relation list."""
        ...


class NodeAssignment(Protocol):
    """Protocol for the placement record linking an object version to a parent node."""

    @property
    @abstractmethod
    def object_id(self) -> ObjectId:
        ...

    @property
    @abstractmethod
    def version(self) -> int:
        ...

    @property
    @abstractmethod
    def parent_node_id(self) -> NodeId:
        ...

    @property
    @abstractmethod
    def is_main(self) -> bool:
        ...

    @property
    @abstractmethod
    def node(self) -> Optional[TreeNode]:
        """Tree node created for this assignment, once published."""
        ...

    @abstractmethod
    def store(self) -> None:
        ...

    @abstractmethod
    def purge(self) -> None:
        ...


class ContentClass(Protocol):
    """Protocol for a content class definition."""

    @property
    @abstractmethod
    def identifier(self) -> str:
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def instantiate(
        self,
        owner_id: int,
        section_id: int,
        language_locale: Optional[str] = None,
    ) -> ContentObject:
        """
        Create a new content object of this class with an initial draft version.

        Args:
            owner_id: Owner's content object ID
            section_id: Section the object is placed in
            language_locale: Initial language, host default when None

        Returns:
            The new, stored content object
        """
        ...


class RemovalCandidate(Protocol):
    """One entry of a subtree removal report."""

    @property
    @abstractmethod
    def node(self) -> Optional[TreeNode]:
        ...

    @property
    @abstractmethod
    def can_remove(self) -> bool:
        ...


class SubtreeRemovalInfo(Protocol):
    """Host report about which subtrees of a removal request may be deleted."""

    @property
    @abstractmethod
    def delete_list(self) -> List[RemovalCandidate]:
        ...
