"""
Host collaborator protocol definitions.

This module defines the services of the host content-management framework
that PowerContent calls into: the transaction handle, the class registry,
the tree node store, the object store, the node assignment store, the
publish workflow, the search index and the rich-text parser. One instance of
each is injected into the facade through ``powercontent.host.ContentHost``.
"""

from dataclasses import dataclass, field
from typing import Protocol, Any, List, Optional, Sequence
from abc import abstractmethod

from ..types import NodeId, ObjectId, VisibilityAction
from .content_protocol import (
    ContentAttribute,
    ContentClass,
    ContentObject,
    NodeAssignment,
    SubtreeRemovalInfo,
    TreeNode,
)


class Transaction(Protocol):
    """Protocol for the host's shared transactional connection."""

    @abstractmethod
    def begin(self) -> None:
        """Open a (possibly nested) transaction."""
        ...

    @abstractmethod
    def commit(self) -> None:
        """Commit the innermost transaction."""
        ...

    @abstractmethod
    def rollback(self) -> None:
        """Roll back the open transaction."""
        ...


class ClassRegistry(Protocol):
    """Protocol for resolving content class definitions."""

    @abstractmethod
    def fetch_by_identifier(self, identifier: str) -> Optional[ContentClass]:
        """
        Resolve a content class by identifier.

        Returns:
            The class, or None when no class has that identifier

        Example:
            >>> article = registry.fetch_by_identifier("article")
        """
        ...


class NodeStore(Protocol):
    """Protocol for tree node lookup and subtree operations."""

    @abstractmethod
    def fetch(self, node_id: NodeId) -> Optional[TreeNode]:
        """Fetch a tree node, None when it does not exist."""
        ...

    @abstractmethod
    def move(self, node_id: NodeId, object_id: ObjectId, new_parent_node_id: NodeId) -> None:
        """
        Move a node (and its subtree) under a new parent.

        Args:
            node_id: Node to move
            object_id: Object placed at the node
            new_parent_node_id: Target parent node
        """
        ...

    @abstractmethod
    def hide_subtree(self, node: TreeNode) -> None:
        """Hide a node, making its whole subtree invisible."""
        ...

    @abstractmethod
    def unhide_subtree(self, node: TreeNode) -> None:
        """Unhide a node, restoring visibility of its subtree."""
        ...

    @abstractmethod
    def subtree_removal_info(self, node_ids: Sequence[NodeId]) -> SubtreeRemovalInfo:
        """Report which of the given subtrees may be removed safely."""
        ...

    @abstractmethod
    def remove_subtrees(self, node_ids: Sequence[NodeId], move_to_trash: bool = False) -> None:
        """Remove the given nodes and everything below them."""
        ...


class ObjectStore(Protocol):
    """Protocol for content object lookup and cache control."""

    @abstractmethod
    def fetch(self, object_id: ObjectId) -> Optional[ContentObject]:
        ...

    @abstractmethod
    def fetch_by_remote_id(self, remote_id: str) -> Optional[ContentObject]:
        ...

    @abstractmethod
    def clear_cache(self, object_id: ObjectId) -> None:
        """Drop any cached data of the object."""
        ...


class NodeAssignmentStore(Protocol):
    """Protocol for node assignment records."""

    @abstractmethod
    def create(
        self,
        object_id: ObjectId,
        version: int,
        parent_node_id: NodeId,
        is_main: bool,
    ) -> NodeAssignment:
        """Create an (unsaved) node assignment."""
        ...

    @abstractmethod
    def fetch_for_object(
        self,
        object_id: ObjectId,
        version: Optional[int] = None,
        is_main: Optional[bool] = None,
    ) -> List[NodeAssignment]:
        """
        List assignments of an object.

        Args:
            object_id: Object whose assignments are listed
            version: Restrict to one version when given
            is_main: Restrict to main (True) or additional (False) assignments
        """
        ...


class PublishExecutor(Protocol):
    """Protocol for the host's publish operation."""

    @abstractmethod
    def publish(self, object_id: ObjectId, version: int) -> None:
        """Run the publish pipeline for an object version."""
        ...


class SearchIndex(Protocol):
    """Protocol for the host search engine."""

    @abstractmethod
    def update_node_visibility(self, node_id: NodeId, action: VisibilityAction) -> None:
        """Notify the index that a node was shown or hidden."""
        ...


@dataclass
class ParsedRichText:
    """Outcome of parsing rich-text input."""

    document: Optional[Any]
    linked_object_ids: List[int] = field(default_factory=list)
    embedded_object_ids: List[int] = field(default_factory=list)
    url_ids: List[int] = field(default_factory=list)


class RichTextParser(Protocol):
    """Protocol for the host's rich-text input parser."""

    @abstractmethod
    def process(self, text: str) -> ParsedRichText:
        """
        Parse wrapped rich-text input.

        Args:
            text: Markup wrapped in a single container element

        Returns:
            The parsed document (None when the input could not be parsed)
            and the object/url ids it references
        """
        ...

    @abstractmethod
    def serialize(self, document: Any) -> str:
        """Serialize a parsed document to the host's storage string form."""
        ...

    @abstractmethod
    def update_url_object_links(self, attribute: ContentAttribute, url_ids: Sequence[int]) -> None:
        """Record which URLs an attribute links to."""
        ...


class UserContext(Protocol):
    """Protocol for the host's current-user lookup."""

    @abstractmethod
    def current_user_id(self) -> int:
        ...
