"""
Protocol definitions for PowerContent component interfaces.

This package defines the contracts between PowerContent and the host
content-management framework it drives, plus the contracts of its own
pluggable services. They enable dependency injection: the facade receives
every collaborator at construction time and never reaches for a global.

Usage:
    >>> from powercontent.protocols import NodeStore, TreeNode
    >>>
    >>> def visible_nodes(store: NodeStore, ids) -> list:
    ...     return [n for n in map(store.fetch, ids) if n and not n.is_invisible]
"""

from .content_protocol import (
    TreeNode,
    ImageContent,
    ContentAttribute,
    ContentVersion,
    ContentObject,
    NodeAssignment,
    ContentClass,
    RemovalCandidate,
    SubtreeRemovalInfo,
)

from .host_protocol import (
    Transaction,
    ClassRegistry,
    NodeStore,
    ObjectStore,
    NodeAssignmentStore,
    PublishExecutor,
    SearchIndex,
    ParsedRichText,
    RichTextParser,
    UserContext,
)

from .service_protocol import (
    OutputSink,
    RemoteFetcher,
    AttributeEncoder,
)

__all__ = [
    # Content entities
    "TreeNode",
    "ImageContent",
    "ContentAttribute",
    "ContentVersion",
    "ContentObject",
    "NodeAssignment",
    "ContentClass",
    "RemovalCandidate",
    "SubtreeRemovalInfo",
    # Host collaborators
    "Transaction",
    "ClassRegistry",
    "NodeStore",
    "ObjectStore",
    "NodeAssignmentStore",
    "PublishExecutor",
    "SearchIndex",
    "ParsedRichText",
    "RichTextParser",
    "UserContext",
    # PowerContent services
    "OutputSink",
    "RemoteFetcher",
    "AttributeEncoder",
]
