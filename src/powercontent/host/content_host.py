"""Bundle of host collaborators injected into the content facade"""

from dataclasses import dataclass

from ..protocols import (
    ClassRegistry,
    NodeAssignmentStore,
    NodeStore,
    ObjectStore,
    PublishExecutor,
    RichTextParser,
    SearchIndex,
    Transaction,
    UserContext,
)


@dataclass
class ContentHost:
    """One instance of every host service PowerContent calls into."""

    transaction: Transaction
    classes: ClassRegistry
    nodes: NodeStore
    objects: ObjectStore
    assignments: NodeAssignmentStore
    publisher: PublishExecutor
    search: SearchIndex
    rich_text: RichTextParser
    users: UserContext
