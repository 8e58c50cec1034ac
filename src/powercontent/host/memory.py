"""
In-memory reference host.

Implements every host collaborator protocol on top of a pydantic
``SiteState``. Entity objects handed to the facade are thin handles that
look their records up by id, so a rollback (which swaps the state for the
snapshot taken at the outermost ``begin``) is visible through every handle.
Field assignments on handles are buffered until ``store()``.
"""

import hashlib
import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..content.richtext import XmlRichTextParser
from ..errors import ResolutionError
from ..types import RelationKind, VersionStatus, VisibilityAction
from .content_host import ContentHost
from .records import (
    AssignmentRecord,
    AttributeRecord,
    ImageRecord,
    NodeRecord,
    ObjectRecord,
    RelationRecord,
    SiteState,
    VersionRecord,
    VisibilityNotice,
)

logger = logging.getLogger(__name__)


class _Buffered:
    """Handle field whose assignments are held until ``store()``."""

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, handle, owner=None):
        if handle is None:
            return self
        if self.name in handle._pending:
            return handle._pending[self.name]
        return getattr(handle.record, self.name)

    def __set__(self, handle, value):
        handle._pending[self.name] = value


class _Handle:
    def __init__(self, site: "MemorySite"):
        self.site = site
        self._pending: Dict[str, Any] = {}

    @property
    def record(self):
        raise NotImplementedError

    def _flush(self) -> None:
        record = self.record
        for name, value in self._pending.items():
            setattr(record, name, value)
        self._pending.clear()


class MemoryTreeNode(_Handle):
    def __init__(self, site: "MemorySite", node_id: int):
        super().__init__(site)
        self._node_id = node_id

    def __repr__(self) -> str:
        return f"MemoryTreeNode(node_id={self._node_id})"

    def __eq__(self, other) -> bool:
        return isinstance(other, MemoryTreeNode) and other._node_id == self._node_id

    def __hash__(self) -> int:
        return hash(("node", self._node_id))

    @property
    def record(self) -> NodeRecord:
        return self.site.state.nodes[self._node_id]

    @property
    def node_id(self) -> int:
        return self._node_id

    @property
    def parent_node_id(self) -> int:
        return self.record.parent_node_id

    @property
    def object_id(self) -> int:
        return self.record.object_id

    @property
    def is_hidden(self) -> bool:
        return self.record.is_hidden

    @property
    def is_invisible(self) -> bool:
        return self.record.is_invisible

    @property
    def name(self) -> str:
        return self.site.state.objects[self.record.object_id].name

    @property
    def object(self) -> "MemoryContentObject":
        return MemoryContentObject(self.site, self.record.object_id)


class MemoryImageContent:
    """Image handler that records file metadata, optionally keeping a copy."""

    def __init__(self, site: "MemorySite"):
        self.site = site
        self._image: Optional[ImageRecord] = None

    def initialize_from_file(self, path: str, alternative_text: Optional[str] = None) -> None:
        source = Path(path)
        data = source.read_bytes()
        self._image = ImageRecord(
            original_filename=source.name,
            alternative_text=alternative_text,
            filesize=len(data),
            checksum=hashlib.sha1(data).hexdigest(),
        )
        if self.site.image_dir is not None:
            self.site.image_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, self.site.image_dir / f"{self._image.checksum}{source.suffix}")

    def store(self, attribute: "MemoryContentAttribute") -> None:
        if self._image is not None:
            attribute._pending["image"] = self._image


class MemoryContentAttribute(_Handle):
    data_text = _Buffered()
    image = _Buffered()

    def __init__(self, site: "MemorySite", object_id: int, identifier: str):
        super().__init__(site)
        self._object_id = object_id
        self._identifier = identifier
        self._content: Optional[MemoryImageContent] = None

    @property
    def record(self) -> AttributeRecord:
        return self.site.state.objects[self._object_id].attributes[self._identifier]

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def data_type_string(self) -> str:
        return self.record.data_type_string

    @property
    def content(self) -> Any:
        if self.data_type_string == "ezimage":
            if self._content is None:
                self._content = MemoryImageContent(self.site)
            return self._content
        return self.data_text

    def from_string(self, value: Optional[str]) -> None:
        self.data_text = value

    def store(self) -> None:
        self._flush()


class MemoryContentVersion(_Handle):
    status = _Buffered()
    modified = _Buffered()

    def __init__(self, site: "MemorySite", object_id: int, version: int):
        super().__init__(site)
        self._object_id = object_id
        self._version = version

    @property
    def record(self) -> VersionRecord:
        obj = self.site.state.objects[self._object_id]
        for record in obj.versions:
            if record.version == self._version:
                return record
        raise KeyError(self._version)

    @property
    def version(self) -> int:
        return self._version

    def store(self) -> None:
        self._flush()


class MemoryContentObject(_Handle):
    published = _Buffered()
    modified = _Buffered()
    remote_id = _Buffered()

    def __init__(self, site: "MemorySite", object_id: int):
        super().__init__(site)
        self._object_id = object_id
        self._data_map: Optional[Dict[str, MemoryContentAttribute]] = None
        self._input_relations: List[RelationRecord] = []

    def __repr__(self) -> str:
        return f"MemoryContentObject(id={self._object_id})"

    def __eq__(self, other) -> bool:
        return isinstance(other, MemoryContentObject) and other._object_id == self._object_id

    def __hash__(self) -> int:
        return hash(("object", self._object_id))

    @property
    def record(self) -> ObjectRecord:
        return self.site.state.objects[self._object_id]

    @property
    def id(self) -> int:
        return self._object_id

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def class_identifier(self) -> str:
        return self.record.class_identifier

    @property
    def class_name(self) -> str:
        return self.site.state.classes[self.record.class_identifier].name

    @property
    def owner_id(self) -> int:
        return self.record.owner_id

    @property
    def section_id(self) -> int:
        return self.record.section_id

    @property
    def current_version(self) -> int:
        return self.record.current_version

    @property
    def relations(self) -> List[RelationRecord]:
        return list(self.record.relations)

    @property
    def pending_relations(self) -> List[RelationRecord]:
        return list(self._input_relations)

    @property
    def main_node(self) -> Optional[MemoryTreeNode]:
        for assignment in self.site.state.assignments.values():
            if (
                assignment.object_id == self._object_id
                and assignment.is_main
                and assignment.node_id in self.site.state.nodes
            ):
                return MemoryTreeNode(self.site, assignment.node_id)
        return None

    @property
    def main_node_id(self) -> Optional[int]:
        node = self.main_node
        return node.node_id if node is not None else None

    def assigned_nodes(self) -> List[MemoryTreeNode]:
        return [
            MemoryTreeNode(self.site, node.node_id)
            for node in self.site.state.nodes.values()
            if node.object_id == self._object_id
        ]

    def store(self) -> None:
        self._flush()

    def purge(self) -> None:
        self.site.purge_object(self._object_id)

    def version(self, version: int) -> Optional[MemoryContentVersion]:
        if any(v.version == version for v in self.record.versions):
            return MemoryContentVersion(self.site, self._object_id, version)
        return None

    def data_map(self) -> Dict[str, MemoryContentAttribute]:
        if self._data_map is None:
            self._data_map = {
                identifier: MemoryContentAttribute(self.site, self._object_id, identifier)
                for identifier in self.record.attributes
            }
        return self._data_map

    def reset_data_map(self) -> None:
        self._data_map = None

    def append_input_relations(self, object_ids: Iterable[int], kind: RelationKind) -> None:
        for object_id in object_ids:
            relation = RelationRecord(to_object_id=object_id, kind=kind, version=0)
            if relation not in self._input_relations:
                self._input_relations.append(relation)

    def commit_input_relations(self, version: int) -> None:
        record = self.record
        for pending in self._input_relations:
            relation = pending.model_copy(update={"version": version})
            if relation not in record.relations:
                record.relations.append(relation)

    def reset_input_relations(self) -> None:
        self._input_relations = []


class MemoryNodeAssignment:
    def __init__(self, site: "MemorySite", record: AssignmentRecord):
        self.site = site
        self.record = record

    @property
    def id(self) -> int:
        return self.record.id

    @property
    def object_id(self) -> int:
        return self.record.object_id

    @property
    def version(self) -> int:
        return self.record.version

    @property
    def parent_node_id(self) -> int:
        return self.record.parent_node_id

    @property
    def is_main(self) -> bool:
        return self.record.is_main

    @property
    def node(self) -> Optional[MemoryTreeNode]:
        node_id = self.record.node_id
        if node_id is not None and node_id in self.site.state.nodes:
            return MemoryTreeNode(self.site, node_id)
        return None

    def store(self) -> None:
        state = self.site.state
        if self.record.id == 0:
            self.record.id = state.next_assignment_id
            state.next_assignment_id += 1
        state.assignments[self.record.id] = self.record

    def purge(self) -> None:
        self.site.state.assignments.pop(self.record.id, None)


class MemoryContentClass:
    def __init__(self, site: "MemorySite", identifier: str):
        self.site = site
        self._identifier = identifier

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def name(self) -> str:
        return self.site.state.classes[self._identifier].name

    def instantiate(
        self, owner_id: int, section_id: int, language_locale: Optional[str] = None
    ) -> MemoryContentObject:
        state = self.site.state
        definition = state.classes[self._identifier]
        now = int(time.time())
        record = ObjectRecord(
            id=state.next_object_id,
            class_identifier=self._identifier,
            owner_id=owner_id,
            section_id=section_id,
            versions=[
                VersionRecord(version=1, created=now, modified=now, language=language_locale)
            ],
            attributes={
                attribute.identifier: AttributeRecord(
                    identifier=attribute.identifier,
                    data_type_string=attribute.data_type_string,
                )
                for attribute in definition.attributes
            },
        )
        state.next_object_id += 1
        state.objects[record.id] = record
        return MemoryContentObject(self.site, record.id)


@dataclass
class RemovalCandidate:
    node: Optional[MemoryTreeNode]
    can_remove: bool


@dataclass
class SubtreeRemovalInfo:
    delete_list: List[RemovalCandidate] = field(default_factory=list)


class MemoryTransaction:
    def __init__(self, site: "MemorySite"):
        self.site = site

    def begin(self) -> None:
        self.site.begin()

    def commit(self) -> None:
        self.site.commit()

    def rollback(self) -> None:
        self.site.rollback()


class MemoryClassRegistry:
    def __init__(self, site: "MemorySite"):
        self.site = site

    def fetch_by_identifier(self, identifier: str) -> Optional[MemoryContentClass]:
        if identifier in self.site.state.classes:
            return MemoryContentClass(self.site, identifier)
        return None


class MemoryNodeStore:
    def __init__(self, site: "MemorySite"):
        self.site = site

    def fetch(self, node_id: int) -> Optional[MemoryTreeNode]:
        if node_id in self.site.state.nodes:
            return MemoryTreeNode(self.site, node_id)
        return None

    def move(self, node_id: int, object_id: int, new_parent_node_id: int) -> None:
        state = self.site.state
        if new_parent_node_id not in state.nodes:
            raise ResolutionError(f"Can't move node {node_id}: no parent node {new_parent_node_id}")
        if new_parent_node_id in self.site.subtree_ids(node_id):
            raise ValueError(f"Can't move node {node_id} below itself")
        state.nodes[node_id].parent_node_id = new_parent_node_id
        for assignment in state.assignments.values():
            if assignment.object_id == object_id and assignment.node_id == node_id:
                assignment.parent_node_id = new_parent_node_id
        parent = state.nodes[new_parent_node_id]
        self.site.refresh_visibility(node_id, parent.is_hidden or parent.is_invisible)

    def hide_subtree(self, node: MemoryTreeNode) -> None:
        self.site.state.nodes[node.node_id].is_hidden = True
        self.site.refresh_visibility(node.node_id, self.site.parent_invisible(node.node_id))

    def unhide_subtree(self, node: MemoryTreeNode) -> None:
        self.site.state.nodes[node.node_id].is_hidden = False
        self.site.refresh_visibility(node.node_id, self.site.parent_invisible(node.node_id))

    def subtree_removal_info(self, node_ids: Sequence[int]) -> SubtreeRemovalInfo:
        state = self.site.state
        info = SubtreeRemovalInfo()
        for node_id in node_ids:
            if node_id not in state.nodes:
                continue
            protected = any(state.nodes[i].protected for i in self.site.subtree_ids(node_id))
            info.delete_list.append(
                RemovalCandidate(node=MemoryTreeNode(self.site, node_id), can_remove=not protected)
            )
        return info

    def remove_subtrees(self, node_ids: Sequence[int], move_to_trash: bool = False) -> None:
        state = self.site.state
        affected = set()
        for node_id in node_ids:
            if node_id not in state.nodes:
                continue
            for removed_id in self.site.subtree_ids(node_id):
                node = state.nodes.pop(removed_id)
                affected.add(node.object_id)
                for assignment_id in [
                    a.id for a in state.assignments.values() if a.node_id == removed_id
                ]:
                    del state.assignments[assignment_id]
        for object_id in affected:
            self.site.settle_object(object_id)


class MemoryObjectStore:
    def __init__(self, site: "MemorySite"):
        self.site = site

    def fetch(self, object_id: int) -> Optional[MemoryContentObject]:
        if object_id in self.site.state.objects:
            return MemoryContentObject(self.site, object_id)
        return None

    def fetch_by_remote_id(self, remote_id: str) -> Optional[MemoryContentObject]:
        for record in self.site.state.objects.values():
            if record.remote_id == remote_id:
                return MemoryContentObject(self.site, record.id)
        return None

    def clear_cache(self, object_id: int) -> None:
        self.site.cache_clears.append(object_id)


class MemoryAssignmentStore:
    def __init__(self, site: "MemorySite"):
        self.site = site

    def create(
        self, object_id: int, version: int, parent_node_id: int, is_main: bool
    ) -> MemoryNodeAssignment:
        record = AssignmentRecord(
            id=0,
            object_id=object_id,
            version=version,
            parent_node_id=parent_node_id,
            is_main=is_main,
        )
        return MemoryNodeAssignment(self.site, record)

    def fetch_for_object(
        self,
        object_id: int,
        version: Optional[int] = None,
        is_main: Optional[bool] = None,
    ) -> List[MemoryNodeAssignment]:
        return [
            MemoryNodeAssignment(self.site, record)
            for record in sorted(self.site.state.assignments.values(), key=lambda a: a.id)
            if record.object_id == object_id
            and (version is None or record.version == version)
            and (is_main is None or record.is_main == is_main)
        ]


class MemoryPublisher:
    def __init__(self, site: "MemorySite"):
        self.site = site

    def publish(self, object_id: int, version: int) -> None:
        state = self.site.state
        record = state.objects[object_id]
        for version_record in record.versions:
            if version_record.version == version:
                version_record.status = VersionStatus.PUBLISHED
        record.current_version = version
        record.name = self.site.object_name(record)

        for assignment in sorted(state.assignments.values(), key=lambda a: a.id):
            if assignment.object_id != object_id or assignment.version != version:
                continue
            if assignment.node_id is not None and assignment.node_id in state.nodes:
                continue
            parent = state.nodes.get(assignment.parent_node_id)
            if parent is None:
                logger.warning(
                    f"Parent node {assignment.parent_node_id} of object {object_id} is missing"
                )
                continue
            node = NodeRecord(
                node_id=state.next_node_id,
                parent_node_id=parent.node_id,
                object_id=object_id,
                is_invisible=parent.is_hidden or parent.is_invisible,
            )
            state.next_node_id += 1
            state.nodes[node.node_id] = node
            assignment.node_id = node.node_id


class MemorySearchIndex:
    def __init__(self, site: "MemorySite"):
        self.site = site

    def update_node_visibility(self, node_id: int, action: VisibilityAction) -> None:
        self.site.state.search_notices.append(VisibilityNotice(node_id=node_id, action=action))


class MemoryUrlRegistry:
    def __init__(self, site: "MemorySite"):
        self.site = site

    def register_url(self, url: str) -> int:
        state = self.site.state
        for url_id, known in state.urls.items():
            if known == url:
                return url_id
        url_id = state.next_url_id
        state.next_url_id += 1
        state.urls[url_id] = url
        return url_id

    def link_urls(self, attribute: MemoryContentAttribute, url_ids: Sequence[int]) -> None:
        attribute.record.url_ids = list(url_ids)


class MemoryUsers:
    def __init__(self, site: "MemorySite"):
        self.site = site

    def current_user_id(self) -> int:
        return self.site.state.current_user_id


class MemorySite:
    """State holder and transaction manager of the in-memory host."""

    def __init__(self, state: Optional[SiteState] = None, image_dir: Optional[Path] = None):
        self.state = state if state is not None else SiteState.default()
        self.image_dir = Path(image_dir) if image_dir is not None else None
        self.cache_clears: List[int] = []
        self._depth = 0
        self._snapshot: Optional[SiteState] = None

    @classmethod
    def load(cls, path: Path, image_dir: Optional[Path] = None) -> "MemorySite":
        return cls(SiteState.load(path), image_dir=image_dir)

    def save(self, path: Path) -> None:
        self.state.save(path)

    def content_host(self) -> ContentHost:
        return ContentHost(
            transaction=MemoryTransaction(self),
            classes=MemoryClassRegistry(self),
            nodes=MemoryNodeStore(self),
            objects=MemoryObjectStore(self),
            assignments=MemoryAssignmentStore(self),
            publisher=MemoryPublisher(self),
            search=MemorySearchIndex(self),
            rich_text=XmlRichTextParser(
                urls=MemoryUrlRegistry(self), node_resolver=self._node_object_id
            ),
            users=MemoryUsers(self),
        )

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    def begin(self) -> None:
        if self._depth == 0:
            self._snapshot = self.state.model_copy(deep=True)
        self._depth += 1

    def commit(self) -> None:
        if self._depth == 0:
            raise RuntimeError("commit() called without an open transaction")
        self._depth -= 1
        if self._depth == 0:
            self._snapshot = None

    def rollback(self) -> None:
        if self._depth == 0:
            raise RuntimeError("rollback() called without an open transaction")
        self.state = self._snapshot
        self._snapshot = None
        self._depth = 0

    def fetch_object(self, object_id: int) -> Optional[MemoryContentObject]:
        if object_id in self.state.objects:
            return MemoryContentObject(self, object_id)
        return None

    def children_ids(self, node_id: int) -> List[int]:
        return [
            node.node_id
            for node in self.state.nodes.values()
            if node.parent_node_id == node_id and node.node_id != node_id
        ]

    def subtree_ids(self, node_id: int) -> List[int]:
        """Node ids of ``node_id`` and all of its descendants, parents first."""
        result: List[int] = []
        stack = [node_id]
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(self.children_ids(current))
        return result

    def parent_invisible(self, node_id: int) -> bool:
        node = self.state.nodes[node_id]
        if node.parent_node_id == node_id or node.parent_node_id not in self.state.nodes:
            return False
        parent = self.state.nodes[node.parent_node_id]
        return parent.is_hidden or parent.is_invisible

    def refresh_visibility(self, node_id: int, parent_invisible: bool) -> None:
        node = self.state.nodes[node_id]
        node.is_invisible = parent_invisible or node.is_hidden
        for child_id in self.children_ids(node_id):
            self.refresh_visibility(child_id, node.is_invisible)

    def object_name(self, record: ObjectRecord) -> str:
        definition = self.state.classes.get(record.class_identifier)
        if definition is not None and definition.name_attribute:
            attribute = record.attributes.get(definition.name_attribute)
            if attribute is not None and attribute.data_text:
                return attribute.data_text
        return record.name or f"{record.class_identifier} {record.id}"

    def purge_object(self, object_id: int) -> None:
        state = self.state
        state.objects.pop(object_id, None)
        for assignment_id in [a.id for a in state.assignments.values() if a.object_id == object_id]:
            del state.assignments[assignment_id]
        for node_id in [n.node_id for n in state.nodes.values() if n.object_id == object_id]:
            # Children of a purged object's nodes go with it.
            for removed_id in self.subtree_ids(node_id):
                state.nodes.pop(removed_id, None)

    def settle_object(self, object_id: int) -> None:
        """Purge an object left without nodes or promote a new main node."""
        state = self.state
        if object_id not in state.objects:
            return
        placed = [
            a for a in sorted(state.assignments.values(), key=lambda a: a.id)
            if a.object_id == object_id and a.node_id in state.nodes
        ]
        if not placed:
            self.purge_object(object_id)
            return
        if not any(a.is_main for a in placed):
            placed[0].is_main = True

    def _node_object_id(self, node_id: int) -> Optional[int]:
        node = self.state.nodes.get(node_id)
        return node.object_id if node is not None else None
