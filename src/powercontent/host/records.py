"""Pydantic records holding the state of the in-memory host"""

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..constants import DataTypes, SiteDefaults
from ..errors import SiteSnapshotError
from ..types import RelationKind, VersionStatus


class AttributeDefinition(BaseModel):
    identifier: str
    data_type_string: str = DataTypes.STRING
    name: Optional[str] = None


class ClassRecord(BaseModel):
    id: int
    identifier: str
    name: str
    name_attribute: Optional[str] = None
    attributes: List[AttributeDefinition] = Field(default_factory=list)


class ImageRecord(BaseModel):
    original_filename: str
    alternative_text: Optional[str] = None
    filesize: int = 0
    checksum: Optional[str] = None


class AttributeRecord(BaseModel):
    identifier: str
    data_type_string: str
    data_text: Optional[str] = None
    image: Optional[ImageRecord] = None
    url_ids: List[int] = Field(default_factory=list)


class VersionRecord(BaseModel):
    version: int
    status: VersionStatus = VersionStatus.DRAFT
    created: int = 0
    modified: int = 0
    language: Optional[str] = None


class RelationRecord(BaseModel):
    to_object_id: int
    kind: RelationKind
    version: int


class ObjectRecord(BaseModel):
    id: int
    class_identifier: str
    name: str = ""
    remote_id: Optional[str] = None
    owner_id: int = SiteDefaults.ADMIN_USER_ID
    section_id: int = SiteDefaults.STANDARD_SECTION_ID
    published: int = 0
    modified: int = 0
    current_version: int = 1
    versions: List[VersionRecord] = Field(default_factory=list)
    attributes: Dict[str, AttributeRecord] = Field(default_factory=dict)
    relations: List[RelationRecord] = Field(default_factory=list)


class NodeRecord(BaseModel):
    node_id: int
    parent_node_id: int
    object_id: int
    is_hidden: bool = False
    is_invisible: bool = False
    protected: bool = False


class AssignmentRecord(BaseModel):
    id: int
    object_id: int
    version: int
    parent_node_id: int
    is_main: bool = False
    node_id: Optional[int] = None


class VisibilityNotice(BaseModel):
    node_id: int
    action: str


class SiteState(BaseModel):
    """Everything the in-memory host knows; serializable as a JSON snapshot."""

    next_object_id: int = 1
    next_node_id: int = 1
    next_assignment_id: int = 1
    next_url_id: int = 1
    current_user_id: int = SiteDefaults.ADMIN_USER_ID
    classes: Dict[str, ClassRecord] = Field(default_factory=dict)
    objects: Dict[int, ObjectRecord] = Field(default_factory=dict)
    nodes: Dict[int, NodeRecord] = Field(default_factory=dict)
    assignments: Dict[int, AssignmentRecord] = Field(default_factory=dict)
    urls: Dict[int, str] = Field(default_factory=dict)
    search_notices: List[VisibilityNotice] = Field(default_factory=list)

    @classmethod
    def default(cls) -> "SiteState":
        """A site with a root node, a Home folder and the folder/article classes."""
        state = cls()
        state.classes["folder"] = ClassRecord(
            id=1,
            identifier="folder",
            name="Folder",
            name_attribute="name",
            attributes=[
                AttributeDefinition(identifier="name", data_type_string=DataTypes.STRING),
                AttributeDefinition(identifier="description", data_type_string=DataTypes.RICH_TEXT),
            ],
        )
        state.classes["article"] = ClassRecord(
            id=2,
            identifier="article",
            name="Article",
            name_attribute="title",
            attributes=[
                AttributeDefinition(identifier="title", data_type_string=DataTypes.STRING),
                AttributeDefinition(identifier="intro", data_type_string=DataTypes.RICH_TEXT),
                AttributeDefinition(identifier="image", data_type_string=DataTypes.IMAGE),
                AttributeDefinition(identifier="author", data_type_string=DataTypes.STRING),
            ],
        )

        root = ObjectRecord(id=state.next_object_id, class_identifier="folder", name="Root")
        home = ObjectRecord(id=state.next_object_id + 1, class_identifier="folder", name="Home")
        for record in (root, home):
            record.versions.append(VersionRecord(version=1, status=VersionStatus.PUBLISHED))
            record.attributes["name"] = AttributeRecord(
                identifier="name", data_type_string=DataTypes.STRING, data_text=record.name
            )
            state.objects[record.id] = record
        state.next_object_id += 2

        state.nodes[SiteDefaults.ROOT_NODE_ID] = NodeRecord(
            node_id=SiteDefaults.ROOT_NODE_ID,
            parent_node_id=SiteDefaults.ROOT_NODE_ID,
            object_id=root.id,
            protected=True,
        )
        state.nodes[SiteDefaults.HOME_NODE_ID] = NodeRecord(
            node_id=SiteDefaults.HOME_NODE_ID,
            parent_node_id=SiteDefaults.ROOT_NODE_ID,
            object_id=home.id,
            protected=True,
        )
        state.next_node_id = SiteDefaults.HOME_NODE_ID + 1
        for node_id, object_id in ((SiteDefaults.ROOT_NODE_ID, root.id), (SiteDefaults.HOME_NODE_ID, home.id)):
            state.assignments[state.next_assignment_id] = AssignmentRecord(
                id=state.next_assignment_id,
                object_id=object_id,
                version=1,
                parent_node_id=state.nodes[node_id].parent_node_id,
                is_main=True,
                node_id=node_id,
            )
            state.next_assignment_id += 1
        return state

    @classmethod
    def load(cls, path: Path) -> "SiteState":
        try:
            return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))
        except OSError as e:
            raise SiteSnapshotError(f"Cannot read site snapshot {path}: {e}") from e
        except ValidationError as e:
            raise SiteSnapshotError(
                f"Invalid site snapshot {path}", metadata={"errors": e.errors()}
            ) from e

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
