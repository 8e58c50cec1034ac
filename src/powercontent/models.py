"""Pydantic models for content operation parameters"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .types import VersionStatus


class _OperationParams(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    attributes: Dict[str, str] = Field(default_factory=dict)

    @field_validator("*", mode="before")
    @classmethod
    def null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        # An explicit None counts as not given.
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    @field_validator("attributes", mode="before")
    @classmethod
    def stringify_values(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: "" if v is None else str(v) for k, v in value.items()}
        return value


class CreateObjectParams(_OperationParams):
    content_class: Optional[Any] = None
    class_identifier: Optional[str] = None
    parent_node: Optional[Any] = None
    parent_node_id: Optional[int] = None
    remote_id: Optional[str] = None
    owner_id: Optional[int] = None
    section_id: Optional[int] = None
    language_locale: Optional[str] = None
    publish_date: Optional[int] = None
    additional_parent_node_ids: List[int] = Field(default_factory=list)
    version_status: VersionStatus = VersionStatus.PUBLISHED
    visibility: bool = True


class UpdateObjectParams(_OperationParams):
    object: Optional[Any] = None
    parent_node: Optional[Any] = None
    parent_node_id: Optional[int] = None
    additional_parent_node_ids: Optional[List[int]] = None
    visibility: bool = True
