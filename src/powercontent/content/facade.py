"""Content mutation facade: create, update and remove content objects.

Every operation runs inside one host transaction. Resolution failures and
duplicate remote IDs are reported through the output sink and turned into a
``None``/``False`` result after the transaction is rolled back; any other
error raised by the host rolls the transaction back and propagates.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from ..configuration import PowerContentConfig
from ..constants import ConsoleStyles
from ..errors import DuplicateRemoteIdError, PowerContentError, ResolutionError
from ..host.content_host import ContentHost
from ..models import CreateObjectParams, UpdateObjectParams
from ..output import LoggingSink
from ..protocols import ContentObject, OutputSink, RemoteFetcher, TreeNode
from ..types import NodeId
from .encoders import AttributeEncoderRegistry
from .fetch import ImageFetcher

logger = logging.getLogger(__name__)


class PowerContent:
    """Creates, updates and removes content objects through the host APIs."""

    def __init__(
        self,
        host: ContentHost,
        output: Optional[OutputSink] = None,
        encoders: Optional[AttributeEncoderRegistry] = None,
        config: Optional[PowerContentConfig] = None,
        fetcher: Optional[RemoteFetcher] = None,
    ):
        self.host = host
        self.config = config or PowerContentConfig()
        self.output = output or LoggingSink(self.config.debug_source)
        if encoders is None:
            fetcher = fetcher or ImageFetcher(
                timeout_seconds=self.config.fetch_timeout_seconds,
                user_agent=self.config.user_agent,
            )
            encoders = AttributeEncoderRegistry.default(
                host.rich_text, fetcher, self.config.cache_dir
            )
        self.encoders = encoders

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Begin a host transaction; commit on success, roll back on any error."""
        self.host.transaction.begin()
        try:
            yield
        except BaseException:
            self.host.transaction.rollback()
            raise
        self.host.transaction.commit()

    def create_object(
        self, params: Union[CreateObjectParams, Mapping]
    ) -> Optional[ContentObject]:
        """
        Create, place and publish a new content object.

        Args:
            params: CreateObjectParams or a mapping with the same keys

        Returns:
            The published object, or None when the class or parent node could
            not be resolved or the remote ID is already taken
        """
        if not isinstance(params, CreateObjectParams):
            params = CreateObjectParams.model_validate(params)

        try:
            with self.transaction():
                obj = self._create(params)
        except (ResolutionError, DuplicateRemoteIdError) as e:
            self.output.error(e.message, **e.metadata)
            return None

        if params.visibility is False:
            self.update_visibility(obj, False)

        self.output.debug(
            f'[Created] "{obj.name}" (Node ID: {obj.main_node_id})',
            (ConsoleStyles.CREATED,),
            object_id=obj.id,
            node_id=obj.main_node_id,
        )
        return obj

    def _create(self, params: CreateObjectParams) -> ContentObject:
        content_class = params.content_class
        if content_class is None and params.class_identifier:
            content_class = self.host.classes.fetch_by_identifier(params.class_identifier)
        if content_class is None:
            raise ResolutionError(
                f"Can't fetch class by identifier: {params.class_identifier}",
                metadata={"class_identifier": params.class_identifier},
            )

        parent_node = params.parent_node
        if parent_node is None and params.parent_node_id is not None:
            parent_node = self.host.nodes.fetch(params.parent_node_id)
        if parent_node is None:
            raise ResolutionError(
                f"Can't fetch parent node by ID: {params.parent_node_id}",
                metadata={"node_id": params.parent_node_id},
            )

        additional_parents = self._resolve_additional_parents(
            params.additional_parent_node_ids, parent_node.node_id
        )

        owner_id = params.owner_id
        if owner_id is None:
            owner_id = self.host.users.current_user_id()
        section_id = params.section_id
        if section_id is None:
            section_id = parent_node.object.section_id
        publish_date = params.publish_date if params.publish_date is not None else int(time.time())
        remote_id = params.remote_id

        if remote_id:
            existing = self.host.objects.fetch_by_remote_id(remote_id)
            if existing is not None:
                raise DuplicateRemoteIdError(
                    f'Object "{existing.name}" (class: {existing.class_name}) '
                    f"with remote ID {remote_id} already exists.",
                    metadata={"object_id": existing.id, "remote_id": remote_id},
                )

        obj = content_class.instantiate(owner_id, section_id, params.language_locale)
        obj.published = publish_date
        obj.modified = publish_date
        if remote_id:
            obj.remote_id = remote_id
        obj.store()

        self.output.debug(
            f"Starting create object (class: {obj.class_name}) with remote ID "
            f"{remote_id} in main node: {parent_node.node_id}",
            object_id=obj.id,
            remote_id=remote_id,
        )

        self.host.assignments.create(
            obj.id, obj.current_version, parent_node.node_id, is_main=True
        ).store()

        version = obj.version(obj.current_version)
        version.modified = publish_date
        version.status = params.version_status
        version.store()

        self.set_object_attributes(obj, params.attributes)

        for node in additional_parents:
            self.host.assignments.create(
                obj.id, obj.current_version, node.node_id, is_main=False
            ).store()

        self._publish(obj)
        return obj

    def update_object(self, params: Union[UpdateObjectParams, Mapping]) -> bool:
        """
        Write new attribute values, relocate and republish an existing object.

        Visibility defaults to shown, so the object's nodes are unhidden
        unless ``visibility=False`` is passed explicitly.

        Returns:
            True when the object was updated, False when no object was given
        """
        if not isinstance(params, UpdateObjectParams):
            params = UpdateObjectParams.model_validate(params)

        obj = params.object
        try:
            with self.transaction():
                if obj is None:
                    raise ResolutionError("Content object is empty")
                self._update(obj, params)
        except PowerContentError as e:
            self.output.error(e.message, **e.metadata)
            return False

        self.update_visibility(obj, params.visibility)

        self.output.debug(
            f'[Updated] "{obj.name}"', (ConsoleStyles.UPDATED,), object_id=obj.id
        )
        return True

    def _update(self, obj: ContentObject, params: UpdateObjectParams) -> None:
        self.output.debug(
            f'Starting update "{obj.name}" object (class: {obj.class_name}) '
            f"with remote ID {obj.remote_id}",
            object_id=obj.id,
            remote_id=obj.remote_id,
        )

        parent_node = params.parent_node
        if parent_node is None and params.parent_node_id is not None:
            parent_node = self.host.nodes.fetch(params.parent_node_id)
            if parent_node is None:
                self.output.error(
                    f"Can't fetch parent node by ID: {params.parent_node_id}",
                    node_id=params.parent_node_id,
                )

        main_node = obj.main_node
        if parent_node is not None and main_node is not None:
            if parent_node.node_id != main_node.parent_node_id:
                self.host.nodes.move(main_node.node_id, obj.id, parent_node.node_id)

        if params.additional_parent_node_ids is not None:
            if parent_node is not None:
                main_parent_id = parent_node.node_id
            elif main_node is not None:
                main_parent_id = main_node.parent_node_id
            else:
                main_parent_id = None
            self._reconcile_additional_locations(
                obj, params.additional_parent_node_ids, main_parent_id
            )

        self.set_object_attributes(obj, params.attributes)
        self._publish(obj)

    def _reconcile_additional_locations(
        self,
        obj: ContentObject,
        requested_ids: Sequence[int],
        main_parent_id: Optional[NodeId],
    ) -> None:
        requested = self._resolve_additional_parents(requested_ids, main_parent_id)
        requested_parent_ids = {node.node_id for node in requested}

        already_assigned = set()
        remove_node_ids: List[NodeId] = []
        assignments = self.host.assignments.fetch_for_object(
            obj.id, obj.current_version, is_main=False
        )
        for assignment in assignments:
            node = assignment.node
            parent_id = node.parent_node_id if node is not None else assignment.parent_node_id
            if parent_id in requested_parent_ids:
                already_assigned.add(parent_id)
                continue
            assignment.purge()
            if node is not None:
                remove_node_ids.append(node.node_id)

        if remove_node_ids:
            self._remove_subtrees(
                remove_node_ids,
                lambda node: f'[Removed additional location] "{node.name}"',
            )

        for node in requested:
            if node.node_id not in already_assigned:
                self.host.assignments.create(
                    obj.id, obj.current_version, node.node_id, is_main=False
                ).store()

    def remove_object(self, obj: ContentObject) -> bool:
        """
        Remove an object from every tree location it occupies.

        Objects without a main node are purged directly. Otherwise each
        location the host reports as safely removable is removed and the
        others are left in place.

        Returns:
            True when the object was purged or every reported location was
            removed, False when at least one location could not be removed
        """
        object_name = obj.name
        self.output.debug(
            f'Removing "{object_name}" object (class: {obj.class_name}) '
            f"with remote ID {obj.remote_id}",
            object_id=obj.id,
            remote_id=obj.remote_id,
        )

        with self.transaction():
            obj.reset_data_map()
            self.host.objects.clear_cache(obj.id)

            main_node = obj.main_node
            if main_node is None:
                obj.purge()
                removed_all = None
            else:
                node_ids: List[NodeId] = [main_node.node_id]
                for assignment in self.host.assignments.fetch_for_object(obj.id):
                    node = assignment.node
                    if node is not None and node.node_id not in node_ids:
                        node_ids.append(node.node_id)
                removed_all = self._remove_subtrees(
                    node_ids,
                    lambda node: f'[Removed] "{object_name}", Node ID: {node.node_id}',
                )

        if removed_all is None:
            self.output.debug(f'[Removed] "{object_name}"', object_id=obj.id)
            return True
        return removed_all

    def _remove_subtrees(
        self, node_ids: Sequence[NodeId], describe: Callable[[TreeNode], str]
    ) -> bool:
        info = self.host.nodes.subtree_removal_info(node_ids)
        removed_all = True
        for candidate in info.delete_list:
            node = candidate.node
            if node is None:
                continue
            if not candidate.can_remove:
                removed_all = False
                continue
            message = describe(node)
            self.host.nodes.remove_subtrees([node.node_id], move_to_trash=False)
            self.output.debug(message, (ConsoleStyles.REMOVED,), node_id=node.node_id)
        return removed_all

    def set_object_attributes(self, obj: ContentObject, values: Dict[str, str]) -> None:
        """Write string values into the object's attributes by data type."""
        data_map = obj.data_map()
        for identifier, value in values.items():
            attribute = data_map.get(identifier)
            if attribute is None:
                logger.debug(f"{obj.class_name} has no attribute {identifier}, skipped")
                continue
            self.encoders.get(attribute.data_type_string).encode(obj, attribute, value)
            attribute.store()

    def update_visibility(self, obj: ContentObject, visibility: bool = True) -> None:
        """Show or hide every node of the object's current version."""
        action = "show" if visibility else "hide"
        assignments = self.host.assignments.fetch_for_object(obj.id, obj.current_version)
        for assignment in assignments:
            node = assignment.node
            if node is None:
                continue
            if (not node.is_hidden) == bool(visibility):
                continue

            if visibility:
                self.host.nodes.unhide_subtree(node)
            else:
                self.host.nodes.hide_subtree(node)
            self.host.search.update_node_visibility(node.node_id, action)

    def _resolve_additional_parents(
        self, node_ids: Sequence[int], main_parent_id: Optional[NodeId]
    ) -> List[TreeNode]:
        nodes: List[TreeNode] = []
        for node_id in node_ids:
            node = self.host.nodes.fetch(node_id)
            if node is None:
                self.output.error(
                    f"Can't fetch additional parent node by ID: {node_id}", node_id=node_id
                )
                continue
            if node.node_id == main_parent_id:
                continue
            if any(n.node_id == node.node_id for n in nodes):
                continue
            nodes.append(node)
        return nodes

    def _publish(self, obj: ContentObject) -> None:
        obj.commit_input_relations(obj.current_version)
        obj.reset_input_relations()
        self.host.publisher.publish(obj.id, obj.current_version)
