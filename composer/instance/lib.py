"""Instance store for the component tree.

The store is the canonical arena of ComponentInstance objects plus the
ordered list of root ids. It owns creation, mutation and deletion, answers
ancestry queries, and publishes a TreeSnapshot to subscribers after every
change.

Store-level invariants, held after every public call:
    1. No instance is its own ancestor.
    2. An instance with parent P appears exactly once in P.children.
    3. A root instance appears exactly once in the root order and in no
       children list.
    4. Every id in a children list or parent_id resolves.
"""

import copy
import logging
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, Callable, Iterable, Iterator, Mapping
from uuid import uuid4

from pydantic import ValidationError

from composer.result import OperationResult, Rejection
from composer.schema import SchemaSource

from .models import ComponentInstance, InstanceMetadata, TreeSnapshot

logger = logging.getLogger(__name__)

Listener = Callable[[TreeSnapshot], None]


class _Unset:
    """Marker for keyword arguments where None is a meaningful value."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def _default_id() -> str:
    return str(uuid4())


def _describe(error: ValidationError) -> str:
    """One-line summary of a metadata validation failure."""
    first = error.errors()[0]
    field = ".".join(str(p) for p in first["loc"]) or "metadata"
    return f"Invalid metadata field '{field}': {first['msg']}"


class InstanceStore:
    """Arena-and-index store of component instances.

    Example:
        >>> store = InstanceStore(create_default_registry())
        >>> page = store.create_instance("Container").instance_id
        >>> card = store.create_instance("Card", {"title": "X"}, parent_id=page)
        >>> [i.schema_id for i in store.get_children(page)]
        ['Card']

    Args:
        schemas: Source of schema defaults and container capability.
        id_factory: Callable producing new instance ids. Defaults to uuid4.
    """

    def __init__(
        self,
        schemas: SchemaSource,
        id_factory: Callable[[], str] | None = None,
    ):
        self._schemas = schemas
        self._id_factory = id_factory or _default_id
        self._instances: dict[str, ComponentInstance] = {}
        self._root_order: list[str] = []
        self._listeners: list[Listener] = []
        self._batch_depth = 0
        self._dirty = False
        # Pre-batch state of everything the open batch has touched; None
        # marks an instance created inside the batch.
        self._journal: dict[str, ComponentInstance | None] = {}
        self._saved_roots: list[str] | None = None

    @property
    def schemas(self) -> SchemaSource:
        return self._schemas

    # =========================================================================
    # Subscription
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every change.

        Returns:
            A callable that removes the listener. Calling it twice is harmless.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(f"Store listener {listener!r} failed: {e}")

    @contextmanager
    def batch(self) -> Iterator["InstanceStore"]:
        """Group mutations into one atomic update.

        Subscribers are notified once, when the outermost batch exits with
        changes. If the body raises, the store is restored to its state at
        entry and nobody is notified.

        Only instances a mutation actually touches are copied for rollback,
        so the cost of a batch follows the size of the edit, not the store.
        """
        outermost = self._batch_depth == 0
        if outermost:
            self._journal = {}
            self._saved_roots = None
            self._dirty = False
        self._batch_depth += 1
        try:
            yield self
        except BaseException:
            if outermost:
                self._rollback()
                self._dirty = False
            raise
        finally:
            self._batch_depth -= 1
            if outermost:
                self._journal = {}
                self._saved_roots = None

        if outermost and self._dirty:
            self._dirty = False
            self._notify()

    def _record(self, instance_id: str) -> None:
        """Remember an instance's pre-batch state before mutating it."""
        if instance_id in self._journal:
            return
        current = self._instances.get(instance_id)
        self._journal[instance_id] = (
            current.model_copy(deep=True) if current is not None else None
        )

    def _record_roots(self) -> None:
        if self._saved_roots is None:
            self._saved_roots = list(self._root_order)

    def _rollback(self) -> None:
        for instance_id, original in self._journal.items():
            if original is None:
                self._instances.pop(instance_id, None)
            else:
                self._instances[instance_id] = original
        if self._saved_roots is not None:
            self._root_order = self._saved_roots
        logger.debug(f"Rolled back batch ({len(self._journal)} instances)")

    def _touch(self, instance: ComponentInstance) -> None:
        instance.metadata.updated_at = datetime.now(UTC)
        self._dirty = True

    # =========================================================================
    # Queries
    # =========================================================================

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self._instances

    @property
    def root_order(self) -> list[str]:
        """Ordered ids of root-level instances (a copy)."""
        return list(self._root_order)

    def snapshot(self) -> TreeSnapshot:
        """Deep copy of the current tree."""
        return TreeSnapshot(
            instances={k: v.model_copy(deep=True) for k, v in self._instances.items()},
            root_order=list(self._root_order),
        )

    def get_instance(self, instance_id: str) -> ComponentInstance | None:
        """Get a copy of an instance, or None if it does not exist."""
        instance = self._instances.get(instance_id)
        return instance.model_copy(deep=True) if instance else None

    def root_instances(self) -> list[ComponentInstance]:
        return [
            self._instances[i].model_copy(deep=True)
            for i in self._root_order
            if i in self._instances
        ]

    def get_children(self, instance_id: str) -> list[ComponentInstance]:
        """Resolve an instance's children, skipping ids that do not resolve."""
        parent = self._instances.get(instance_id)
        if parent is None:
            return []
        return [
            self._instances[child_id].model_copy(deep=True)
            for child_id in parent.children
            if child_id in self._instances
        ]

    def get_ancestors(self, instance_id: str) -> list[ComponentInstance]:
        """Ancestors from the immediate parent up to the outermost root.

        Callers building a breadcrumb reverse this to display root-first.
        """
        ancestors: list[ComponentInstance] = []
        seen = {instance_id}
        current = self._instances.get(instance_id)
        while current is not None and current.parent_id is not None:
            if current.parent_id in seen:
                logger.error(f"Cycle detected above instance '{instance_id}'")
                break
            parent = self._instances.get(current.parent_id)
            if parent is None:
                break
            seen.add(parent.id)
            ancestors.append(parent.model_copy(deep=True))
            current = parent
        return ancestors

    def get_descendants(self, instance_id: str) -> list[str]:
        """Ids of every descendant, depth-first in document order."""
        result: list[str] = []
        root = self._instances.get(instance_id)
        if root is None:
            return result

        stack = list(reversed(root.children))
        seen = {instance_id}
        while stack:
            current_id = stack.pop()
            if current_id in seen:
                continue
            seen.add(current_id)
            current = self._instances.get(current_id)
            if current is None:
                continue
            result.append(current_id)
            stack.extend(reversed(current.children))
        return result

    def is_descendant(self, ancestor_id: str, instance_id: str) -> bool:
        """Whether instance_id sits somewhere below ancestor_id."""
        seen: set[str] = set()
        current = self._instances.get(instance_id)
        while current is not None and current.parent_id is not None:
            if current.parent_id == ancestor_id:
                return True
            if current.parent_id in seen:
                return False
            seen.add(current.parent_id)
            current = self._instances.get(current.parent_id)
        return False

    def is_container(self, instance_id: str) -> bool:
        """Whether the instance's schema accepts children."""
        instance = self._instances.get(instance_id)
        if instance is None:
            return False
        schema = self._schemas.lookup(instance.schema_id)
        return schema is not None and schema.is_container

    def sibling_ids(self, parent_id: str | None) -> list[str]:
        """Copy of the ordered id list a parent owns (root order for None)."""
        if parent_id is None:
            return list(self._root_order)
        parent = self._instances.get(parent_id)
        return list(parent.children) if parent else []

    def index_of(self, instance_id: str) -> int | None:
        """Position of an instance within its parent's children or the roots."""
        instance = self._instances.get(instance_id)
        if instance is None:
            return None
        siblings = self.sibling_ids(instance.parent_id)
        return siblings.index(instance_id) if instance_id in siblings else None

    # =========================================================================
    # Mutation
    # =========================================================================

    def _new_id(self) -> str:
        new_id = self._id_factory()
        while new_id in self._instances:
            new_id = self._id_factory()
        return new_id

    def create_instance(
        self,
        schema_id: str,
        props: Mapping[str, Any] | None = None,
        parent_id: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> OperationResult:
        """Create an instance and append it to its parent or the root order.

        Schema defaults are merged under the supplied props.

        Args:
            schema_id: Registry key of the component type.
            props: Props overriding the schema defaults.
            parent_id: Container to append to. None creates a root.
            metadata: Initial metadata fields (locked, name, ...).

        Returns:
            Success with the new id, or UNKNOWN_SCHEMA / UNKNOWN_INSTANCE /
            INVALID_POSITION without any mutation.
        """
        schema = self._schemas.lookup(schema_id)
        if schema is None:
            logger.info(f"Rejected create: schema '{schema_id}' not found")
            return OperationResult.rejected(
                Rejection.UNKNOWN_SCHEMA, f"Schema '{schema_id}' not found"
            )

        if parent_id is not None:
            if parent_id not in self._instances:
                return OperationResult.rejected(
                    Rejection.UNKNOWN_INSTANCE, f"Parent '{parent_id}' not found"
                )
            if not self.is_container(parent_id):
                return OperationResult.rejected(
                    Rejection.INVALID_POSITION,
                    f"Parent '{parent_id}' does not accept children",
                )

        try:
            instance_metadata = InstanceMetadata.model_validate(dict(metadata or {}))
        except ValidationError as e:
            logger.info(f"Rejected create of '{schema_id}': invalid metadata")
            return OperationResult.rejected(Rejection.INVALID_METADATA, _describe(e))

        instance = ComponentInstance(
            id=self._new_id(),
            schema_id=schema_id,
            props=schema.new_props(dict(props) if props else None),
            parent_id=parent_id,
            metadata=instance_metadata,
        )

        with self.batch():
            self._record(instance.id)
            self._instances[instance.id] = instance
            if parent_id is None:
                self._record_roots()
                self._root_order.append(instance.id)
            else:
                self._record(parent_id)
                parent = self._instances[parent_id]
                parent.children.append(instance.id)
                self._touch(parent)
            self._dirty = True

        logger.debug(f"Created '{schema_id}' instance {instance.id}")
        return OperationResult.success(instance.id)

    def update_instance(
        self,
        instance_id: str,
        *,
        props: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
        children: Iterable[str] | None = None,
        parent_id: str | None = UNSET,
    ) -> OperationResult:
        """Update an instance in place.

        ``props`` and ``metadata`` are shallow-merged. ``children`` and
        ``parent_id`` replace the stored values wholesale; they are
        low-level primitives and keeping both sides of a link in step across
        several such updates is the caller's job (see TreeMutator). A
        structural update that would make an instance its own ancestor is
        always refused.

        Returns:
            Success, or UNKNOWN_INSTANCE if the instance or any referenced
            id does not exist, CYCLIC_MOVE_REJECTED for a parent or child
            that would close a loop, INVALID_METADATA if the merged metadata
            does not validate.
        """
        instance = self._instances.get(instance_id)
        if instance is None:
            return OperationResult.rejected(
                Rejection.UNKNOWN_INSTANCE, f"Instance '{instance_id}' not found"
            )

        new_children = list(children) if children is not None else None
        if new_children is not None:
            missing = [c for c in new_children if c not in self._instances]
            if missing:
                return OperationResult.rejected(
                    Rejection.UNKNOWN_INSTANCE,
                    f"Unknown child ids: {', '.join(missing)}",
                    instance_id,
                )
            if instance_id in new_children:
                return OperationResult.rejected(
                    Rejection.CYCLIC_MOVE_REJECTED,
                    f"Instance '{instance_id}' cannot contain itself",
                    instance_id,
                )
            ancestor_ids = {a.id for a in self.get_ancestors(instance_id)}
            looped = [c for c in new_children if c in ancestor_ids]
            if looped:
                return OperationResult.rejected(
                    Rejection.CYCLIC_MOVE_REJECTED,
                    f"Instance '{instance_id}' cannot contain its ancestor "
                    f"'{looped[0]}'",
                    instance_id,
                )

        if parent_id is not UNSET and parent_id is not None:
            if parent_id not in self._instances:
                return OperationResult.rejected(
                    Rejection.UNKNOWN_INSTANCE, f"Parent '{parent_id}' not found"
                )
            if parent_id == instance_id or self.is_descendant(instance_id, parent_id):
                return OperationResult.rejected(
                    Rejection.CYCLIC_MOVE_REJECTED,
                    f"Instance '{instance_id}' cannot be parented by "
                    f"'{parent_id}'",
                    instance_id,
                )

        new_metadata = None
        if metadata:
            merged = {**instance.metadata.model_dump(), **dict(metadata)}
            try:
                new_metadata = InstanceMetadata.model_validate(merged)
            except ValidationError as e:
                logger.info(f"Rejected update of '{instance_id}': invalid metadata")
                return OperationResult.rejected(
                    Rejection.INVALID_METADATA, _describe(e), instance_id
                )

        with self.batch():
            self._record(instance_id)
            if props:
                instance.props = {**instance.props, **copy.deepcopy(dict(props))}
            if new_metadata is not None:
                instance.metadata = new_metadata
            if new_children is not None:
                instance.children = new_children
            if parent_id is not UNSET:
                instance.parent_id = parent_id
            self._touch(instance)

        return OperationResult.success(instance_id)

    def update_instances(
        self, updates: Iterable[tuple[str, Mapping[str, Any]]]
    ) -> list[OperationResult]:
        """Apply several updates with a single notification.

        Each update is a (instance_id, keyword arguments) pair for
        update_instance. Rejected entries leave the others applied.
        """
        with self.batch():
            return [
                self.update_instance(instance_id, **dict(fields))
                for instance_id, fields in updates
            ]

    def set_root_order(self, ids: Iterable[str]) -> OperationResult:
        """Replace the root order list wholesale (mutator primitive)."""
        new_order = list(ids)
        missing = [i for i in new_order if i not in self._instances]
        if missing:
            return OperationResult.rejected(
                Rejection.UNKNOWN_INSTANCE, f"Unknown root ids: {', '.join(missing)}"
            )
        with self.batch():
            if new_order != self._root_order:
                self._record_roots()
                self._root_order = new_order
                self._dirty = True
        return OperationResult.success()

    def delete_instance(self, instance_id: str) -> OperationResult:
        """Delete an instance and its whole subtree.

        The id is excised from its former parent's children or from the
        root order.
        """
        instance = self._instances.get(instance_id)
        if instance is None:
            return OperationResult.rejected(
                Rejection.UNKNOWN_INSTANCE, f"Instance '{instance_id}' not found"
            )

        doomed = [instance_id, *self.get_descendants(instance_id)]
        with self.batch():
            parent = (
                self._instances.get(instance.parent_id)
                if instance.parent_id is not None
                else None
            )
            if parent is not None:
                self._record(parent.id)
                parent.children = [c for c in parent.children if c != instance_id]
                self._touch(parent)
            else:
                self._record_roots()
                self._root_order = [r for r in self._root_order if r != instance_id]
            # Removed instances are never mutated again, so the popped object
            # itself serves as the rollback copy.
            for doomed_id in doomed:
                removed = self._instances.pop(doomed_id, None)
                self._journal.setdefault(doomed_id, removed)
            self._dirty = True

        logger.debug(f"Deleted instance {instance_id} ({len(doomed)} total)")
        return OperationResult.success(instance_id)

    def delete_instances(self, ids: Iterable[str]) -> list[OperationResult]:
        """Delete several subtrees with a single notification.

        Ids already removed as part of an earlier subtree report
        UNKNOWN_INSTANCE.
        """
        with self.batch():
            return [self.delete_instance(i) for i in list(ids)]

    def clear(self) -> None:
        """Remove every instance."""
        with self.batch():
            if self._instances or self._root_order:
                self._record_roots()
                for instance_id, instance in self._instances.items():
                    self._journal.setdefault(instance_id, instance)
                self._instances = {}
                self._root_order = []
                self._dirty = True


__all__ = ["InstanceStore", "Listener", "UNSET"]
