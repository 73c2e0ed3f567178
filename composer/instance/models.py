"""Data models for the component instance tree.

Instances live in a flat arena keyed by id. Every relationship is an id
reference (``parent_id``, ``children``), never an object pointer, so a
snapshot is a plain mapping that can be copied, compared and walked
without ownership questions.
"""

from datetime import UTC, datetime
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(UTC)


class InstanceMetadata(BaseModel):
    """Editor-side metadata attached to an instance.

    Attributes:
        locked: Locked instances cannot be dragged or selected by pointer.
        is_sub_component: Instance is a structural part of its parent.
        sub_component_type: Role of the sub-component (e.g. "header").
        name: Optional user-facing name shown next to the schema name.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    locked: bool = False
    is_sub_component: bool = False
    sub_component_type: str | None = None
    name: str | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class ComponentInstance(BaseModel):
    """One placed occurrence of a schema-backed component.

    Attributes:
        id: Unique identifier, fixed at creation.
        schema_id: Registry key of the component type, fixed at creation.
        props: Property values for the renderer.
        parent_id: Containing instance; None for root-level instances.
        children: Ordered ids of child instances.
        metadata: Editor metadata.
    """

    id: str = Field(..., frozen=True, description="Unique instance identifier")
    schema_id: str = Field(..., frozen=True, description="Component schema id")
    props: dict[str, Any] = Field(default_factory=dict)
    parent_id: str | None = None
    children: list[str] = Field(default_factory=list)
    metadata: InstanceMetadata = Field(default_factory=InstanceMetadata)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def label(self) -> str:
        """User-facing name, falling back to the schema id."""
        return self.metadata.name or self.schema_id


class TreeSnapshot(BaseModel):
    """Immutable copy of the whole tree, handed to subscribers.

    Snapshots compare by value, so two snapshots taken around a rejected
    operation are equal.
    """

    model_config = ConfigDict(frozen=True)

    instances: dict[str, ComponentInstance] = Field(default_factory=dict)
    root_order: list[str] = Field(default_factory=list)

    def get(self, instance_id: str) -> ComponentInstance | None:
        return self.instances.get(instance_id)

    def children_of(self, instance_id: str | None) -> list[ComponentInstance]:
        """Resolved children of an instance, or the roots for None."""
        if instance_id is None:
            ids = self.root_order
        else:
            parent = self.instances.get(instance_id)
            ids = parent.children if parent else []
        return [self.instances[i] for i in ids if i in self.instances]

    def walk(self) -> Iterator[tuple[ComponentInstance, int]]:
        """Yield (instance, depth) depth-first in document order."""
        seen: set[str] = set()

        def visit(instance_id: str, depth: int) -> Iterator[tuple[ComponentInstance, int]]:
            instance = self.instances.get(instance_id)
            if instance is None or instance_id in seen:
                return
            seen.add(instance_id)
            yield instance, depth
            for child_id in instance.children:
                yield from visit(child_id, depth + 1)

        for root_id in self.root_order:
            yield from visit(root_id, 0)

    def to_nested(self) -> list[dict[str, Any]]:
        """Nested dict tree for renderers that prefer a recursive shape."""

        def build(instance: ComponentInstance) -> dict[str, Any]:
            return {
                "id": instance.id,
                "schema_id": instance.schema_id,
                "props": dict(instance.props),
                "metadata": instance.metadata.model_dump(mode="json"),
                "children": [build(c) for c in self.children_of(instance.id)],
            }

        return [build(root) for root in self.children_of(None)]

    def __len__(self) -> int:
        return len(self.instances)


__all__ = ["InstanceMetadata", "ComponentInstance", "TreeSnapshot"]
