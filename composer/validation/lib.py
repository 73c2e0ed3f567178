"""Instance tree validation and static analysis.

This module checks a tree snapshot against the store-level invariants,
reporting every violation rather than stopping at the first. The store and
mutator are written so these never fire; the checker exists for tests,
debugging and for vetting trees assembled outside the engine.
"""

from dataclasses import dataclass

from composer.instance import InstanceStore, TreeSnapshot


@dataclass
class ValidationError:
    """Represents an invariant violation in an instance tree.

    Attributes:
        instance_id: ID of the instance where the error was found.
        message: Human-readable error description.
        error_type: Category of the error.
    """

    instance_id: str
    message: str
    error_type: str


def validate_store(source: TreeSnapshot | InstanceStore) -> list[ValidationError]:
    """Validate a tree for structural issues.

    Performs the following checks:
        - Parent existence (``missing_parent``)
        - Parent lists the child exactly once (``parent_mismatch``,
          ``duplicate_child``)
        - Children resolve and point back (``missing_child``,
          ``parent_mismatch``)
        - Root order lists every root exactly once and nothing else
          (``root_order``)
        - No instance is its own ancestor (``cycle``)

    Args:
        source: A snapshot, or a store to snapshot.

    Returns:
        list[ValidationError]: List of validation errors (empty if valid).

    Example:
        >>> errors = validate_store(store.snapshot())
        >>> if errors:
        ...     for e in errors:
        ...         print(f"{e.instance_id}: {e.message}")
    """
    snapshot = source.snapshot() if isinstance(source, InstanceStore) else source
    errors: list[ValidationError] = []
    errors.extend(_check_parents(snapshot))
    errors.extend(_check_children(snapshot))
    errors.extend(_check_root_order(snapshot))
    errors.extend(_detect_cycles(snapshot))
    return errors


def is_consistent(source: TreeSnapshot | InstanceStore) -> bool:
    """Check if a tree satisfies every invariant.

    Args:
        source: A snapshot, or a store to snapshot.

    Returns:
        bool: True if no validation errors were found.
    """
    return not validate_store(source)


def _check_parents(snapshot: TreeSnapshot) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for instance in snapshot.instances.values():
        if instance.parent_id is None:
            continue
        parent = snapshot.get(instance.parent_id)
        if parent is None:
            errors.append(
                ValidationError(
                    instance_id=instance.id,
                    message=f"Parent '{instance.parent_id}' does not exist",
                    error_type="missing_parent",
                )
            )
            continue
        count = parent.children.count(instance.id)
        if count == 0:
            errors.append(
                ValidationError(
                    instance_id=instance.id,
                    message=f"Parent '{parent.id}' does not list this instance",
                    error_type="parent_mismatch",
                )
            )
        elif count > 1:
            errors.append(
                ValidationError(
                    instance_id=instance.id,
                    message=f"Listed {count} times in parent '{parent.id}'",
                    error_type="duplicate_child",
                )
            )
    return errors


def _check_children(snapshot: TreeSnapshot) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for instance in snapshot.instances.values():
        for child_id in instance.children:
            child = snapshot.get(child_id)
            if child is None:
                errors.append(
                    ValidationError(
                        instance_id=instance.id,
                        message=f"Child '{child_id}' does not exist",
                        error_type="missing_child",
                    )
                )
            elif child.parent_id != instance.id:
                errors.append(
                    ValidationError(
                        instance_id=child_id,
                        message=(
                            f"Listed as a child of '{instance.id}' but its "
                            f"parent is '{child.parent_id}'"
                        ),
                        error_type="parent_mismatch",
                    )
                )
    return errors


def _check_root_order(snapshot: TreeSnapshot) -> list[ValidationError]:
    errors: list[ValidationError] = []
    counts: dict[str, int] = {}
    for root_id in snapshot.root_order:
        counts[root_id] = counts.get(root_id, 0) + 1

    for root_id, count in counts.items():
        instance = snapshot.get(root_id)
        if instance is None:
            message = "Root order references a missing instance"
        elif instance.parent_id is not None:
            message = f"In root order but parented by '{instance.parent_id}'"
        elif count > 1:
            message = f"Appears {count} times in root order"
        else:
            continue
        errors.append(
            ValidationError(instance_id=root_id, message=message, error_type="root_order")
        )

    for instance in snapshot.instances.values():
        if instance.parent_id is None and instance.id not in counts:
            errors.append(
                ValidationError(
                    instance_id=instance.id,
                    message="Root instance missing from root order",
                    error_type="root_order",
                )
            )
    return errors


def _detect_cycles(snapshot: TreeSnapshot) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for instance in snapshot.instances.values():
        seen = {instance.id}
        current = instance
        while current.parent_id is not None:
            if current.parent_id in seen:
                if current.parent_id == instance.id:
                    errors.append(
                        ValidationError(
                            instance_id=instance.id,
                            message=f"Cycle detected: '{instance.id}' is its own ancestor",
                            error_type="cycle",
                        )
                    )
                break
            seen.add(current.parent_id)
            parent = snapshot.get(current.parent_id)
            if parent is None:
                break
            current = parent
    return errors


__all__ = ["ValidationError", "validate_store", "is_consistent"]
