"""Fractional positions.

Moving an item writes a single new position between its new neighbours, so a
reorder costs one remote patch whatever the collection size. Positions only
carry relative order; they are neither unique nor contiguous.
"""

from typing import Callable, Sequence

from gsdsync.exceptions import PositionExhaustedError
from gsdsync.models.items import Project, TaskItem
from gsdsync.models.view import SortDirection

Positioned = TaskItem | Project

DEFAULT_EPSILON = 1e-9


def _between(before: float | None, after: float | None, epsilon: float) -> float:
    if before is None and after is None:
        return 1.0
    if before is None:
        new = after / 2 if after > 0 else after - 1
        if after - new < epsilon:
            raise PositionExhaustedError(f"no room below position {after!r}")
        return new
    if after is None:
        new = before + 1
        if new <= before:
            raise PositionExhaustedError(f"no room above position {before!r}")
        return new
    new = (before + after) / 2
    if new - before < epsilon or after - new < epsilon:
        raise PositionExhaustedError(f"no room between positions {before!r} and {after!r}")
    return new


def allocate_position(
    view: Sequence[Positioned],
    item_id: str,
    new_index: int,
    direction: SortDirection = "asc",
    max_position: float | None = None,
    epsilon: float = DEFAULT_EPSILON,
) -> float:
    """Return the position that puts ``item_id`` at ``new_index`` of ``view``.

    ``view`` is the sequence as the user sees it, sorted by position in
    ``direction`` and still containing the item at its old place. For a
    descending view the neighbours are mapped through ``max - p + 1`` so the
    arithmetic runs in ascending order, and the result is mapped back.
    ``max_position`` defaults to the highest position in ``view``; pass the
    whole collection's maximum when the view is filtered.

    Raises PositionExhaustedError when the gap is too narrow to split.
    """
    others = [item for item in view if item.id != item_id]
    index = min(max(new_index, 0), len(others))

    reflect: Callable[[float], float] = lambda p: p
    if direction == "desc":
        top = max_position
        if top is None:
            top = max((item.position for item in view), default=0.0)
        reflect = lambda p: top - p + 1

    before = reflect(others[index - 1].position) if index > 0 else None
    after = reflect(others[index].position) if index < len(others) else None
    return reflect(_between(before, after, epsilon))


def renormalize(items: Sequence[Positioned]) -> dict[str, float]:
    """Evenly spaced positions 1..n in current order; only changed ids are returned."""
    ordered = sorted(items, key=lambda item: item.position)
    changes = {}
    for rank, item in enumerate(ordered, start=1):
        if item.position != float(rank):
            changes[item.id] = float(rank)
    return changes
