"""Filtered, sorted reads of the canonical collections. Nothing here mutates."""

from typing import Iterable

from gsdsync.models.items import ENERGY_RANK, SIZE_RANK, Project, TaskItem
from gsdsync.models.view import FilterKey, SortDirection, SortKey, ViewState


def _keep(item: TaskItem, filter_by: FilterKey) -> bool:
    if filter_by == "active":
        return not item.is_completed
    if filter_by == "completed":
        return item.is_completed
    return True


def _sort_ranked(items: list[TaskItem], field: str, ranks: dict[str, int], reverse: bool) -> list[TaskItem]:
    # Items without the field go last whichever way the rest is sorted.
    present = [item for item in items if getattr(item, field) is not None]
    missing = [item for item in items if getattr(item, field) is None]
    present.sort(key=lambda item: ranks[getattr(item, field)], reverse=reverse)
    return present + missing


def project_view(
    items: Iterable[TaskItem],
    filter_by: FilterKey = "active",
    sort_by: SortKey = "position",
    direction: SortDirection = "asc",
) -> list[TaskItem]:
    """Filter then sort next actions. Ties keep the order they were given in."""
    selected = [item for item in items if _keep(item, filter_by)]
    reverse = direction == "desc"
    if sort_by == "energy":
        return _sort_ranked(selected, "energy", ENERGY_RANK, reverse)
    if sort_by == "size":
        return _sort_ranked(selected, "size", SIZE_RANK, reverse)
    return sorted(selected, key=lambda item: item.position or 0.0, reverse=reverse)


def project_state_view(items: Iterable[TaskItem], state: ViewState) -> list[TaskItem]:
    return project_view(items, state.filter_by, state.sort_by, state.sort_direction)


def project_order(projects: Iterable[Project]) -> list[Project]:
    return sorted(projects, key=lambda project: project.position or 0.0)
