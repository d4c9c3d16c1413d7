from typing import Generic, Iterable, TypeVar

from gsdsync.models.items import InboxItem, Project, TaskItem

T = TypeVar("T", TaskItem, Project, InboxItem)


class Repository(Generic[T]):
    """In-memory records of one collection, keyed by id.

    Keeps no ordering of its own beyond first-insertion order; sorting is
    done by the view layer.
    """

    def __init__(self, items: Iterable[T] = ()):
        self._items: dict[str, T] = {}
        for item in items:
            self.upsert(item)

    def all(self) -> list[T]:
        return list(self._items.values())

    def find(self, item_id: str) -> T | None:
        return self._items.get(item_id)

    def upsert(self, item: T) -> None:
        """Insert an unseen id, or overwrite the existing record in its slot."""
        self._items[item.id] = item

    def remove(self, item_id: str) -> T | None:
        return self._items.pop(item_id, None)

    def replace_all(self, items: Iterable[T]) -> None:
        fresh: dict[str, T] = {}
        for item in items:
            fresh[item.id] = item
        self._items = fresh

    def max_position(self) -> float:
        """Highest position in the collection, 0 when empty or unpositioned."""
        return max((getattr(item, "position", 0.0) for item in self._items.values()), default=0.0)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items
