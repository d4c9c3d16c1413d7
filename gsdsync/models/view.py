from typing import Literal

from pydantic import BaseModel

FilterKey = Literal["all", "active", "completed"]
SortKey = Literal["position", "energy", "size"]
SortDirection = Literal["asc", "desc"]

DEFAULT_DIRECTION: dict[str, SortDirection] = {
    "position": "asc",
    "energy": "desc",
    "size": "asc",
}


class ViewState(BaseModel):
    filter_by: FilterKey = "active"
    sort_by: SortKey = "position"
    sort_direction: SortDirection = "asc"

    model_config = {"validate_assignment": True}

    def toggle_sort(self, key: SortKey) -> None:
        """Flip direction on the active key, or switch key at its default direction."""
        if key == self.sort_by:
            self.sort_direction = "desc" if self.sort_direction == "asc" else "asc"
        else:
            self.sort_by = key
            self.sort_direction = DEFAULT_DIRECTION[key]
