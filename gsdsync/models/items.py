from typing import Literal

from pydantic import BaseModel, field_validator

Size = Literal["small", "medium", "big"]
Energy = Literal["high", "low"]

SIZE_RANK = {"small": 1, "medium": 2, "big": 3}
ENERGY_RANK = {"high": -1, "low": 1}


def blank_to_none(value):
    # The remote store sends "" for unset optional columns.
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


class TaskItem(BaseModel):
    id: str
    action: str
    project_id: str | None = None
    url: str | None = None
    size: Size | None = None
    energy: Energy | None = None
    created_at: str
    completed_at: str | None = None
    position: float = 0.0

    @field_validator("project_id", "url", "size", "energy", "completed_at", mode="before")
    @classmethod
    def optional_blank(cls, value):
        return blank_to_none(value)

    @field_validator("position", mode="before")
    @classmethod
    def missing_position(cls, value):
        return 0.0 if value is None else value

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


class Project(BaseModel):
    id: str
    name: str
    position: float = 0.0
    created_at: str | None = None
    deadline: str | None = None

    @field_validator("created_at", "deadline", mode="before")
    @classmethod
    def optional_blank(cls, value):
        return blank_to_none(value)

    @field_validator("position", mode="before")
    @classmethod
    def missing_position(cls, value):
        return 0.0 if value is None else value


class InboxItem(BaseModel):
    id: str
    description: str
    url: str | None = None
    created_at: str

    @field_validator("url", mode="before")
    @classmethod
    def optional_blank(cls, value):
        return blank_to_none(value)
