"""Partial updates accepted by the remote store.

Each variant carries exactly one field. ``to_payload`` returns the JSON body
for ``PATCH /{collection}/{id}``; a ``None`` value is sent as an explicit null
so the store clears the column.
"""

import math

from pydantic import BaseModel, field_validator

from gsdsync.models.items import Energy, Size


class FieldPatch(BaseModel):
    def to_payload(self) -> dict:
        return self.model_dump(mode="json")


# --- Next actions ---


class CompletionPatch(FieldPatch):
    completed_at: str | None


class PositionPatch(FieldPatch):
    position: float

    @field_validator("position")
    @classmethod
    def finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("position must be a finite number")
        return value


class ActionTextPatch(FieldPatch):
    action: str

    @field_validator("action")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("action text cannot be blank")
        return value


class ProjectRefPatch(FieldPatch):
    project_id: str | None


class SizePatch(FieldPatch):
    size: Size | None


class EnergyPatch(FieldPatch):
    energy: Energy | None


class UrlPatch(FieldPatch):
    url: str | None


TASK_PATCHES = (
    CompletionPatch,
    PositionPatch,
    ActionTextPatch,
    ProjectRefPatch,
    SizePatch,
    EnergyPatch,
    UrlPatch,
)


# --- Projects ---


class ProjectPositionPatch(PositionPatch):
    pass


class DeadlinePatch(FieldPatch):
    deadline: str | None


PROJECT_PATCHES = (ProjectPositionPatch, DeadlinePatch)
