from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


def priority_label(priority: int) -> str:
    if priority in (0, 1):
        return "Urgent"
    if priority in (2, 3, 4):
        return "Important"
    if priority in (5, 6, 7):
        return "Medium"
    if priority in (8, 9, 10):
        return "Low"
    return "Unknown"


def progress_label(percent_complete: int) -> str:
    if percent_complete >= 100:
        return "Completed"
    if percent_complete > 0:
        return "In Progress"
    return "Not started"


class ProgressStatus(str, Enum):
    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    INCOMPLETE = "Incomplete"

    @classmethod
    def parse(cls, raw: str | None) -> ProgressStatus | None:
        """Map free text such as ``"in-progress"`` or ``"Not Started"`` to a status.

        Returns ``None`` for anything unrecognized; callers treat that as "no filter".
        """
        if raw is None:
            return None
        key = raw.strip().casefold().replace(" ", "").replace("-", "").replace("_", "")
        return _PROGRESS_ALIASES.get(key)

    def matches(self, percent_complete: int) -> bool:
        if self is ProgressStatus.NOT_STARTED:
            return percent_complete == 0
        if self is ProgressStatus.IN_PROGRESS:
            return 0 < percent_complete < 100
        if self is ProgressStatus.COMPLETED:
            return percent_complete >= 100
        return percent_complete < 100


_PROGRESS_ALIASES: dict[str, ProgressStatus] = {
    "notstarted": ProgressStatus.NOT_STARTED,
    "inprogress": ProgressStatus.IN_PROGRESS,
    "completed": ProgressStatus.COMPLETED,
    "done": ProgressStatus.COMPLETED,
    "incomplete": ProgressStatus.INCOMPLETE,
    "open": ProgressStatus.INCOMPLETE,
}


class _GraphModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


class Assignment(_GraphModel):
    assigned_by: str | None = None
    assigned_date_time: datetime | None = None
    order_hint: str | None = None


class TaskRecord(_GraphModel):
    id: str
    plan_id: str
    bucket_id: str | None = None
    title: str
    percent_complete: int = 0
    priority: int = 0
    due_date_time: datetime | None = None
    start_date_time: datetime | None = None
    created_date_time: datetime | None = None
    order_hint: str | None = None
    assignee_priority: str | None = None
    has_description: bool = False
    description: str | None = None
    assignments: dict[str, Assignment] = Field(default_factory=dict)

    @computed_field(alias="priorityLabel")
    @property
    def priority_label(self) -> str:
        return priority_label(self.priority)

    @computed_field(alias="progressLabel")
    @property
    def progress_label(self) -> str:
        return progress_label(self.percent_complete)

    def is_assigned_to(self, user_id: str) -> bool:
        return user_id in self.assignments


class Plan(_GraphModel):
    id: str
    title: str
    owner: str | None = None


class Bucket(_GraphModel):
    id: str
    plan_id: str
    name: str = ""


class UserRef(_GraphModel):
    id: str
    mail: str | None = None
    user_principal_name: str | None = None
    display_name: str | None = None
