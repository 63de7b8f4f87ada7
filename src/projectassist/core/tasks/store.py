from __future__ import annotations

import logging
from datetime import datetime, timezone

from projectassist.core.graph.base import PlannerConnector
from projectassist.core.operations.errors import InvalidArgument, NotFound

from .schemas import Assignment, Bucket, Plan, ProgressStatus, TaskRecord, UserRef

logger = logging.getLogger(__name__)

_ASSIGNMENT_ODATA_TYPE = "#microsoft.graph.plannerAssignment"


def _require(value: str | None, name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgument(f"{name} cannot be empty")
    return str(value).strip()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _assignments_from_graph(raw: object) -> dict[str, Assignment]:
    if not isinstance(raw, dict):
        return {}
    assignments: dict[str, Assignment] = {}
    for user_id, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        odata_type = entry.get("@odata.type")
        if odata_type is not None and odata_type != _ASSIGNMENT_ODATA_TYPE:
            continue
        assigned_by = ((entry.get("assignedBy") or {}).get("user") or {}).get("id")
        assignments[str(user_id)] = Assignment(
            assigned_by=assigned_by,
            assigned_date_time=entry.get("assignedDateTime"),
            order_hint=entry.get("orderHint"),
        )
    return assignments


def task_from_graph(raw: dict) -> TaskRecord:
    """Build a TaskRecord from a raw plannerTask payload.

    Optional fields absent from the payload fall back to the record defaults;
    the description is only carried when the task says it has one.
    """
    details = raw.get("details") if isinstance(raw.get("details"), dict) else {}
    has_description = bool(raw.get("hasDescription"))
    description = details.get("description") if has_description else None
    return TaskRecord(
        id=str(raw.get("id") or ""),
        plan_id=str(raw.get("planId") or ""),
        bucket_id=raw.get("bucketId"),
        title=str(raw.get("title") or ""),
        percent_complete=int(raw.get("percentComplete") or 0),
        priority=int(raw.get("priority") or 0),
        due_date_time=raw.get("dueDateTime"),
        start_date_time=raw.get("startDateTime"),
        created_date_time=raw.get("createdDateTime"),
        order_hint=raw.get("orderHint"),
        assignee_priority=raw.get("assigneePriority"),
        has_description=has_description,
        description=description or None,
        assignments=_assignments_from_graph(raw.get("assignments")),
    )


def filter_by_priority(tasks: list[TaskRecord], priority: int) -> list[TaskRecord]:
    return [task for task in tasks if task.priority == priority]


def filter_by_progress(tasks: list[TaskRecord], status: str | None) -> list[TaskRecord]:
    parsed = ProgressStatus.parse(status)
    if parsed is None:
        logger.debug("unrecognized progress status %r; returning unfiltered tasks", status)
        return list(tasks)
    return [task for task in tasks if parsed.matches(task.percent_complete)]


def filter_overdue(tasks: list[TaskRecord], now: datetime) -> list[TaskRecord]:
    reference = _as_utc(now)
    return [
        task
        for task in tasks
        if task.due_date_time is not None
        and _as_utc(task.due_date_time) < reference
        and task.percent_complete < 100
    ]


class TaskStore:
    """Fetches planner tasks and exposes the filtered views the operations need.

    Nothing is cached: every call goes back to the connector, so plans and
    buckets are re-resolved for each operation.
    """

    def __init__(self, connector: PlannerConnector) -> None:
        self.connector = connector

    def list_tasks(self, access_token: str, email: str | None = None) -> list[TaskRecord]:
        token = _require(access_token, "access_token")
        if email is None or not email.strip():
            return [task_from_graph(raw) for raw in self.connector.list_my_tasks(token)]

        user = self.resolve_user(token, email)
        tasks = [task_from_graph(raw) for raw in self.connector.list_user_tasks(token, email.strip())]
        # Assignment keys are user ids, never email addresses.
        return [task for task in tasks if task.is_assigned_to(user.id)]

    def tasks_by_priority(self, access_token: str, priority: int, email: str | None = None) -> list[TaskRecord]:
        return filter_by_priority(self.list_tasks(access_token, email), priority)

    def tasks_by_progress(self, access_token: str, status: str | None, email: str | None = None) -> list[TaskRecord]:
        return filter_by_progress(self.list_tasks(access_token, email), status)

    def overdue_tasks(self, access_token: str, now: datetime, email: str | None = None) -> list[TaskRecord]:
        return filter_overdue(self.list_tasks(access_token, email), now)

    def tasks_in_plan(self, access_token: str, email: str, plan_name: str) -> list[TaskRecord]:
        _require(email, "email")
        plan = self.resolve_plan(access_token, plan_name)
        return [task for task in self.list_tasks(access_token, email) if task.plan_id.casefold() == plan.id.casefold()]

    def resolve_user(self, access_token: str, email: str) -> UserRef:
        address = _require(email, "email")
        raw = self.connector.find_user_by_email(access_token, address)
        if not raw or not raw.get("id"):
            raise NotFound(f"No user found with email {address}.")
        return UserRef.model_validate(raw)

    def resolve_plan(self, access_token: str, plan_name: str | None) -> Plan:
        token = _require(access_token, "access_token")
        plans = [Plan.model_validate(raw) for raw in self.connector.list_my_plans(token) if raw.get("id")]
        needle = (plan_name or "").strip().casefold()
        if not needle:
            match = plans[0] if plans else None
        else:
            # First match in provider order; several plans may contain the same name.
            match = next((plan for plan in plans if needle in plan.title.casefold()), None)
        if match is None:
            raise NotFound(f"No plans found with name {plan_name}.")
        return match

    def resolve_bucket(self, access_token: str, plan_id: str) -> Bucket:
        token = _require(access_token, "access_token")
        plan_key = _require(plan_id, "plan_id")
        buckets = [Bucket.model_validate(raw) for raw in self.connector.list_plan_buckets(token, plan_key) if raw.get("id")]
        match = next((bucket for bucket in buckets if bucket.plan_id.casefold() == plan_key.casefold()), None)
        if match is None:
            raise NotFound(f"No buckets found for plan ID {plan_key}.")
        return match

    def create_task(self, access_token: str, plan_name: str, title: str) -> TaskRecord:
        token = _require(access_token, "access_token")
        plan_label = _require(plan_name, "plan_name")
        task_title = _require(title, "title")

        plan = self.resolve_plan(token, plan_label)
        bucket = self.resolve_bucket(token, plan.id)
        created = self.connector.create_task(token, plan.id, bucket.id, task_title)
        logger.info(
            "planner_task_created",
            extra={"extra_fields": {"plan_id": plan.id, "bucket_id": bucket.id, "task_id": created.get("id")}},
        )
        return task_from_graph(created)
