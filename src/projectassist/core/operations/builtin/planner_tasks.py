from __future__ import annotations

import logging
from datetime import datetime

from pydantic import Field

from projectassist.core.operations.base import OperationContext, OperationInput, OperationResult
from projectassist.core.tasks.store import TaskStore

logger = logging.getLogger(__name__)


class ScopeInput(OperationInput):
    email: str | None = Field(default=None, description="Assignee email; omit for the signed-in user.")


class PriorityInput(ScopeInput):
    priority: int = Field(description="Raw planner priority, 0 (most urgent) to 10.")


class ProgressInput(ScopeInput):
    status: str = Field(description="NotStarted, InProgress, Completed or Incomplete.")


class PlanTasksInput(OperationInput):
    email: str
    plan_name: str


class GetPlanInput(OperationInput):
    plan_name: str | None = None


class GetBucketInput(OperationInput):
    plan_id: str


class CreateTaskInput(OperationInput):
    plan_name: str
    title: str
    assignee_email: str | None = None
    description: str | None = None
    due_date_time: datetime | None = None


class _TaskStoreOperation:
    def __init__(self, store: TaskStore) -> None:
        self.store = store


class ListTasksOperation(_TaskStoreOperation):
    name = "list_tasks"
    description = "Get all planner tasks for the current user, or the tasks assigned to a user by email."
    input_model = ScopeInput

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        payload = ScopeInput.model_validate_json(arguments)
        return OperationResult.of(self.store.list_tasks(context.access_token, payload.email))


class FilterTasksByPriorityOperation(_TaskStoreOperation):
    name = "filter_tasks_by_priority"
    description = "Get planner tasks with an exact raw priority value."
    input_model = PriorityInput

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        payload = PriorityInput.model_validate_json(arguments)
        return OperationResult.of(self.store.tasks_by_priority(context.access_token, payload.priority, payload.email))


class FilterTasksByProgressOperation(_TaskStoreOperation):
    name = "filter_tasks_by_progress"
    description = "Get planner tasks by progress status (NotStarted, InProgress, Completed, Incomplete)."
    input_model = ProgressInput

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        payload = ProgressInput.model_validate_json(arguments)
        return OperationResult.of(self.store.tasks_by_progress(context.access_token, payload.status, payload.email))


class FilterOverdueTasksOperation(_TaskStoreOperation):
    name = "filter_overdue_tasks"
    description = "Get planner tasks whose due date has passed and that are not completed."
    input_model = ScopeInput

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        payload = ScopeInput.model_validate_json(arguments)
        return OperationResult.of(self.store.overdue_tasks(context.access_token, context.now(), payload.email))


class ListTasksInPlanOperation(_TaskStoreOperation):
    name = "list_tasks_in_plan"
    description = "Get all planner tasks assigned to a user by email in a specific plan."
    input_model = PlanTasksInput

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        payload = PlanTasksInput.model_validate_json(arguments)
        return OperationResult.of(self.store.tasks_in_plan(context.access_token, payload.email, payload.plan_name))


class GetPlanOperation(_TaskStoreOperation):
    name = "get_plan"
    description = "Get a planner plan for the current user by plan name."
    input_model = GetPlanInput

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        payload = GetPlanInput.model_validate_json(arguments)
        return OperationResult.of(self.store.resolve_plan(context.access_token, payload.plan_name))


class GetBucketOperation(_TaskStoreOperation):
    name = "get_bucket"
    description = "Get a planner bucket for a plan id. Use get_plan to fetch the plan id."
    input_model = GetBucketInput

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        payload = GetBucketInput.model_validate_json(arguments)
        return OperationResult.of(self.store.resolve_bucket(context.access_token, payload.plan_id))


class CreateTaskOperation(_TaskStoreOperation):
    name = "create_task"
    description = "Create a new planner task in the plan whose title contains plan_name."
    input_model = CreateTaskInput

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        payload = CreateTaskInput.model_validate_json(arguments)
        ignored = [
            key
            for key, value in (
                ("assignee_email", payload.assignee_email),
                ("description", payload.description),
                ("due_date_time", payload.due_date_time),
            )
            if value is not None
        ]
        if ignored:
            # Assignment and details are not applied on create yet.
            logger.debug("create_task ignoring fields: %s", ", ".join(ignored))
        return OperationResult.of(self.store.create_task(context.access_token, payload.plan_name, payload.title))


def planner_operations(store: TaskStore) -> list[_TaskStoreOperation]:
    return [
        ListTasksOperation(store),
        FilterTasksByPriorityOperation(store),
        FilterTasksByProgressOperation(store),
        FilterOverdueTasksOperation(store),
        ListTasksInPlanOperation(store),
        GetPlanOperation(store),
        GetBucketOperation(store),
        CreateTaskOperation(store),
    ]
