from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from projectassist.core.http.errors import ProjectAssistHTTPStatusError
from projectassist.core.operations.base import OperationContext, OperationInput, OperationResult
from projectassist.core.operations.builtin.planner_tasks import planner_operations
from projectassist.core.operations.errors import InvalidArgument, OperationFailed
from projectassist.core.operations.registry import ActionDispatcher
from projectassist.core.tasks.store import TaskStore


class FailingConnector:
    def list_my_tasks(self, access_token: str) -> list[dict]:
        raise ProjectAssistHTTPStatusError("HTTP status 403 for https://graph.test/me/planner/tasks", status_code=403)


class TwoTasksConnector:
    def list_my_tasks(self, access_token: str) -> list[dict]:
        return [
            {"id": "a", "planId": "p", "title": "Urgent thing", "priority": 1},
            {"id": "b", "planId": "p", "title": "Medium thing", "priority": 5, "percentComplete": 100},
        ]


def _dispatcher(connector) -> ActionDispatcher:
    dispatcher = ActionDispatcher()
    for operation in planner_operations(TaskStore(connector)):
        dispatcher.register(operation)
    return dispatcher


CONTEXT = OperationContext(access_token="token")


def test_remote_errors_surface_as_operation_failed() -> None:
    with pytest.raises(OperationFailed) as excinfo:
        _dispatcher(FailingConnector()).dispatch("list_tasks", "{}", CONTEXT)

    assert excinfo.value.operation == "list_tasks"
    assert isinstance(excinfo.value.cause, ProjectAssistHTTPStatusError)
    assert "403" in str(excinfo.value)


def test_unknown_operation_is_reported_as_operation_failed() -> None:
    with pytest.raises(OperationFailed) as excinfo:
        _dispatcher(TwoTasksConnector()).dispatch("delete_everything", "{}", CONTEXT)

    assert isinstance(excinfo.value.cause, InvalidArgument)


def test_malformed_arguments_are_reported_as_operation_failed() -> None:
    with pytest.raises(OperationFailed) as excinfo:
        _dispatcher(TwoTasksConnector()).dispatch("filter_tasks_by_priority", '{"priority": "high"}', CONTEXT)

    assert isinstance(excinfo.value.cause, ValidationError)


def test_filter_operations_return_labelled_json() -> None:
    dispatcher = _dispatcher(TwoTasksConnector())

    by_priority = json.loads(dispatcher.dispatch("filter_tasks_by_priority", '{"priority": 1}', CONTEXT).content)
    completed = json.loads(dispatcher.dispatch("filter_tasks_by_progress", '{"status": "Completed"}', CONTEXT).content)

    assert [task["id"] for task in by_priority] == ["a"]
    assert by_priority[0]["priorityLabel"] == "Urgent"
    assert [task["id"] for task in completed] == ["b"]
    assert completed[0]["progressLabel"] == "Completed"


def test_tool_specs_describe_every_operation() -> None:
    specs = _dispatcher(TwoTasksConnector()).tool_specs()
    by_name = {spec["function"]["name"]: spec["function"] for spec in specs}

    assert set(by_name) == {
        "list_tasks",
        "filter_tasks_by_priority",
        "filter_tasks_by_progress",
        "filter_overdue_tasks",
        "list_tasks_in_plan",
        "get_plan",
        "get_bucket",
        "create_task",
    }
    assert "planName" in by_name["create_task"]["parameters"]["properties"]
    assert "priority" in by_name["filter_tasks_by_priority"]["parameters"]["required"]


class EchoInput(OperationInput):
    text: str


class EchoOperation:
    name = "echo"
    description = "Echo the given text."
    input_model = EchoInput

    def run(self, context: OperationContext, arguments: str) -> OperationResult:
        return OperationResult.of(EchoInput.model_validate_json(arguments).text)


def test_operation_needs_only_name_description_input_and_run() -> None:
    dispatcher = ActionDispatcher()
    dispatcher.register(EchoOperation())

    result = dispatcher.dispatch("echo", '{"text": "hi"}', CONTEXT)
    (spec,) = dispatcher.tool_specs()

    assert result.value == "hi"
    assert set(vars(dispatcher.get("echo"))) == set()
    assert spec == {
        "type": "function",
        "function": {
            "name": "echo",
            "description": "Echo the given text.",
            "parameters": EchoInput.model_json_schema(by_alias=True),
        },
    }
