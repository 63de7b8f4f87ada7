from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

from projectassist.core.graph.base import MailConnector, PlannerConnector
from projectassist.core.logging.context import log_context
from projectassist.core.models.llm_provider import GenerationBackend
from projectassist.core.observability.trace import Trace
from projectassist.core.operations.base import OperationContext
from projectassist.core.operations.builtin.mail import SendNotificationOperation
from projectassist.core.operations.builtin.planner_tasks import planner_operations
from projectassist.core.operations.registry import ActionDispatcher
from projectassist.core.tasks.store import TaskStore

from .contract import ContractError, ContractViolation, ResponseContractValidator, StructuredResponse, correction_message
from .history import ConversationHistory

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


class TurnState(str, Enum):
    AWAITING_GENERATION = "AwaitingGeneration"
    VALIDATING = "Validating"
    RETRYING = "Retrying"
    DONE = "Done"
    FAILED = "Failed"


@dataclass
class TurnResult:
    response: StructuredResponse
    turn_id: str
    retries: int = 0
    steps: list[str] = field(default_factory=list)
    trace_events: list[dict[str, Any]] = field(default_factory=list)


def _max_retries_from_env() -> int:
    try:
        return max(0, int(os.getenv("PROJECTASSIST_CONTRACT_MAX_RETRIES", str(DEFAULT_MAX_RETRIES))))
    except ValueError:
        return DEFAULT_MAX_RETRIES


def build_dispatcher(planner_connector: PlannerConnector, mail_connector: MailConnector) -> ActionDispatcher:
    dispatcher = ActionDispatcher()
    for operation in planner_operations(TaskStore(planner_connector)):
        dispatcher.register(operation)
    dispatcher.register(SendNotificationOperation(mail_connector))
    return dispatcher


class Orchestrator:
    """Runs one conversation turn until the backend produces a valid response.

    A turn moves AwaitingGeneration -> Validating and then either finishes
    (Done) or appends a correction turn and generates again (Retrying). After
    ``max_retries`` corrections a further invalid output fails the turn with
    ContractViolation. Turns on one history must not run concurrently.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        dispatcher: ActionDispatcher,
        validator: ResponseContractValidator | None = None,
        max_retries: int | None = None,
    ) -> None:
        self.backend = backend
        self.dispatcher = dispatcher
        self.validator = validator or ResponseContractValidator()
        self.max_retries = _max_retries_from_env() if max_retries is None else max(0, max_retries)

    def handle(self, user_text: str, history: ConversationHistory, context: OperationContext) -> TurnResult:
        turn_id = context.turn_id or str(uuid4())
        trace = Trace(message=user_text, turn_id=turn_id)
        with log_context(turn_id=turn_id):
            return self._run(user_text, history, context, trace, turn_id)

    def _run(
        self,
        user_text: str,
        history: ConversationHistory,
        context: OperationContext,
        trace: Trace,
        turn_id: str,
    ) -> TurnResult:
        history.append_user(user_text)
        trace.emit("TurnStarted", {"history_len": len(history)})
        retries = 0
        state = TurnState.AWAITING_GENERATION

        while True:
            trace.add_step(state.value)
            raw = self.backend.generate(history, self.dispatcher, context)
            # Rejected outputs stay in the history alongside their corrections.
            history.append_assistant(raw)
            trace.emit("GenerationCompleted", {"attempt": retries + 1, "raw_len": len(raw)})

            state = TurnState.VALIDATING
            trace.add_step(state.value)
            try:
                response = self.validator.validate(raw)
            except ContractError as exc:
                logger.info(
                    "contract_rejected",
                    extra={"extra_fields": {"attempt": retries + 1, "error": str(exc)}},
                )
                trace.emit("ContractRejected", {"attempt": retries + 1, "error": str(exc)})
                if retries >= self.max_retries:
                    state = TurnState.FAILED
                    trace.add_step(state.value)
                    trace.emit("TurnFailed", {"attempts": retries + 1})
                    logger.warning(
                        "turn_failed",
                        extra={"extra_fields": {"attempts": retries + 1, "error": str(exc), "steps": trace.steps}},
                    )
                    raise ContractViolation(
                        attempts=retries + 1,
                        last_error=str(exc),
                        steps=trace.steps,
                        trace_events=trace.events,
                    ) from exc

                state = TurnState.RETRYING
                trace.add_step(state.value)
                retries += 1
                history.append_user(correction_message(exc))
                state = TurnState.AWAITING_GENERATION
                continue

            state = TurnState.DONE
            trace.add_step(state.value)
            trace.emit("TurnCompleted", {"content_type": response.content_type.value, "retries": retries})
            logger.info(
                "turn_completed",
                extra={"extra_fields": {"content_type": response.content_type.value, "retries": retries}},
            )
            return TurnResult(
                response=response,
                turn_id=turn_id,
                retries=retries,
                steps=trace.steps,
                trace_events=trace.events,
            )

    def run(self, user_text: str, history: ConversationHistory, access_token: str) -> StructuredResponse:
        return self.handle(user_text, history, OperationContext(access_token=access_token)).response
