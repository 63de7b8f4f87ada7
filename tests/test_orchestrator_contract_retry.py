from __future__ import annotations

import pytest

from projectassist.core.operations.base import OperationContext
from projectassist.core.operations.registry import ActionDispatcher
from projectassist.core.orchestration.contract import ContentType, ContractViolation
from projectassist.core.orchestration.history import ConversationHistory
from projectassist.core.orchestration.orchestrator import Orchestrator


class ScriptedBackend:
    def __init__(self, outputs: list[str]) -> None:
        self.outputs = list(outputs)
        self.calls = 0
        self.seen_histories: list[list[tuple[str, str]]] = []

    def generate(self, history: ConversationHistory, dispatcher: ActionDispatcher, context: OperationContext) -> str:
        self.seen_histories.append([(turn.role, turn.text) for turn in history])
        raw = self.outputs[min(self.calls, len(self.outputs) - 1)]
        self.calls += 1
        return raw


CONTEXT = OperationContext(access_token="token")


def test_valid_first_answer_finishes_without_retries() -> None:
    backend = ScriptedBackend(['{"contentType": "Text", "content": "All on track."}'])
    history = ConversationHistory()

    result = Orchestrator(backend, ActionDispatcher(), max_retries=3).handle("How are my tasks?", history, CONTEXT)

    assert result.response.content_type is ContentType.TEXT
    assert result.response.content == "All on track."
    assert result.retries == 0
    assert backend.calls == 1
    assert [turn.role for turn in history] == ["user", "assistant"]
    assert [event["event"] for event in result.trace_events] == ["TurnStarted", "GenerationCompleted", "TurnCompleted"]


def test_invalid_output_exhausts_bound_and_raises_violation() -> None:
    backend = ScriptedBackend(["not json"])
    history = ConversationHistory()

    with pytest.raises(ContractViolation) as excinfo:
        Orchestrator(backend, ActionDispatcher(), max_retries=3).handle("List my tasks", history, CONTEXT)

    assert excinfo.value.attempts == 4
    assert backend.calls == 4
    corrections = [turn.text for turn in history if turn.role == "user" and turn.text.startswith("That response")]
    assert len(corrections) == 3
    assert all("not valid JSON" in text for text in corrections)


def test_recovers_after_one_correction() -> None:
    backend = ScriptedBackend(["not json", '{"contentType": "AdaptiveCard", "content": {"type": "AdaptiveCard"}}'])
    history = ConversationHistory()

    result = Orchestrator(backend, ActionDispatcher(), max_retries=3).handle("Show a card", history, CONTEXT)

    assert result.retries == 1
    assert result.response.content_type is ContentType.ADAPTIVE_CARD
    assert [turn.role for turn in history] == ["user", "assistant", "user", "assistant"]
    # The second generation sees the rejected output followed by the correction.
    assert backend.seen_histories[1][-1][1].startswith("That response did not match the expected format.")


def test_zero_retries_fails_on_first_invalid_output() -> None:
    backend = ScriptedBackend(["{}"])

    with pytest.raises(ContractViolation) as excinfo:
        Orchestrator(backend, ActionDispatcher(), max_retries=0).handle("hi", ConversationHistory(), CONTEXT)

    assert excinfo.value.attempts == 1
    assert backend.calls == 1


def test_retry_bound_is_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECTASSIST_CONTRACT_MAX_RETRIES", "1")
    backend = ScriptedBackend(["nope"])

    orchestrator = Orchestrator(backend, ActionDispatcher())
    with pytest.raises(ContractViolation):
        orchestrator.handle("hi", ConversationHistory(), CONTEXT)

    assert orchestrator.max_retries == 1
    assert backend.calls == 2


def test_prior_history_is_preserved_and_extended() -> None:
    backend = ScriptedBackend(['{"contentType": "Text", "content": "Done."}'])
    history = ConversationHistory.from_pairs([("user", "earlier question"), ("assistant", "earlier answer")])

    response = Orchestrator(backend, ActionDispatcher(), max_retries=3).run("next question", history, "token")

    assert response.content == "Done."
    assert [turn.text for turn in history][:3] == ["earlier question", "earlier answer", "next question"]


def test_every_rejected_generation_is_recorded_in_history() -> None:
    backend = ScriptedBackend(["not json"])
    history = ConversationHistory()

    with pytest.raises(ContractViolation):
        Orchestrator(backend, ActionDispatcher(), max_retries=3).handle("List my tasks", history, CONTEXT)

    assert [turn.role for turn in history] == ["user"] + ["assistant", "user"] * 3 + ["assistant"]
    assert [turn.text for turn in history if turn.role == "assistant"] == ["not json"] * 4


def test_empty_generation_is_recorded_and_corrected() -> None:
    backend = ScriptedBackend(["", '{"contentType": "Text", "content": "ok"}'])
    history = ConversationHistory()

    Orchestrator(backend, ActionDispatcher(), max_retries=3).handle("hi", history, CONTEXT)

    assert [(turn.role, turn.text) for turn in history][:2] == [("user", "hi"), ("assistant", "")]
    assert "response was empty" in history.turns[2].text


def test_turn_result_reports_state_path() -> None:
    backend = ScriptedBackend(["not json", '{"contentType": "Text", "content": "ok"}'])

    result = Orchestrator(backend, ActionDispatcher(), max_retries=3).handle("hi", ConversationHistory(), CONTEXT)

    assert result.steps == [
        "AwaitingGeneration",
        "Validating",
        "Retrying",
        "AwaitingGeneration",
        "Validating",
        "Done",
    ]


def test_violation_carries_state_path_and_events() -> None:
    backend = ScriptedBackend(["not json"])

    with pytest.raises(ContractViolation) as excinfo:
        Orchestrator(backend, ActionDispatcher(), max_retries=1).handle("hi", ConversationHistory(), CONTEXT)

    assert excinfo.value.steps == [
        "AwaitingGeneration",
        "Validating",
        "Retrying",
        "AwaitingGeneration",
        "Validating",
        "Failed",
    ]
    assert [event["event"] for event in excinfo.value.trace_events][-1] == "TurnFailed"
