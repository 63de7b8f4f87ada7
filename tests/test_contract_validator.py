from __future__ import annotations

import json

import pytest

from projectassist.core.orchestration.contract import (
    ContentType,
    ContractError,
    ResponseContractValidator,
    correction_message,
)


@pytest.fixture
def validator() -> ResponseContractValidator:
    return ResponseContractValidator()


def test_text_response_is_accepted(validator: ResponseContractValidator) -> None:
    response = validator.validate('{"contentType": "Text", "content": "You have 3 overdue tasks."}')

    assert response.content_type is ContentType.TEXT
    assert response.content == "You have 3 overdue tasks."
    assert response.to_payload() == {"contentType": "Text", "content": "You have 3 overdue tasks."}


def test_adaptive_card_object_content_is_serialized(validator: ResponseContractValidator) -> None:
    card = {"type": "AdaptiveCard", "version": "1.5", "body": [{"type": "TextBlock", "text": "Tasks"}]}

    response = validator.validate(json.dumps({"contentType": "AdaptiveCard", "content": card}))

    assert response.content_type is ContentType.ADAPTIVE_CARD
    assert json.loads(response.content) == card


def test_content_type_is_case_insensitive_and_extra_keys_are_ignored(validator: ResponseContractValidator) -> None:
    response = validator.validate('{"contentType": "adaptivecard", "content": "{}", "note": "extra"}')

    assert response.content_type is ContentType.ADAPTIVE_CARD


def test_code_fences_are_stripped(validator: ResponseContractValidator) -> None:
    raw = '```json\n{"contentType": "Text", "content": "hi"}\n```'

    assert validator.validate(raw).content == "hi"


@pytest.mark.parametrize(
    ("raw", "fragment"),
    [
        ("", "empty"),
        ("not json", "not valid JSON"),
        ('["Text", "hi"]', "JSON object"),
        ('{"content": "hi"}', "contentType"),
        ('{"contentType": "Text"}', "content"),
        ('{"contentType": "Text", "content": null}', "content"),
        ('{"contentType": 3, "content": "hi"}', "string"),
        ('{"contentType": "Markdown", "content": "hi"}', "Markdown"),
    ],
)
def test_invalid_outputs_raise_contract_error(validator: ResponseContractValidator, raw: str, fragment: str) -> None:
    with pytest.raises(ContractError) as excinfo:
        validator.validate(raw)

    assert fragment in str(excinfo.value)


def test_correction_message_names_the_error() -> None:
    message = correction_message(ContractError("response was empty"))

    assert message.startswith("That response did not match the expected format.")
    assert message.endswith("Error: response was empty")
