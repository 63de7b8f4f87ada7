from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, Field

from projectassist.core.models.llm_provider import LLMOutputError, LLMUnavailable
from projectassist.core.models.prompts import FALLBACK_MESSAGE, WELCOME_MESSAGE
from projectassist.core.operations.base import OperationContext
from projectassist.core.orchestration.contract import ContentType, ContractViolation, StructuredResponse
from projectassist.core.orchestration.history import ConversationHistory
from projectassist.core.orchestration.orchestrator import Orchestrator

from .deps import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()

ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"


class TurnPayload(BaseModel):
    role: Literal["user", "assistant"]
    text: str


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    history: list[TurnPayload] = Field(default_factory=list)


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="missing bearer token")
    scheme, _, token = authorization.partition(" ")
    if scheme.casefold() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="missing bearer token")
    return token.strip()


def render_activity(response: StructuredResponse) -> dict[str, object]:
    if response.content_type is ContentType.ADAPTIVE_CARD:
        return {
            "type": "message",
            "attachments": [{"contentType": ADAPTIVE_CARD_CONTENT_TYPE, "content": response.content}],
        }
    return {"type": "message", "text": response.content}


@router.post("/")
def chat(
    request: ChatRequest,
    authorization: str | None = Header(default=None),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> dict[str, object]:
    access_token = _bearer_token(authorization)
    history = ConversationHistory.from_pairs((turn.role, turn.text) for turn in request.history)

    ok = True
    try:
        result = orchestrator.handle(request.message, history, OperationContext(access_token=access_token))
        response = result.response
    except (ContractViolation, LLMUnavailable, LLMOutputError) as exc:
        logger.warning("chat turn fell back: %s", exc.__class__.__name__, exc_info=True)
        ok = False
        response = StructuredResponse(content_type=ContentType.TEXT, content=FALLBACK_MESSAGE)

    return {
        "ok": ok,
        **response.to_payload(),
        "activity": render_activity(response),
        "history": [{"role": turn.role, "text": turn.text} for turn in history],
    }


@router.get("/welcome")
def welcome() -> dict[str, object]:
    return {"type": "message", "text": WELCOME_MESSAGE}
