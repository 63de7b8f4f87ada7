from __future__ import annotations

import os
from uuid import uuid4

import uvicorn
from fastapi import FastAPI

from projectassist.core.graph.client import DEFAULT_GRAPH_BASE_URL
from projectassist.core.http.client import close_http_client
from projectassist.core.logging import configure_logging
from projectassist.core.logging.context import log_context

from .deps import get_llm, get_orchestrator
from .routes_chat import router as chat_router

app = FastAPI(title="ProjectAssist API")
configure_logging()

app.include_router(chat_router, prefix="/chat", tags=["chat"])


@app.middleware("http")
async def request_context_middleware(request, call_next):
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid4())
    with log_context(correlation_id=correlation_id):
        response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


@app.on_event("shutdown")
def shutdown() -> None:
    close_http_client()


@app.get("/healthz")
def healthz() -> dict[str, bool]:
    return {"ok": True}


@app.get("/healthz/full")
def healthz_full() -> dict[str, object]:
    llm = get_llm()
    orchestrator = get_orchestrator()
    api_key_present = bool(os.getenv("PROJECTASSIST_LLM_API_KEY"))
    payload: dict[str, object] = {
        "ok": True,
        "llm": {
            "provider": llm.config.provider,
            "model": llm.config.model,
            "enabled": llm.enabled,
            "api_key_present": api_key_present,
            "max_tool_rounds": llm.config.max_tool_rounds,
        },
        "graph": {"base_url": os.getenv("PROJECTASSIST_GRAPH_BASE_URL", DEFAULT_GRAPH_BASE_URL)},
        "contract": {"max_retries": orchestrator.max_retries},
        "operations": orchestrator.dispatcher.names(),
    }
    if not llm.enabled or not api_key_present:
        payload["ok"] = False
    return payload


def run() -> None:
    host = os.getenv("PROJECTASSIST_API_HOST", "127.0.0.1")
    port = int(os.getenv("PROJECTASSIST_API_PORT", "3978"))
    uvicorn.run("projectassist.apps.api.main:app", host=host, port=port)
