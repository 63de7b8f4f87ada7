from __future__ import annotations

from functools import lru_cache

from projectassist.core.graph.base import MailConnector, PlannerConnector
from projectassist.core.graph.mail import GraphMailConnector
from projectassist.core.graph.planner import GraphPlannerConnector
from projectassist.core.models.llm_provider import ProjectAssistLLM
from projectassist.core.operations.registry import ActionDispatcher
from projectassist.core.orchestration.orchestrator import Orchestrator, build_dispatcher


@lru_cache(maxsize=1)
def get_planner_connector() -> PlannerConnector:
    return GraphPlannerConnector()


@lru_cache(maxsize=1)
def get_mail_connector() -> MailConnector:
    return GraphMailConnector()


@lru_cache(maxsize=1)
def get_dispatcher() -> ActionDispatcher:
    return build_dispatcher(get_planner_connector(), get_mail_connector())


@lru_cache(maxsize=1)
def get_llm() -> ProjectAssistLLM:
    return ProjectAssistLLM()


@lru_cache(maxsize=1)
def get_orchestrator() -> Orchestrator:
    return Orchestrator(backend=get_llm(), dispatcher=get_dispatcher())
