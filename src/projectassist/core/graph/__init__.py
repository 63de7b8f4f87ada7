from .base import MailConnector, PlannerConnector
from .mail import GraphMailConnector
from .planner import GraphPlannerConnector

__all__ = ["GraphMailConnector", "GraphPlannerConnector", "MailConnector", "PlannerConnector"]
