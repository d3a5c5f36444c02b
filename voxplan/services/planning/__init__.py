"""
Planning module - Treatment-plan gateway client and plan text formatting.
"""

from .formatting import format_plan_notes, labelize, new_planner_session_id
from .gateway import PlanningGatewayClient, is_timeout_like

__all__ = [
    "PlanningGatewayClient",
    "format_plan_notes",
    "is_timeout_like",
    "labelize",
    "new_planner_session_id",
]
