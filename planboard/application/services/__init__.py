"""Application services."""

from .plan_session import (
    PlanSession,
    build_plan_context,
    dump_plan_payload,
    load_plan_payload,
)

__all__ = [
    "PlanSession",
    "build_plan_context",
    "dump_plan_payload",
    "load_plan_payload",
]
