"""
Planning Domain

Calendar slots, block placement and the two mutation entry points into a
plan (pointer gestures and assistant actions).
"""

from .entities.plan_board import PlanBoard

__all__ = ["PlanBoard"]
