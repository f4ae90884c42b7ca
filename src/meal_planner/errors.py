"""
errors.py

Exception types raised at the Supabase boundary. Ranking and plan editing
never raise these; they degrade to empty / not-ready results instead.
"""
from __future__ import annotations

from typing import Optional


class MealPlannerError(Exception):
    """Base class for meal planner errors."""


class BackendError(MealPlannerError, RuntimeError):
    """
    A Supabase table query or RPC failed (network or backend-reported).

    Attributes:
        operation: table / RPC name that failed
        cause: the original client exception, if any
    """

    def __init__(self, operation: str, message: str, cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {message}")


class MealPlanBackendError(BackendError):
    """One of the week meal plan RPCs failed."""
