"""
backend.py

Meal plan persistence backend.

The durable store is three Postgres functions exposed through Supabase RPC,
all scoped to (week, user):

    replace_week_meal_plan(p_week_id, p_meals, p_user_id)
        full replace: deletes the week's rows and inserts p_meals
        (p_meals = [{recipe_id, servings, sort_order, status}, ...])

    get_week_meal_plan_with_recipes(p_week_id, p_user_id)
        rows of {id, recipe_id, recipe_name, recipe_image_url,
                 recipe_total_time, servings, status, week_id, user_id,
                 created_at, updated_at}

    update_week_meal_plan_status(p_week_id, p_status, p_user_id)

Ordering of statuses is not enforced server side.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from supabase import Client

from src.meal_planner.errors import MealPlanBackendError
from src.meal_planner.logging_utils import get_logger

logger = get_logger("backend")


class MealPlanBackend:
    """Interface for the week meal plan store (Supabase in production, fakes in tests)."""

    def replace_week_meal_plan(self, week_id: str, meals: List[Dict[str, Any]], user_id: Optional[str]) -> None:
        raise NotImplementedError

    def get_week_meal_plan_with_recipes(self, week_id: str, user_id: Optional[str]) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def update_week_meal_plan_status(self, week_id: str, status: str, user_id: Optional[str]) -> None:
        raise NotImplementedError


class SupabaseMealPlanBackend(MealPlanBackend):
    def __init__(self, client: Client) -> None:
        self.client = client

    def _rpc(self, fn: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            res = self.client.rpc(fn, params).execute()
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "%s_rpc_failed: %s",
                fn,
                exc,
                extra={
                    "invoking_func": "_rpc",
                    "invoking_purpose": f"Call {fn}",
                    "next_step": "Raise MealPlanBackendError to caller",
                    "resolution": f"Check that public.{fn} exists and the user can execute it",
                },
            )
            raise MealPlanBackendError(fn, str(exc), exc) from exc
        data = res.data
        if data is None:
            return []
        return data if isinstance(data, list) else [data]

    def replace_week_meal_plan(self, week_id: str, meals: List[Dict[str, Any]], user_id: Optional[str]) -> None:
        self._rpc(
            "replace_week_meal_plan",
            {"p_week_id": week_id, "p_meals": meals, "p_user_id": user_id},
        )

    def get_week_meal_plan_with_recipes(self, week_id: str, user_id: Optional[str]) -> List[Dict[str, Any]]:
        return self._rpc(
            "get_week_meal_plan_with_recipes",
            {"p_week_id": week_id, "p_user_id": user_id},
        )

    def update_week_meal_plan_status(self, week_id: str, status: str, user_id: Optional[str]) -> None:
        self._rpc(
            "update_week_meal_plan_status",
            {"p_week_id": week_id, "p_status": status, "p_user_id": user_id},
        )
