"""
week_store.py

Week-scoped persistence for the working meal plan.

Per (week, user):
  - save(week_id, entries, status)  -> one whole-plan replace RPC
  - load(week_id)                   -> saved plan, or a freshly generated
                                       draft when nothing is saved / the
                                       fetch fails (never raises)
  - update_status(week_id, status)  -> status-only RPC

Status flow is draft -> confirmed -> completed, driven by the caller; the
backend writes whatever status it is given.

Saved rows carry a denormalised recipe snapshot (name, image, total time).
On load the live catalog record wins; the snapshot is used when the recipe
has since been removed from the catalog.
"""
from __future__ import annotations

import datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from src.meal_planner.errors import MealPlanBackendError
from src.meal_planner.logging_utils import get_logger
from src.meal_planner.planning.assembler import MealPlanAssembler
from src.meal_planner.planning.backend import MealPlanBackend
from src.meal_planner.recommendation.scoring import RecommendationConfig
from src.meal_planner.schema import GenerationResult, MealPlanEntry, PlanStatus, Recipe
from src.meal_planner.weeks.week_calendar import WeekCalendar

logger = get_logger("week_store")

MODULE_PURPOSE = "Persist and load week-scoped meal plans with workflow status."


class WeekPlanStore:
    def __init__(
        self,
        backend: MealPlanBackend,
        assembler: MealPlanAssembler,
        user_id: Optional[str],
        config: Optional[RecommendationConfig] = None,
    ) -> None:
        self.backend = backend
        self.assembler = assembler
        self.user_id = user_id
        self.config = config or assembler.recommender.get_config()

        self.loading = False
        self.last_error: Optional[BaseException] = None
        # Outcome of the draft generated by the latest load(); None when a saved plan was used
        self.last_generation: Optional[GenerationResult] = None

    # -----------------------------------------------------
    # Save / status
    # -----------------------------------------------------
    def save(
        self,
        week_id: str,
        entries: Optional[Iterable[MealPlanEntry]] = None,
        status: PlanStatus | str = PlanStatus.DRAFT,
    ) -> None:
        """
        Replace the saved plan for week_id with `entries` (default: the
        current working plan, snapshotted now).
        """
        status = PlanStatus.parse(status)
        snapshot = list(entries) if entries is not None else self.assembler.get_current_plan()

        meals = [
            {
                "recipe_id": entry.recipe.id,
                "servings": entry.servings,
                "sort_order": index,
                "status": status.value,
            }
            for index, entry in enumerate(snapshot)
        ]

        logger.info(
            "Saving meal plan for week=%s meals=%d status=%s",
            week_id,
            len(meals),
            status.value,
            extra={
                "invoking_func": "save",
                "invoking_purpose": MODULE_PURPOSE,
                "next_step": "Call replace_week_meal_plan RPC",
                "resolution": "",
            },
        )
        self._call("save", lambda: self.backend.replace_week_meal_plan(week_id, meals, self.user_id))

        for entry in snapshot:
            entry.status = status
            entry.week_id = week_id
            entry.user_id = self.user_id

    def update_status(self, week_id: str, status: PlanStatus | str) -> None:
        """Change the status of every saved row of the week; entries untouched."""
        status = PlanStatus.parse(status)
        logger.info(
            "Updating meal plan status: week=%s status=%s",
            week_id,
            status.value,
            extra={"invoking_func": "update_status", "invoking_purpose": MODULE_PURPOSE},
        )
        self._call(
            "update_status",
            lambda: self.backend.update_week_meal_plan_status(week_id, status.value, self.user_id),
        )

        for entry in self.assembler.plan:
            if entry.week_id == week_id:
                entry.status = status

    def _call(self, operation: str, fn) -> Any:
        self.loading = True
        self.last_error = None
        try:
            return fn()
        except Exception as exc:  # noqa: BLE001
            err = exc if isinstance(exc, MealPlanBackendError) else MealPlanBackendError(operation, str(exc), exc)
            self.last_error = err
            logger.error(
                "Error during %s: %s",
                operation,
                err,
                extra={
                    "invoking_func": operation,
                    "invoking_purpose": MODULE_PURPOSE,
                    "next_step": "Raise to caller (no automatic retry)",
                    "resolution": "Re-invoke the operation once the backend is reachable",
                },
            )
            if err is exc:
                raise
            raise err from exc
        finally:
            self.loading = False

    # -----------------------------------------------------
    # Load
    # -----------------------------------------------------
    def fetch_plan(self, week_id: str) -> List[MealPlanEntry]:
        """Fetch + hydrate the saved plan for week_id. Raises MealPlanBackendError."""
        try:
            rows = self.backend.get_week_meal_plan_with_recipes(week_id, self.user_id)
        except MealPlanBackendError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise MealPlanBackendError("get_week_meal_plan_with_recipes", str(exc), exc) from exc
        return [self._hydrate(row) for row in rows or []]

    def load(self, week_id: str) -> List[MealPlanEntry]:
        """
        Load the saved plan into the working plan, or generate a fresh draft.

        Both "nothing saved" and "fetch failed" fall back to generation; a
        fetch error stays available in last_error. The draft always starts
        from an empty plan, so the previously loaded week never leaks in; a
        not-ready generation leaves the plan empty and is kept in
        last_generation.
        """
        self.loading = True
        self.last_error = None
        self.last_generation = None
        try:
            try:
                saved = self.fetch_plan(week_id)
            except Exception as exc:  # noqa: BLE001
                self.last_error = exc
                logger.error(
                    "Error loading meal plan for week=%s: %s",
                    week_id,
                    exc,
                    extra={
                        "invoking_func": "load",
                        "invoking_purpose": MODULE_PURPOSE,
                        "next_step": "Fall back to generating a new plan",
                        "resolution": "Check get_week_meal_plan_with_recipes RPC",
                    },
                )
                saved = []

            if saved:
                logger.info(
                    "Loaded existing meal plan: week=%s meals=%d",
                    week_id,
                    len(saved),
                    extra={"invoking_func": "load", "next_step": "Replace working plan"},
                )
                self.assembler.replace(saved)
            else:
                logger.info(
                    "No saved meal plan for week=%s, generating new one",
                    week_id,
                    extra={"invoking_func": "load", "next_step": "Generate draft (not persisted)"},
                )
                self.assembler.clear()
                result = self.assembler.generate()
                self.last_generation = result
                if not result.ready:
                    logger.warning(
                        "Draft for week=%s not generated: missing %s",
                        week_id,
                        ", ".join(result.missing),
                        extra={
                            "invoking_func": "load",
                            "invoking_purpose": MODULE_PURPOSE,
                            "next_step": "Return empty plan",
                            "resolution": "Refresh preferences / catalog, then load again",
                        },
                    )
            return self.assembler.get_current_plan()
        finally:
            self.loading = False

    def _hydrate(self, row: Dict[str, Any]) -> MealPlanEntry:
        recipe_id = str(row["recipe_id"])
        recipe = self.assembler.catalog.get_by_id(recipe_id)
        if recipe is None:
            # Recipe removed from the catalog after the plan was saved
            recipe = Recipe(
                id=recipe_id,
                name=row.get("recipe_name") or "",
                image_url=row.get("recipe_image_url"),
                total_time=int(row.get("recipe_total_time") or 0),
            )

        status = row.get("status")
        return MealPlanEntry(
            id=f"saved_{row['id']}",
            recipe=recipe,
            servings=int(row.get("servings") or 1),
            status=PlanStatus.parse(status) if status else PlanStatus.DRAFT,
            week_id=row.get("week_id"),
            user_id=row.get("user_id"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    # -----------------------------------------------------
    # Recency
    # -----------------------------------------------------
    def recent_recipe_ids(self, calendar: WeekCalendar, today: Optional[datetime.date] = None) -> Set[str]:
        """Recipe ids saved in past weeks that ended within the recency window."""
        today = today or datetime.date.today()
        cutoff = today - datetime.timedelta(days=self.config.recency_window_days)

        recent: Set[str] = set()
        for week in calendar.weeks:
            if week.status != "past" or week.end_date < cutoff:
                continue
            try:
                entries = self.fetch_plan(week.id)
            except MealPlanBackendError as exc:
                logger.warning(
                    "Skipping week=%s for recency: %s",
                    week.id,
                    exc,
                    extra={"invoking_func": "recent_recipe_ids", "next_step": "Continue with next week"},
                )
                continue
            recent.update(e.recipe.id for e in entries)
        return recent
