"""
assembler.py

The working meal plan: an ordered list of MealPlanEntry for the week being
edited, plus generate / edit / query operations.

Invariants kept here:
  - no two entries reference the same recipe id
  - every entry has servings >= 1

Servings precedence (add + generate):
    explicit value -> preferences.serves_per_meal -> recipe.default_servings -> 1

Nothing in this module does I/O; persistence lives in week_store.py.
"""
from __future__ import annotations

import uuid
from typing import Dict, Iterable, List, Optional

from src.meal_planner.catalog.recipes import RecipeCatalog
from src.meal_planner.catalog.reference_data import TagTaxonomy
from src.meal_planner.logging_utils import get_logger
from src.meal_planner.preferences.store import DEFAULT_MEALS_PER_WEEK, UserPreferencesStore
from src.meal_planner.recommendation.candidates import filter_by_preferred_tags
from src.meal_planner.recommendation.recommender import RecipeRecommender, RecommendationRequest
from src.meal_planner.schema import GenerationResult, MealPlanEntry, Recipe, ScoredRecipe, UserPreferences

logger = get_logger("assembler")


def new_entry_id() -> str:
    return uuid.uuid4().hex


def _check_servings(servings: int) -> int:
    if servings is None or int(servings) != servings or servings < 1:
        raise ValueError(f"servings must be a positive integer, got {servings!r}")
    return int(servings)


class MealPlanAssembler:
    def __init__(
        self,
        recommender: RecipeRecommender,
        catalog: RecipeCatalog,
        taxonomy: TagTaxonomy,
        preferences: UserPreferencesStore,
    ) -> None:
        self.recommender = recommender
        self.catalog = catalog
        self.taxonomy = taxonomy
        self.preferences_store = preferences

        self.plan: List[MealPlanEntry] = []
        self.initialized = False
        self.last_error: Optional[BaseException] = None
        # Explanations from the latest generate(), keyed by recipe id
        self.last_scores: Dict[str, ScoredRecipe] = {}

    @property
    def preferences(self) -> Optional[UserPreferences]:
        return self.preferences_store.preferences

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------
    def missing_prerequisites(self) -> List[str]:
        missing: List[str] = []
        if self.preferences is None:
            missing.append("preferences")
        if not self.catalog.recipes:
            missing.append("catalog")
        return missing

    def generate(self, recent_recipe_ids: Optional[Iterable[str]] = None) -> GenerationResult:
        """
        Replace the working plan with meals_per_week fresh recommendations.

        Recipes already in the working plan are excluded, so calling this on a
        non-empty plan proposes different recipes. Returns a not-ready result
        (plan untouched) when preferences or the catalog are not loaded.
        """
        missing = self.missing_prerequisites()
        if missing:
            logger.warning(
                "Meal plan generation not ready: missing %s",
                ", ".join(missing),
                extra={
                    "invoking_func": "generate",
                    "invoking_purpose": "Build working plan from recommendations",
                    "next_step": "Return not-ready result",
                    "resolution": "Refresh preferences / catalog first",
                },
            )
            return GenerationResult(ready=False, missing=missing, entries=list(self.plan))

        prefs = self.preferences
        assert prefs is not None
        self.last_error = None
        try:
            count = prefs.meals_per_week or DEFAULT_MEALS_PER_WEEK
            current_ids = self.plan_recipe_ids()

            recommendations = self.recommender.recommend(
                self.catalog.recipes,
                prefs,
                self.taxonomy.tags,
                RecommendationRequest(
                    count=count,
                    exclude_ids=current_ids,
                    recent_ids=list(recent_recipe_ids or []),
                    current_plan_ids=current_ids,
                ),
            )

            entries = [
                MealPlanEntry(
                    id=new_entry_id(),
                    recipe=scored.recipe,
                    servings=prefs.serves_per_meal or scored.recipe.default_servings or 1,
                )
                for scored in recommendations
            ]
        except Exception as exc:  # noqa: BLE001
            self.last_error = exc
            logger.error(
                "Error generating meal plan: %s",
                exc,
                exc_info=True,
                extra={
                    "invoking_func": "generate",
                    "invoking_purpose": "Build working plan from recommendations",
                    "next_step": "Keep last good plan",
                    "resolution": "",
                },
            )
            return GenerationResult(ready=True, entries=list(self.plan))

        self.plan = entries
        self.last_scores = {s.recipe.id: s for s in recommendations}
        self.initialized = True

        logger.info(
            "Recommendations generated: requested=%d received=%d",
            count,
            len(entries),
            extra={
                "invoking_func": "generate",
                "invoking_purpose": "Build working plan from recommendations",
                "next_step": "Return plan to caller",
                "resolution": "",
            },
        )
        return GenerationResult(ready=True, entries=list(self.plan))

    def regenerate(self, recent_recipe_ids: Optional[Iterable[str]] = None) -> GenerationResult:
        """Clear and generate; unsaved manual edits are discarded."""
        logger.info("Regenerating meal plan", extra={"invoking_func": "regenerate"})
        self.clear()
        return self.generate(recent_recipe_ids)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------
    def add(self, recipe: Recipe, servings: Optional[int] = None) -> Optional[MealPlanEntry]:
        if servings is not None:
            _check_servings(servings)

        if self.contains_recipe(recipe.id):
            logger.info(
                "Recipe already in meal plan: %s",
                recipe.name,
                extra={"invoking_func": "add", "next_step": "No-op"},
            )
            return None

        prefs = self.preferences
        new_servings = servings or (prefs.serves_per_meal if prefs else None) or recipe.default_servings or 1
        entry = MealPlanEntry(id=new_entry_id(), recipe=recipe, servings=new_servings)
        self.plan.append(entry)
        logger.info("Adding meal to plan: %s", recipe.name, extra={"invoking_func": "add"})
        return entry

    def remove(self, entry_id: str) -> bool:
        before = len(self.plan)
        self.plan = [e for e in self.plan if e.id != entry_id]
        removed = len(self.plan) != before
        if removed:
            logger.info("Removed meal %s from plan", entry_id, extra={"invoking_func": "remove"})
        return removed

    def update_servings(self, entry_id: str, servings: int) -> bool:
        servings = _check_servings(servings)
        entry = self.get_by_id(entry_id)
        if entry is None:
            return False
        entry.servings = servings
        logger.info(
            "Updating meal servings: %s -> %d",
            entry_id,
            servings,
            extra={"invoking_func": "update_servings"},
        )
        return True

    def clear(self) -> None:
        self.plan = []
        self.last_scores = {}

    def replace(self, entries: Iterable[MealPlanEntry]) -> None:
        """Swap in a plan loaded from storage; later duplicates of a recipe are dropped."""
        seen = set()
        plan: List[MealPlanEntry] = []
        for entry in entries:
            if entry.recipe.id in seen:
                continue
            seen.add(entry.recipe.id)
            plan.append(entry)
        self.plan = plan
        self.last_scores = {}
        self.initialized = True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_current_plan(self, limit: Optional[int] = None) -> List[MealPlanEntry]:
        return list(self.plan[:limit] if limit else self.plan)

    def get_by_id(self, entry_id: str) -> Optional[MealPlanEntry]:
        return next((e for e in self.plan if e.id == entry_id), None)

    def contains_recipe(self, recipe_id: str) -> bool:
        return any(e.recipe.id == recipe_id for e in self.plan)

    def plan_recipe_ids(self) -> List[str]:
        return [e.recipe.id for e in self.plan]

    def total_servings(self) -> int:
        return sum(e.servings for e in self.plan)

    def available_recipes(self) -> List[Recipe]:
        """Catalog recipes matching a preferred tag, minus recipes already planned."""
        planned = set(self.plan_recipe_ids())
        recipes = self.catalog.recipes
        if self.preferences is not None:
            recipes = filter_by_preferred_tags(recipes, self.preferences)
        return [r for r in recipes if r.id not in planned]
