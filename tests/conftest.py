"""
Pytest Configuration and Fixtures
=================================

Provides shared fixtures for the test suite:
- FakeSupabaseClient: in-memory stand-in for the supabase-py v2 client
  (table().select().eq()...execute() and rpc().execute())
- InMemoryMealPlanBackend: the three week meal plan RPCs over a dict
- Sample tag taxonomy, recipe factory and a fully wired planner

SAFETY: nothing here talks to a real Supabase project.
"""

import random
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from src.meal_planner.catalog.recipes import RecipeCatalog
from src.meal_planner.catalog.reference_data import TagTaxonomy
from src.meal_planner.planning.assembler import MealPlanAssembler
from src.meal_planner.planning.backend import MealPlanBackend
from src.meal_planner.preferences.store import UserPreferencesStore
from src.meal_planner.recommendation.recommender import RecipeRecommender
from src.meal_planner.recommendation.scoring import RecommendationConfig
from src.meal_planner.schema import PreferenceTag, Recipe, Tag, UserPreferences


# =============================================================================
# Fake supabase-py client
# =============================================================================

class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, client: "FakeSupabaseClient", table: str):
        self.client = client
        self.table_name = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[Tuple[str, str, Any]] = []
        self.order_by: Optional[Tuple[str, bool]] = None
        self.limit_n: Optional[int] = None

    # --- builders -----------------------------------------------------------
    def select(self, *columns, **kwargs):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(("eq", column, value))
        return self

    def gte(self, column, value):
        self.filters.append(("gte", column, value))
        return self

    def lte(self, column, value):
        self.filters.append(("lte", column, value))
        return self

    def in_(self, column, values):
        self.filters.append(("in", column, list(values)))
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    # --- execution ----------------------------------------------------------
    def _match(self, row: Dict[str, Any]) -> bool:
        for op, column, value in self.filters:
            cell = row.get(column)
            if op == "eq" and cell != value:
                return False
            if op == "gte" and (cell is None or cell < value):
                return False
            if op == "lte" and (cell is None or cell > value):
                return False
            if op == "in" and cell not in value:
                return False
        return True

    def execute(self):
        self.client.calls.append((self.table_name, self.op, self.payload, list(self.filters)))
        error = self.client.fail_tables.get(self.table_name)
        if error is not None:
            raise error

        rows = self.client.tables.setdefault(self.table_name, [])

        if self.op == "select":
            out = [dict(r) for r in rows if self._match(r)]
            if self.order_by:
                column, desc = self.order_by
                out.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            if self.limit_n is not None:
                out = out[: self.limit_n]
            return FakeResponse(out)

        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                new = dict(item)
                new.setdefault("id", f"{self.table_name}-{len(rows) + 1}")
                rows.append(new)
                created.append(dict(new))
            return FakeResponse(created)

        if self.op == "update":
            updated = []
            for r in rows:
                if self._match(r):
                    r.update(self.payload)
                    updated.append(dict(r))
            return FakeResponse(updated)

        if self.op == "delete":
            kept = [r for r in rows if not self._match(r)]
            deleted = [dict(r) for r in rows if self._match(r)]
            self.client.tables[self.table_name] = kept
            return FakeResponse(deleted)

        raise AssertionError(f"unsupported op {self.op}")


class FakeRpc:
    def __init__(self, client: "FakeSupabaseClient", fn: str, params: Dict[str, Any]):
        self.client = client
        self.fn = fn
        self.params = params

    def execute(self):
        self.client.rpc_calls.append((self.fn, self.params))
        handler = self.client.rpc_handlers.get(self.fn)
        if handler is None:
            raise RuntimeError(f"Could not find the function public.{self.fn}")
        return FakeResponse(handler(self.params))


class FakeSupabaseClient:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {k: [dict(r) for r in v] for k, v in (tables or {}).items()}
        self.calls: List[Tuple[str, str, Any, list]] = []
        self.rpc_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.rpc_handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        self.fail_tables: Dict[str, Exception] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, fn: str, params: Dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, fn, params)


# =============================================================================
# In-memory meal plan backend
# =============================================================================

class InMemoryMealPlanBackend(MealPlanBackend):
    """Mimics the Postgres functions: full replace, joined read, status update."""

    def __init__(self, recipes: Optional[List[Recipe]] = None):
        self.recipes = {r.id: r for r in (recipes or [])}
        self.rows: Dict[Tuple[str, Optional[str]], List[Dict[str, Any]]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_with: Optional[Exception] = None
        self._next_id = 1

    def _maybe_fail(self, name: str, week_id: str) -> None:
        self.calls.append((name, week_id))
        if self.fail_with is not None:
            raise self.fail_with

    def replace_week_meal_plan(self, week_id, meals, user_id):
        self._maybe_fail("replace_week_meal_plan", week_id)
        stored = []
        for meal in meals:
            recipe = self.recipes.get(meal["recipe_id"])
            stored.append(
                {
                    "id": self._next_id,
                    "recipe_id": meal["recipe_id"],
                    "recipe_name": recipe.name if recipe else "",
                    "recipe_image_url": recipe.image_url if recipe else None,
                    "recipe_total_time": recipe.total_time if recipe else 0,
                    "servings": meal["servings"],
                    "sort_order": meal["sort_order"],
                    "status": meal["status"],
                    "week_id": week_id,
                    "user_id": user_id,
                    "created_at": "2026-10-12T10:00:00Z",
                    "updated_at": "2026-10-12T10:00:00Z",
                }
            )
            self._next_id += 1
        self.rows[(week_id, user_id)] = stored

    def get_week_meal_plan_with_recipes(self, week_id, user_id):
        self._maybe_fail("get_week_meal_plan_with_recipes", week_id)
        rows = self.rows.get((week_id, user_id), [])
        return [dict(r) for r in sorted(rows, key=lambda r: r["sort_order"])]

    def update_week_meal_plan_status(self, week_id, status, user_id):
        self._maybe_fail("update_week_meal_plan_status", week_id)
        for row in self.rows.get((week_id, user_id), []):
            row["status"] = status


# =============================================================================
# Domain fixtures
# =============================================================================

@pytest.fixture
def tags() -> List[Tag]:
    return [
        Tag(id="t-italian", name="Italian", type="cuisine"),
        Tag(id="t-indian", name="Indian", type="cuisine"),
        Tag(id="t-mexican", name="Mexican", type="cuisine"),
        Tag(id="t-chicken", name="Chicken", type="protein"),
        Tag(id="t-tofu", name="Tofu", type="protein"),
        Tag(id="t-quick", name="Under 30 min", type="time"),
        Tag(id="t-cheap", name="Budget friendly", type="budget"),
        Tag(id="t-protein", name="High protein", type="macro"),
        Tag(id="t-dinner", name="Dinner", type="meal_type"),
    ]


@pytest.fixture
def make_recipe() -> Callable[..., Recipe]:
    def _make(recipe_id: str, tag_ids: Optional[List[str]] = None, default_servings: int = 4, **kwargs) -> Recipe:
        return Recipe(
            id=recipe_id,
            name=kwargs.pop("name", f"Recipe {recipe_id}"),
            tag_ids=list(tag_ids or []),
            default_servings=default_servings,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_preferences() -> Callable[..., UserPreferences]:
    def _make(
        tag_ids: Optional[List[str]] = None,
        goals: Optional[List[str]] = None,
        meals_per_week: int = 4,
        serves_per_meal: int = 2,
    ) -> UserPreferences:
        return UserPreferences(
            user_id="user-1",
            id="pref-1",
            meals_per_week=meals_per_week,
            serves_per_meal=serves_per_meal,
            user_goals=list(goals or []),
            preference_tags=[PreferenceTag(tag_id=t, priority=i) for i, t in enumerate(tag_ids or [])],
        )

    return _make


@pytest.fixture
def make_assembler(tags) -> Callable[..., MealPlanAssembler]:
    """Wire a MealPlanAssembler over in-memory collaborators."""

    def _make(
        recipes: List[Recipe],
        preferences: Optional[UserPreferences],
        seed: int = 7,
        config: Optional[RecommendationConfig] = None,
    ) -> MealPlanAssembler:
        client = FakeSupabaseClient()
        catalog = RecipeCatalog(client)
        catalog.recipes = list(recipes)
        taxonomy = TagTaxonomy(client)
        taxonomy.set_tags(tags)
        prefs = UserPreferencesStore(client, "user-1")
        prefs.preferences = preferences
        recommender = RecipeRecommender(config, rng=random.Random(seed))
        return MealPlanAssembler(recommender, catalog, taxonomy, prefs)

    return _make


@pytest.fixture
def fake_client() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def make_backend() -> Callable[..., InMemoryMealPlanBackend]:
    def _make(recipes: Optional[List[Recipe]] = None) -> InMemoryMealPlanBackend:
        return InMemoryMealPlanBackend(recipes)

    return _make
