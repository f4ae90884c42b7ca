"""
recipes.py

Recipe catalog collaborator: loads `recipe` rows with their `recipe_tags`
tag ids from Supabase and offers simple in-memory lookups. No ranking here.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from supabase import Client

from src.meal_planner.errors import BackendError
from src.meal_planner.logging_utils import get_logger
from src.meal_planner.schema import Recipe

logger = get_logger("recipes")


class RecipeCatalog:
    def __init__(self, client: Client) -> None:
        self.client = client
        self.recipes: List[Recipe] = []
        self.loading = False
        self.initialized = False
        self.last_error: Optional[BaseException] = None

    def refresh(self) -> List[Recipe]:
        """Fetch all recipes (newest first) with their tag ids."""
        self.loading = True
        self.last_error = None
        try:
            res = (
                self.client.table("recipe")
                .select("*, recipe_tags(tag_id)")
                .order("created_at", desc=True)
                .execute()
            )
            self.recipes = [Recipe.from_row(row) for row in res.data or []]
            self.initialized = True
            logger.info(
                "Recipes fetched: total=%d with_tags=%d",
                len(self.recipes),
                sum(1 for r in self.recipes if r.tag_ids),
                extra={
                    "invoking_func": "refresh",
                    "invoking_purpose": "Load recipe catalog",
                    "next_step": "Catalog ready for recommendations",
                    "resolution": "",
                },
            )
            return self.recipes
        except Exception as exc:  # noqa: BLE001
            self.last_error = BackendError("recipe", str(exc), exc)
            logger.error(
                "Error fetching recipes: %s",
                exc,
                extra={
                    "invoking_func": "refresh",
                    "invoking_purpose": "Load recipe catalog",
                    "next_step": "Keep previously loaded recipes",
                    "resolution": "Check SUPABASE_URL / key and the recipe table RLS policies",
                },
            )
            return self.recipes
        finally:
            self.loading = False

    # Simple tag-based filtering
    def filter_by_tag_ids(self, tag_ids: Iterable[str]) -> List[Recipe]:
        wanted = set(tag_ids)
        if not wanted:
            return list(self.recipes)
        return [r for r in self.recipes if any(tid in wanted for tid in r.tag_ids)]

    # Simple text search
    def search(self, query: str) -> List[Recipe]:
        if not query.strip():
            return list(self.recipes)
        q = query.lower()
        return [r for r in self.recipes if q in r.name.lower() or q in (r.description or "").lower()]

    def get_by_id(self, recipe_id: str) -> Optional[Recipe]:
        for r in self.recipes:
            if r.id == recipe_id:
                return r
        return None

    def get_by_ids(self, recipe_ids: Iterable[str]) -> List[Recipe]:
        ids = set(recipe_ids)
        return [r for r in self.recipes if r.id in ids]

    def get_excluding(self, exclude_ids: Iterable[str]) -> List[Recipe]:
        ids = set(exclude_ids)
        return [r for r in self.recipes if r.id not in ids]
