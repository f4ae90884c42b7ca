# src/meal_planner/schema.py
from __future__ import annotations

"""
schema.py

Purpose:
    Shared dataclasses for the recommendation + meal plan layers.

    These are the "internal contracts" between:
      - collaborators that read Supabase (catalog, taxonomy, preferences, weeks),
      - the scoring / recommendation layer,
      - the meal plan assembler and week-scoped store.

    Nothing in this module talks to Supabase directly; the from_row()
    constructors only translate already-fetched rows.
"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class PlanStatus(str, Enum):
    """Workflow status of a persisted week plan."""

    DRAFT = "draft"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: "PlanStatus | str") -> "PlanStatus":
        """Accept an enum member or its string value; reject anything else."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            allowed = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown meal plan status {value!r} (expected one of: {allowed})") from None


@dataclass(frozen=True)
class Tag:
    id: str
    name: str
    type: str                         # cuisine, protein, budget, macro, time, meal_type, ...

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Tag":
        return cls(id=str(row["id"]), name=row.get("name") or "", type=row.get("type") or "")


@dataclass(frozen=True)
class Recipe:
    id: str
    name: str
    description: str = ""
    prep_time: int = 0                # minutes
    cook_time: int = 0
    total_time: int = 0
    default_servings: int = 1
    image_url: Optional[str] = None
    created_at: str = ""
    tag_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Recipe":
        """Build a Recipe from a `recipe` row joined with `recipe_tags(tag_id)`."""
        tag_ids = [str(rt["tag_id"]) for rt in (row.get("recipe_tags") or []) if rt and rt.get("tag_id")]
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            description=row.get("description") or "",
            prep_time=int(row.get("prep_time") or 0),
            cook_time=int(row.get("cook_time") or 0),
            total_time=int(row.get("total_time") or 0),
            default_servings=int(row.get("default_servings") or 1),
            image_url=row.get("image_url"),
            created_at=row.get("created_at") or "",
            tag_ids=tag_ids,
        )


@dataclass
class PreferenceTag:
    tag_id: str
    priority: int = 0                 # index in the user's ordering, 0 = most important


@dataclass
class UserPreferences:
    """One live record per user; defaults mirror the lazily created row."""

    user_id: str
    id: str = ""
    meals_per_week: int = 4
    serves_per_meal: int = 2
    user_goals: List[str] = field(default_factory=list)      # order encodes priority
    preference_tags: List[PreferenceTag] = field(default_factory=list)
    created_at: str = ""

    @property
    def preferred_tag_ids(self) -> List[str]:
        return [pt.tag_id for pt in sorted(self.preference_tags, key=lambda p: p.priority)]

    def has_goals(self) -> bool:
        return bool(self.user_goals)

    def has_preference_tags(self) -> bool:
        return bool(self.preference_tags)

    def has_preferences(self) -> bool:
        return self.has_goals() or self.has_preference_tags()


@dataclass
class ScoreBreakdown:
    preference_tag_matches: float = 0.0
    goal_alignment: float = 0.0
    diversity_bonus: float = 0.0
    recency_penalty: float = 0.0
    total: float = 0.0


@dataclass
class ScoredRecipe:
    recipe: Recipe
    score: float
    breakdown: ScoreBreakdown
    matched_tag_ids: List[str] = field(default_factory=list)
    matched_goals: List[str] = field(default_factory=list)

    @classmethod
    def unscored(cls, recipe: Recipe) -> "ScoredRecipe":
        """Zero score + empty breakdown, used by the random fallback."""
        return cls(recipe=recipe, score=0.0, breakdown=ScoreBreakdown())


@dataclass
class MealPlanEntry:
    id: str
    recipe: Recipe
    servings: int
    status: Optional[PlanStatus] = None
    week_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Week:
    id: str
    start_date: datetime.date
    end_date: datetime.date
    is_current_week: bool
    week_offset: int
    display_title: str
    status: str                       # past | current | future


@dataclass
class GenerationResult:
    """Outcome of MealPlanAssembler.generate()."""

    ready: bool
    missing: List[str] = field(default_factory=list)
    entries: List[MealPlanEntry] = field(default_factory=list)
