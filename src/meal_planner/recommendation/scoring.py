"""
scoring.py

Layer-0 heuristic scoring of a single recipe against a user's preferences.

Score terms (added into total, none clamped):
  - preference-tag match : weight per recipe tag the user explicitly prefers
  - goal alignment       : (len(goals) - position) * weight per goal whose
                           tag type appears on the recipe
  - diversity bonus      : reward for cuisine/protein-style tags that are not
                           already present in the current plan
  - recency penalty      : flat (negative) weight when eaten recently

The scorer is pure: no I/O, no state, inputs are never mutated.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, Iterable, List, Optional, Sequence

from src.meal_planner.logging_utils import get_logger
from src.meal_planner.schema import Recipe, ScoreBreakdown, ScoredRecipe, Tag, UserPreferences

logger = get_logger("scoring")


@dataclass
class RecommendationWeights:
    preference_tag: float = 1.0
    goal_alignment: float = 2.0
    diversity: float = 0.5
    recency: float = -0.5             # negative => penalty


@dataclass
class RecommendationConfig:
    weights: RecommendationWeights = field(default_factory=RecommendationWeights)

    # Which tag types count towards the diversity bonus
    diversity_tag_types: List[str] = field(default_factory=lambda: ["cuisine", "protein"])
    # How many days back a meal counts as "recently eaten"
    recency_window_days: int = 7
    # None = keep every scored recipe
    minimum_score: Optional[float] = None

    def copy(self) -> "RecommendationConfig":
        return copy.deepcopy(self)


@dataclass
class ScoringContext:
    recent_recipe_ids: AbstractSet[str] = frozenset()
    current_plan_recipe_ids: AbstractSet[str] = frozenset()
    # Tag ids carried by the recipes already in the plan (for diversity)
    current_plan_tag_ids: AbstractSet[str] = frozenset()


def index_tags(tags: Iterable[Tag]) -> Dict[str, Tag]:
    return {t.id: t for t in tags}


class RecipeScorer:
    def __init__(self, config: Optional[RecommendationConfig] = None) -> None:
        self.config = config or RecommendationConfig()

    def score(
        self,
        recipe: Recipe,
        preferences: UserPreferences,
        tags: Sequence[Tag] | Dict[str, Tag],
        context: Optional[ScoringContext] = None,
    ) -> ScoredRecipe:
        """
        Score one recipe.

        `tags` may be the raw taxonomy list or an id -> Tag index (the
        recommender pre-builds the index once per call).
        """
        context = context or ScoringContext()
        tag_index = tags if isinstance(tags, dict) else index_tags(tags)
        weights = self.config.weights

        breakdown = ScoreBreakdown()
        matched_tag_ids: List[str] = []
        matched_goals: List[str] = []

        # 1. Preference tag matches
        preferred = set(preferences.preferred_tag_ids)
        if recipe.tag_ids and preferred:
            for tag_id in recipe.tag_ids:
                if tag_id in preferred:
                    breakdown.preference_tag_matches += weights.preference_tag
                    matched_tag_ids.append(tag_id)

        # 2. Goal alignment: earlier goals weigh more
        if recipe.tag_ids and preferences.user_goals and tag_index:
            recipe_tag_types = {tag_index[tid].type for tid in recipe.tag_ids if tid in tag_index}
            goal_count = len(preferences.user_goals)
            for position, goal in enumerate(preferences.user_goals):
                if goal in recipe_tag_types:
                    priority = goal_count - position
                    breakdown.goal_alignment += priority * weights.goal_alignment
                    matched_goals.append(goal)

        # 3. Diversity bonus (only once something is planned)
        if context.current_plan_recipe_ids:
            breakdown.diversity_bonus = self._diversity_bonus(recipe, tag_index, context.current_plan_tag_ids)

        # 4. Recency penalty
        if recipe.id in context.recent_recipe_ids:
            breakdown.recency_penalty = weights.recency

        breakdown.total = (
            breakdown.preference_tag_matches
            + breakdown.goal_alignment
            + breakdown.diversity_bonus
            + breakdown.recency_penalty
        )

        logger.debug(
            "scored recipe=%s total=%.2f",
            recipe.id,
            breakdown.total,
            extra={"invoking_func": "score", "invoking_purpose": "Per-recipe scoring"},
        )

        return ScoredRecipe(
            recipe=recipe,
            score=breakdown.total,
            breakdown=breakdown,
            matched_tag_ids=matched_tag_ids,
            matched_goals=matched_goals,
        )

    def _diversity_bonus(
        self,
        recipe: Recipe,
        tag_index: Dict[str, Tag],
        planned_tag_ids: AbstractSet[str],
    ) -> float:
        diversity_types = set(self.config.diversity_tag_types or [])
        if not recipe.tag_ids or not diversity_types:
            return 0.0

        relevant = {
            tid for tid in recipe.tag_ids if tid in tag_index and tag_index[tid].type in diversity_types
        }
        if not relevant:
            return 0.0

        overlap = len(relevant & set(planned_tag_ids))
        return self.config.weights.diversity * (1.0 - overlap / len(relevant))
