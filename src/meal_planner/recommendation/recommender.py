"""
recommender.py

Recipe recommender used to fill a weekly meal plan.

Design goals:
  - Explainable: every result carries a score breakdown and matched tags/goals
  - Works for brand-new users (no tags, no goals) via a uniform random sample
  - Keeps data access out of the ranking code; the caller hands in the
    already-loaded catalog, preferences and taxonomy

Pipeline:
  1. candidate filter (exclude ids)
  2. score every candidate (RecipeScorer)
  3. optional minimum score floor
  4. sort by score desc; near-ties (< 0.01 apart) are shuffled so repeated
     generations surface different recipes
  5. truncate to the requested count

This is a greedy heuristic ranker, not a solver.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Sequence, Set

from src.meal_planner.logging_utils import get_logger
from src.meal_planner.recommendation.candidates import dedupe_by_id, filter_candidates
from src.meal_planner.recommendation.scoring import (
    RecipeScorer,
    RecommendationConfig,
    ScoringContext,
    index_tags,
)
from src.meal_planner.schema import Recipe, ScoredRecipe, Tag, UserPreferences

logger = get_logger("recommender")

TIE_EPSILON = 0.01


@dataclass
class RecommendationRequest:
    count: int
    exclude_ids: List[str] = field(default_factory=list)
    recent_ids: List[str] = field(default_factory=list)
    current_plan_ids: List[str] = field(default_factory=list)


class RecipeRecommender:
    def __init__(
        self,
        config: Optional[RecommendationConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or RecommendationConfig()
        self.scorer = RecipeScorer(self.config)
        self.rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Public APIs
    # ------------------------------------------------------------------
    def recommend(
        self,
        recipes: Sequence[Recipe],
        preferences: UserPreferences,
        tags: Sequence[Tag],
        req: RecommendationRequest,
    ) -> List[ScoredRecipe]:
        """
        Recommend up to req.count recipes for a user.

        New users (no preferred tags and no goals) get a random sample so the
        catalog's storage order does not bias their first plans.

        Returns:
            List[ScoredRecipe] sorted by score desc (near-ties in random order)
        """
        if not recipes or preferences is None or req.count <= 0:
            return []

        catalog = dedupe_by_id(recipes)

        if not preferences.has_preferences():
            logger.info(
                "recommend_fallback_random",
                extra={
                    "invoking_func": "recommend",
                    "invoking_purpose": "Pick recipes for a user without tags/goals",
                    "next_step": "Return random sample",
                    "resolution": "",
                },
            )
            return [
                ScoredRecipe.unscored(r)
                for r in self.random_recommendations(catalog, req.count, req.exclude_ids)
            ]

        candidates = filter_candidates(catalog, req.exclude_ids)

        plan_ids = set(req.current_plan_ids)
        context = ScoringContext(
            recent_recipe_ids=frozenset(req.recent_ids),
            current_plan_recipe_ids=frozenset(plan_ids),
            current_plan_tag_ids=frozenset(self._plan_tag_ids(catalog, plan_ids)),
        )
        tag_index = index_tags(tags)

        scored = [self.scorer.score(r, preferences, tag_index, context) for r in candidates]

        floor = self.config.minimum_score
        if floor is not None:
            scored = [s for s in scored if s.score >= floor]

        ranked = self._rank(scored)

        logger.info(
            "recommend candidates=%d scored=%d returned=%d",
            len(candidates),
            len(scored),
            min(len(ranked), req.count),
            extra={
                "invoking_func": "recommend",
                "invoking_purpose": "Rank recipes for a meal plan",
                "next_step": "Materialize plan entries",
                "resolution": "",
            },
        )
        return ranked[: req.count]

    def random_recommendations(
        self,
        recipes: Sequence[Recipe],
        count: int,
        exclude_ids: Sequence[str] = (),
    ) -> List[Recipe]:
        """Uniform random sample (without replacement) of the non-excluded recipes."""
        available = filter_candidates(dedupe_by_id(recipes), exclude_ids)
        if count <= 0 or not available:
            return []
        return self.rng.sample(available, min(count, len(available)))

    def update_config(self, **overrides: Any) -> None:
        """Update configuration (for A/B testing); accepts RecommendationConfig field names."""
        self.config = replace(self.config, **overrides)
        self.scorer = RecipeScorer(self.config)

    def get_config(self) -> RecommendationConfig:
        return self.config.copy()

    # ------------------------------------------------------------------
    # Ranking helpers
    # ------------------------------------------------------------------
    def _rank(self, scored: List[ScoredRecipe]) -> List[ScoredRecipe]:
        ordered = sorted(scored, key=lambda s: s.score, reverse=True)

        # Walk the sorted list; everything within TIE_EPSILON of a run's first
        # member is one tie group, shuffled in place.
        out: List[ScoredRecipe] = []
        i = 0
        while i < len(ordered):
            anchor = ordered[i].score
            j = i + 1
            while j < len(ordered) and abs(anchor - ordered[j].score) < TIE_EPSILON:
                j += 1
            group = ordered[i:j]
            if len(group) > 1:
                self.rng.shuffle(group)
            out.extend(group)
            i = j
        return out

    @staticmethod
    def _plan_tag_ids(catalog: Sequence[Recipe], plan_ids: Set[str]) -> Set[str]:
        if not plan_ids:
            return set()
        out: Set[str] = set()
        for r in catalog:
            if r.id in plan_ids:
                out.update(r.tag_ids)
        return out
