"""
Scoring Tests - Pure Python, No External Dependencies
=====================================================

RecipeScorer terms: preference tags, goal alignment, diversity, recency.
"""

import copy

import pytest

from src.meal_planner.recommendation.scoring import (
    RecipeScorer,
    RecommendationConfig,
    RecommendationWeights,
    ScoringContext,
)


class TestPreferenceTagMatches:
    @pytest.mark.readonly
    def test_each_matching_tag_adds_weight(self, tags, make_recipe, make_preferences):
        recipe = make_recipe("r1", ["t-italian", "t-chicken", "t-quick"])
        prefs = make_preferences(tag_ids=["t-italian", "t-chicken"])

        scored = RecipeScorer().score(recipe, prefs, tags)

        assert scored.breakdown.preference_tag_matches == pytest.approx(2.0)
        assert scored.matched_tag_ids == ["t-italian", "t-chicken"]
        assert scored.score == pytest.approx(2.0)

    @pytest.mark.readonly
    def test_adding_preferred_tag_never_decreases_score(self, tags, make_recipe, make_preferences):
        prefs = make_preferences(tag_ids=["t-italian", "t-chicken"], goals=["time"])
        scorer = RecipeScorer()
        plan_ctx = ScoringContext(
            current_plan_recipe_ids=frozenset({"other"}),
            current_plan_tag_ids=frozenset({"t-chicken"}),
        )

        for ctx in (ScoringContext(), plan_ctx):
            base = scorer.score(make_recipe("r1", ["t-italian"]), prefs, tags, ctx)
            more = scorer.score(make_recipe("r1", ["t-italian", "t-chicken"]), prefs, tags, ctx)
            assert more.score >= base.score

    @pytest.mark.readonly
    def test_no_preferences_scores_zero(self, tags, make_recipe, make_preferences):
        scored = RecipeScorer().score(make_recipe("r1", ["t-italian"]), make_preferences(), tags)
        assert scored.score == 0
        assert scored.matched_tag_ids == []
        assert scored.matched_goals == []


class TestGoalAlignment:
    @pytest.mark.readonly
    def test_earlier_goal_weighs_more(self, tags, make_recipe, make_preferences):
        prefs = make_preferences(goals=["time", "budget"])
        scorer = RecipeScorer()

        quick = scorer.score(make_recipe("quick", ["t-quick"]), prefs, tags)
        cheap = scorer.score(make_recipe("cheap", ["t-cheap"]), prefs, tags)

        # priority = len(goals) - position, times goal weight 2.0
        assert quick.breakdown.goal_alignment == pytest.approx(4.0)
        assert cheap.breakdown.goal_alignment == pytest.approx(2.0)
        assert quick.breakdown.goal_alignment > cheap.breakdown.goal_alignment
        assert quick.matched_goals == ["time"]
        assert cheap.matched_goals == ["budget"]

    @pytest.mark.readonly
    def test_multiple_goals_are_additive(self, tags, make_recipe, make_preferences):
        prefs = make_preferences(goals=["time", "budget", "macro"])
        scored = RecipeScorer().score(make_recipe("r", ["t-quick", "t-cheap", "t-protein"]), prefs, tags)

        assert scored.breakdown.goal_alignment == pytest.approx((3 + 2 + 1) * 2.0)
        assert scored.matched_goals == ["time", "budget", "macro"]

    @pytest.mark.readonly
    def test_goal_counted_once_per_type(self, tags, make_recipe, make_preferences):
        prefs = make_preferences(goals=["cuisine"])
        scored = RecipeScorer().score(make_recipe("r", ["t-italian", "t-indian"]), prefs, tags)
        assert scored.breakdown.goal_alignment == pytest.approx(2.0)

    @pytest.mark.readonly
    def test_unknown_tag_ids_are_ignored(self, tags, make_recipe, make_preferences):
        prefs = make_preferences(goals=["time"])
        scored = RecipeScorer().score(make_recipe("r", ["t-missing"]), prefs, tags)
        assert scored.breakdown.goal_alignment == 0

    @pytest.mark.readonly
    def test_empty_taxonomy_gives_no_goal_score(self, make_recipe, make_preferences):
        prefs = make_preferences(goals=["time"])
        scored = RecipeScorer().score(make_recipe("r", ["t-quick"]), prefs, [])
        assert scored.breakdown.goal_alignment == 0


class TestDiversityBonus:
    def _ctx(self, planned_tags):
        return ScoringContext(
            current_plan_recipe_ids=frozenset({"planned"}),
            current_plan_tag_ids=frozenset(planned_tags),
        )

    @pytest.mark.readonly
    def test_no_bonus_for_empty_plan(self, tags, make_recipe, make_preferences):
        scored = RecipeScorer().score(make_recipe("r", ["t-mexican"]), make_preferences(goals=["time"]), tags)
        assert scored.breakdown.diversity_bonus == 0

    @pytest.mark.readonly
    def test_disjoint_recipe_gets_full_weight(self, tags, make_recipe, make_preferences):
        scored = RecipeScorer().score(
            make_recipe("r", ["t-mexican", "t-tofu"]),
            make_preferences(goals=["time"]),
            tags,
            self._ctx({"t-italian", "t-chicken"}),
        )
        assert scored.breakdown.diversity_bonus == pytest.approx(0.5)

    @pytest.mark.readonly
    def test_partial_overlap_scales_bonus(self, tags, make_recipe, make_preferences):
        scored = RecipeScorer().score(
            make_recipe("r", ["t-italian", "t-tofu"]),
            make_preferences(goals=["time"]),
            tags,
            self._ctx({"t-italian"}),
        )
        assert scored.breakdown.diversity_bonus == pytest.approx(0.25)

    @pytest.mark.readonly
    def test_full_overlap_gets_nothing(self, tags, make_recipe, make_preferences):
        scored = RecipeScorer().score(
            make_recipe("r", ["t-italian"]),
            make_preferences(goals=["time"]),
            tags,
            self._ctx({"t-italian"}),
        )
        assert scored.breakdown.diversity_bonus == 0

    @pytest.mark.readonly
    def test_only_configured_tag_types_count(self, tags, make_recipe, make_preferences):
        scorer = RecipeScorer()
        prefs = make_preferences(goals=["time"])

        # "time" is not a diversity tag type
        assert scorer.score(make_recipe("r", ["t-quick"]), prefs, tags, self._ctx(set())).breakdown.diversity_bonus == 0

        cfg = RecommendationConfig(diversity_tag_types=["time"])
        bonus = RecipeScorer(cfg).score(make_recipe("r", ["t-quick"]), prefs, tags, self._ctx(set())).breakdown.diversity_bonus
        assert bonus == pytest.approx(0.5)


class TestRecencyAndTotals:
    @pytest.mark.readonly
    def test_recent_recipe_is_penalised(self, tags, make_recipe, make_preferences):
        ctx = ScoringContext(recent_recipe_ids=frozenset({"r"}))
        scored = RecipeScorer().score(make_recipe("r", ["t-quick"]), make_preferences(goals=["budget"]), tags, ctx)

        assert scored.breakdown.recency_penalty == pytest.approx(-0.5)
        assert scored.score == pytest.approx(-0.5)

    @pytest.mark.readonly
    def test_total_is_sum_of_terms(self, tags, make_recipe, make_preferences):
        cfg = RecommendationConfig(weights=RecommendationWeights(preference_tag=1.5, goal_alignment=1.0, diversity=1.0, recency=-2.0))
        ctx = ScoringContext(
            recent_recipe_ids=frozenset({"r"}),
            current_plan_recipe_ids=frozenset({"p"}),
            current_plan_tag_ids=frozenset(),
        )
        prefs = make_preferences(tag_ids=["t-italian"], goals=["cuisine"])
        scored = RecipeScorer(cfg).score(make_recipe("r", ["t-italian"]), prefs, tags, ctx)

        b = scored.breakdown
        assert (b.preference_tag_matches, b.goal_alignment, b.diversity_bonus, b.recency_penalty) == pytest.approx(
            (1.5, 1.0, 1.0, -2.0)
        )
        assert b.total == pytest.approx(1.5)
        assert scored.score == b.total

    @pytest.mark.readonly
    def test_scoring_is_idempotent_and_pure(self, tags, make_recipe, make_preferences):
        recipe = make_recipe("r", ["t-italian", "t-quick"])
        prefs = make_preferences(tag_ids=["t-italian"], goals=["time", "budget"])
        ctx = ScoringContext(recent_recipe_ids=frozenset({"x"}))
        recipe_before = copy.deepcopy(recipe)
        prefs_before = copy.deepcopy(prefs)

        scorer = RecipeScorer()
        first = scorer.score(recipe, prefs, tags, ctx)
        second = scorer.score(recipe, prefs, tags, ctx)

        assert first.score == second.score
        assert first.breakdown == second.breakdown
        assert first.matched_tag_ids == second.matched_tag_ids
        assert first.matched_goals == second.matched_goals
        assert recipe == recipe_before
        assert prefs == prefs_before
