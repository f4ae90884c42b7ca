"""
plan_example.py

Example usage of the weekly meal planner against Supabase.

Run:
  python -m src.meal_planner.planning.plan_example --user-id <uuid>
  python -m src.meal_planner.planning.plan_example --user-id <uuid> --week-id <id> --save --status confirmed

Requires:
  SUPABASE_URL
  SUPABASE_KEY (or SUPABASE_SERVICE_ROLE_KEY for local admin runs)
"""
from __future__ import annotations

import argparse

from src.meal_planner.catalog.recipes import RecipeCatalog
from src.meal_planner.catalog.reference_data import ReferenceData
from src.meal_planner.config import get_supabase_client, load_recommendation_config
from src.meal_planner.planning.assembler import MealPlanAssembler
from src.meal_planner.planning.backend import SupabaseMealPlanBackend
from src.meal_planner.planning.week_store import WeekPlanStore
from src.meal_planner.preferences.store import UserPreferencesStore
from src.meal_planner.recommendation.recommender import RecipeRecommender
from src.meal_planner.schema import PlanStatus
from src.meal_planner.weeks.week_calendar import WeekCalendar


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--user-id", required=True)
    ap.add_argument("--week-id", default=None, help="defaults to the current week")
    ap.add_argument("--regenerate", action="store_true", help="ignore the saved plan and build a new one")
    ap.add_argument("--save", action="store_true")
    ap.add_argument("--status", choices=[s.value for s in PlanStatus], default=PlanStatus.DRAFT.value)
    args = ap.parse_args()

    client = get_supabase_client()
    config = load_recommendation_config()

    taxonomy = ReferenceData(client)
    taxonomy.refresh_all()
    catalog = RecipeCatalog(client)
    catalog.refresh()
    prefs = UserPreferencesStore(client, args.user_id)
    prefs.refresh()
    calendar = WeekCalendar(client)
    calendar.refresh()

    assembler = MealPlanAssembler(RecipeRecommender(config), catalog, taxonomy, prefs)
    store = WeekPlanStore(SupabaseMealPlanBackend(client), assembler, args.user_id, config)

    week_id = args.week_id or (calendar.current_week.id if calendar.current_week else None)
    if week_id is None:
        print("No week id given and no current week found.")
        return

    if args.regenerate:
        result = assembler.regenerate(store.recent_recipe_ids(calendar))
        if not result.ready:
            print(f"Planner not ready, missing: {', '.join(result.missing)}")
            return
    else:
        store.load(week_id)
        if store.last_error:
            print(f"(saved plan unavailable: {store.last_error})")
        if store.last_generation and not store.last_generation.ready:
            print(f"Planner not ready, missing: {', '.join(store.last_generation.missing)}")
            return

    week = calendar.get_week_by_id(week_id)
    print(f"Week {week.display_title if week else week_id}: {assembler.total_servings()} servings")
    for i, entry in enumerate(assembler.get_current_plan(), start=1):
        print(f"{i:02d}. {entry.recipe.name}  x{entry.servings}")
        scored = assembler.last_scores.get(entry.recipe.id)
        if scored and scored.score:
            b = scored.breakdown
            print(
                f"    score={scored.score:.2f} tags={b.preference_tag_matches:.1f} "
                f"goals={b.goal_alignment:.1f} diversity={b.diversity_bonus:.2f} recency={b.recency_penalty:.1f}"
            )
            if scored.matched_goals:
                print("    - goals:", ", ".join(scored.matched_goals))

    if args.save:
        store.save(week_id, status=args.status)
        print(f"Saved as {args.status}.")


if __name__ == "__main__":
    main()
