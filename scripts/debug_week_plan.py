from __future__ import annotations
"""
Purpose:
    Simple script to debug/check the saved meal plan rows of a week in the Supabase DB.

Usage:
    python scripts/debug_week_plan.py <week_id> <user_id>

Output: Expected Output in CLI Run
    Week <week_id> - 4 saved meals:
    - [0] Dal Tadka x2 (draft) recipe=...
    - [1] Veg Pulao x2 (draft) recipe=...
        etc.
"""
import sys
from pathlib import Path
# --- Make project root importable so `src.*` imports work even when this
# --- script is executed from the `scripts/` directory.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.meal_planner.config import get_supabase_client
from src.meal_planner.planning.backend import SupabaseMealPlanBackend


def main():
    if len(sys.argv) != 3:
        print("Usage: python scripts/debug_week_plan.py <week_id> <user_id>")
        sys.exit(1)
    week_id, user_id = sys.argv[1], sys.argv[2]

    backend = SupabaseMealPlanBackend(get_supabase_client())
    rows = backend.get_week_meal_plan_with_recipes(week_id, user_id)

    print(f"Week {week_id} - {len(rows)} saved meals:")
    for i, row in enumerate(rows):
        print(
            f"- [{i}] {row.get('recipe_name')} x{row.get('servings')} "
            f"({row.get('status')}) recipe={row.get('recipe_id')}"
        )

if __name__ == "__main__":
    main()
