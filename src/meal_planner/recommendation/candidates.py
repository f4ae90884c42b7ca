"""
candidates.py

Candidate filtering that runs before scoring. Both helpers preserve the
catalog's input order.
"""
from __future__ import annotations

from typing import Iterable, List, Sequence

from src.meal_planner.schema import Recipe, UserPreferences


def filter_candidates(recipes: Sequence[Recipe], exclude_ids: Iterable[str] = ()) -> List[Recipe]:
    """Return the catalog minus excluded recipe ids (already planned, blacklisted...)."""
    excluded = set(exclude_ids or ())
    if not excluded:
        return list(recipes)
    return [r for r in recipes if r.id not in excluded]


def filter_by_preferred_tags(recipes: Sequence[Recipe], preferences: UserPreferences) -> List[Recipe]:
    """Recipes carrying at least one preferred tag; everything if the user has none."""
    preferred = set(preferences.preferred_tag_ids)
    if not preferred:
        return list(recipes)
    return [r for r in recipes if r.tag_ids and any(tid in preferred for tid in r.tag_ids)]


def dedupe_by_id(recipes: Iterable[Recipe]) -> List[Recipe]:
    # De-dupe while preserving order
    seen = set()
    out: List[Recipe] = []
    for r in recipes:
        if r.id in seen:
            continue
        seen.add(r.id)
        out.append(r)
    return out
