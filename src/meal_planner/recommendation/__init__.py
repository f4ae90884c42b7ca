"""
Recommendation layer (Meal Planner)

This package contains the explainable heuristic ranker used to fill weekly
meal plans:
  - scoring.py     : per-recipe score + breakdown (preference tags, goals,
                     diversity, recency)
  - candidates.py  : catalog filtering before scoring
  - recommender.py : filter -> score -> floor -> rank/tie-break -> truncate

The goal is to keep ranking logic *decoupled* from Supabase access; callers
pass in the already-loaded catalog, preferences and tag taxonomy.
"""
