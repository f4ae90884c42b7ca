"""
config.py

Purpose:
    Provide:
      - get_supabase_client(): a Supabase Python client built from env vars
      - load_recommendation_config(): scoring weights / knobs with optional
        env overrides, so ranking can be tuned without a code change

Usage:
    from src.meal_planner.config import get_supabase_client, load_recommendation_config
"""
from __future__ import annotations
import os       # os module to read environment variables

from typing import List, Optional

# Supabase client setup where env vars are used for configuration. Client connection details are not hardcoded.
from supabase import create_client, Client  # supabase-py v2

from dotenv import load_dotenv      # Load environment variables from .env file

from src.meal_planner.logging_utils import get_logger
from src.meal_planner.recommendation.scoring import RecommendationConfig, RecommendationWeights

load_dotenv()  # loads .env

logger = get_logger("config")


# Function to create and return a Supabase client. This is like building a database connection.
def get_supabase_client() -> Client:
    """Create a Supabase client using env vars."""
    url = os.environ["SUPABASE_URL"]
    # Apps should run with the anon/authenticated key; service role only for admin scripts
    key = os.environ.get("SUPABASE_KEY") or os.environ["SUPABASE_SERVICE_ROLE_KEY"]
    return create_client(url, key)


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(
            "Ignoring malformed %s=%r",
            name,
            raw,
            extra={
                "invoking_func": "load_recommendation_config",
                "invoking_purpose": "Read scoring overrides from env",
                "next_step": "Use default value",
                "resolution": f"Set {name} to a number or unset it",
            },
        )
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.environ.get(name)
    if raw is None:
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


def load_recommendation_config() -> RecommendationConfig:
    """Build a RecommendationConfig from defaults + MEAL_PLANNER_* env vars."""
    defaults = RecommendationConfig()
    weights = RecommendationWeights(
        preference_tag=_env_float("MEAL_PLANNER_WEIGHT_PREFERENCE_TAG", defaults.weights.preference_tag),
        goal_alignment=_env_float("MEAL_PLANNER_WEIGHT_GOAL", defaults.weights.goal_alignment),
        diversity=_env_float("MEAL_PLANNER_WEIGHT_DIVERSITY", defaults.weights.diversity),
        recency=_env_float("MEAL_PLANNER_WEIGHT_RECENCY", defaults.weights.recency),
    )

    window = _env_float("MEAL_PLANNER_RECENCY_WINDOW_DAYS", float(defaults.recency_window_days))

    return RecommendationConfig(
        weights=weights,
        diversity_tag_types=_env_list("MEAL_PLANNER_DIVERSITY_TAG_TYPES", defaults.diversity_tag_types),
        recency_window_days=int(window),
        minimum_score=_env_float("MEAL_PLANNER_MIN_SCORE", defaults.minimum_score),
    )
