# src/meal_planner/preferences/store.py
from __future__ import annotations

"""
store.py

Purpose:
    Load and update the single live `user_preferences` record of a user,
    together with its ordered `user_preference_tags`.

    A missing record is not an error: defaults (4 meals/week, 2 servings)
    are used immediately and a default row is inserted, so the planner can
    always generate something for a new user.

Tables:
    user_preferences(id, user_id, meals_per_week, serves_per_meal, user_goals, created_at)
    user_preference_tags(user_preference_id, tag_id, priority)
"""

from typing import Any, Dict, List, Optional

from supabase import Client

from src.meal_planner.errors import BackendError
from src.meal_planner.logging_utils import get_logger
from src.meal_planner.schema import PreferenceTag, UserPreferences

logger = get_logger("store")

DEFAULT_MEALS_PER_WEEK = 4
DEFAULT_SERVES_PER_MEAL = 2

# Goal vocabulary offered during onboarding. Each type matches a tag type.
AVAILABLE_GOALS: List[Dict[str, str]] = [
    {"type": "budget", "name": "Saving Money", "description": "Find budget-friendly recipes"},
    {"type": "macro", "name": "Healthy Eating", "description": "Focus on nutritional goals"},
    {"type": "time", "name": "Saving Time", "description": "Quick and easy meals"},
    {"type": "meal_type", "name": "Weekly Planning", "description": "Organized meal preparation"},
]


class UserPreferencesStore:
    def __init__(self, client: Client, user_id: Optional[str]) -> None:
        self.client = client
        self.user_id = user_id
        self.preferences: Optional[UserPreferences] = None
        self.loading = False
        self.initialized = False
        self.last_error: Optional[BaseException] = None

    # -----------------------------------------------------
    # Fetch
    # -----------------------------------------------------
    def refresh(self) -> Optional[UserPreferences]:
        if not self.user_id:
            logger.warning(
                "No user id, skipping preferences fetch",
                extra={
                    "invoking_func": "refresh",
                    "invoking_purpose": "Load user preferences",
                    "next_step": "Planner stays not-ready",
                    "resolution": "Pass an authenticated user id",
                },
            )
            return None

        self.loading = True
        self.last_error = None
        try:
            res = (
                self.client.table("user_preferences")
                .select("*")
                .eq("user_id", self.user_id)
                .limit(1)
                .execute()
            )
            rows = res.data or []
            if not rows:
                logger.info(
                    "No preferences found, creating defaults",
                    extra={
                        "invoking_func": "refresh",
                        "invoking_purpose": "Load user preferences",
                        "next_step": "Insert default user_preferences row",
                        "resolution": "",
                    },
                )
                self.preferences = UserPreferences(user_id=self.user_id)
                self.initialized = True
                self._create_default_preferences()
                return self.preferences

            row = rows[0]
            self.preferences = self._from_row(row, self._fetch_preference_tags(row["id"]))
            self.initialized = True
            logger.info(
                "User preferences loaded: meals_per_week=%s serves_per_meal=%s goals=%s tags=%d",
                self.preferences.meals_per_week,
                self.preferences.serves_per_meal,
                self.preferences.user_goals,
                len(self.preferences.preference_tags),
                extra={"invoking_func": "refresh", "invoking_purpose": "Load user preferences"},
            )
            return self.preferences
        except Exception as exc:  # noqa: BLE001
            self.last_error = BackendError("user_preferences", str(exc), exc)
            logger.error(
                "Error fetching user preferences: %s",
                exc,
                extra={
                    "invoking_func": "refresh",
                    "invoking_purpose": "Load user preferences",
                    "next_step": "Keep previous preferences (if any)",
                    "resolution": "Check user_preferences table / RLS",
                },
            )
            return self.preferences
        finally:
            self.loading = False

    def _fetch_preference_tags(self, preference_id: str) -> List[PreferenceTag]:
        try:
            res = (
                self.client.table("user_preference_tags")
                .select("tag_id,priority")
                .eq("user_preference_id", preference_id)
                .order("priority")
                .execute()
            )
        except Exception as exc:  # noqa: BLE001
            # Preferences without tags are still usable (goals, counts)
            logger.error(
                "Error fetching preference tags: %s",
                exc,
                extra={
                    "invoking_func": "_fetch_preference_tags",
                    "invoking_purpose": "Load preferred tags",
                    "next_step": "Continue with empty preferred tags",
                    "resolution": "",
                },
            )
            return []
        tags: List[PreferenceTag] = []
        for index, row in enumerate(res.data or []):
            priority = row.get("priority")
            tags.append(PreferenceTag(tag_id=str(row["tag_id"]), priority=index if priority is None else int(priority)))
        return tags

    def _create_default_preferences(self) -> None:
        try:
            res = (
                self.client.table("user_preferences")
                .insert(
                    {
                        "user_id": self.user_id,
                        "meals_per_week": DEFAULT_MEALS_PER_WEEK,
                        "serves_per_meal": DEFAULT_SERVES_PER_MEAL,
                        "user_goals": [],
                    }
                )
                .execute()
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Error creating default preferences: %s",
                exc,
                extra={
                    "invoking_func": "_create_default_preferences",
                    "invoking_purpose": "Persist default preferences",
                    "next_step": "Use in-memory defaults",
                    "resolution": "Updates are skipped until a row exists",
                },
            )
            return
        if res.data:
            self.preferences = self._from_row(res.data[0], [])

    @staticmethod
    def _from_row(row: Dict[str, Any], tags: List[PreferenceTag]) -> UserPreferences:
        return UserPreferences(
            user_id=str(row["user_id"]),
            id=str(row.get("id") or ""),
            meals_per_week=int(row.get("meals_per_week") or DEFAULT_MEALS_PER_WEEK),
            serves_per_meal=int(row.get("serves_per_meal") or DEFAULT_SERVES_PER_MEAL),
            user_goals=list(row.get("user_goals") or []),
            preference_tags=tags,
            created_at=row.get("created_at") or "",
        )

    # -----------------------------------------------------
    # Updates
    # -----------------------------------------------------
    def _update_fields(self, fields: Dict[str, Any], purpose: str) -> bool:
        if not self.preferences or not self.preferences.id or not self.user_id:
            return False
        self.loading = True
        self.last_error = None
        try:
            self.client.table("user_preferences").update(fields).eq("id", self.preferences.id).execute()
        except Exception as exc:  # noqa: BLE001
            self.last_error = BackendError("user_preferences", str(exc), exc)
            logger.error(
                "Error updating preferences (%s): %s",
                purpose,
                exc,
                extra={"invoking_func": "_update_fields", "invoking_purpose": purpose},
            )
            raise self.last_error from exc
        finally:
            self.loading = False

        for key, value in fields.items():
            setattr(self.preferences, key, value)
        logger.info("Updated %s: %s", purpose, fields, extra={"invoking_func": "_update_fields"})
        return True

    def update_meals_per_week(self, meals: int) -> bool:
        return self._update_fields({"meals_per_week": int(meals)}, "meals per week")

    def update_serves_per_meal(self, serves: int) -> bool:
        return self._update_fields({"serves_per_meal": int(serves)}, "serves per meal")

    def update_goals(self, goals: List[str]) -> bool:
        return self._update_fields({"user_goals": list(goals)}, "user goals")

    def update_preference_tags(self, tag_ids: List[str]) -> bool:
        """Replace preferred tags; list order becomes priority (0 = highest)."""
        if not self.preferences or not self.preferences.id or not self.user_id:
            return False

        pref_id = self.preferences.id
        self.loading = True
        self.last_error = None
        try:
            # Delete existing preference tags, then insert the new ordering
            self.client.table("user_preference_tags").delete().eq("user_preference_id", pref_id).execute()
            if tag_ids:
                rows = [
                    {"user_preference_id": pref_id, "tag_id": tag_id, "priority": index}
                    for index, tag_id in enumerate(tag_ids)
                ]
                self.client.table("user_preference_tags").insert(rows).execute()
        except Exception as exc:  # noqa: BLE001
            self.last_error = BackendError("user_preference_tags", str(exc), exc)
            logger.error(
                "Error updating preference tags: %s",
                exc,
                extra={
                    "invoking_func": "update_preference_tags",
                    "invoking_purpose": "Replace preferred tags",
                    "next_step": "Call refresh() to resync local state",
                    "resolution": "",
                },
            )
            raise self.last_error from exc
        finally:
            self.loading = False

        self.preferences.preference_tags = [
            PreferenceTag(tag_id=tag_id, priority=index) for index, tag_id in enumerate(tag_ids)
        ]
        logger.info("Updated preference tags: %s", tag_ids, extra={"invoking_func": "update_preference_tags"})
        return True

    def update_all(
        self,
        meals_per_week: Optional[int] = None,
        serves_per_meal: Optional[int] = None,
        user_goals: Optional[List[str]] = None,
        preference_tag_ids: Optional[List[str]] = None,
    ) -> bool:
        """
        Bulk update from a settings screen. Only arguments that are not None
        are written: counts and goals in one row update, then the tag list.
        """
        if not self.preferences or not self.preferences.id or not self.user_id:
            return False

        fields: Dict[str, Any] = {}
        if meals_per_week is not None:
            fields["meals_per_week"] = int(meals_per_week)
        if serves_per_meal is not None:
            fields["serves_per_meal"] = int(serves_per_meal)
        if user_goals is not None:
            fields["user_goals"] = list(user_goals)

        if fields:
            self._update_fields(fields, "all preferences")
        if preference_tag_ids is not None:
            self.update_preference_tags(list(preference_tag_ids))
        return True

    # -----------------------------------------------------
    # Helpers
    # -----------------------------------------------------
    def has_preferences(self) -> bool:
        return bool(self.preferences and self.preferences.has_preferences())

    def has_goals(self) -> bool:
        return bool(self.preferences and self.preferences.has_goals())

    def has_preference_tags(self) -> bool:
        return bool(self.preferences and self.preferences.has_preference_tags())

    def get_preference_tag_ids(self) -> List[str]:
        return self.preferences.preferred_tag_ids if self.preferences else []
