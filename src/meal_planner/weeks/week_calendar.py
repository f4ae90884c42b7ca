"""
week_calendar.py

Week calendar collaborator. Loads `weeks` rows around today and derives:
  - week_offset   : signed number of weeks from the current week
  - display_title : "This week", "Next week", "In 3 weeks", "2 weeks ago", ...
  - status        : past | current | future

The planner itself only reads week ids and offsets.
"""
from __future__ import annotations

import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from supabase import Client

from src.meal_planner.errors import BackendError
from src.meal_planner.logging_utils import get_logger
from src.meal_planner.schema import Week

logger = get_logger("week_calendar")

WEEKS_BACK = 4
WEEKS_AHEAD = 8


def _as_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value)[:10])


def display_title_for(offset: int, is_current: bool) -> str:
    if is_current:
        return "This week"
    if offset == 1:
        return "Next week"
    if offset == -1:
        return "Last week"
    if offset > 1:
        return f"In {offset} weeks"
    if offset < -1:
        return f"{abs(offset)} weeks ago"
    return ""


def build_weeks(rows: Sequence[Dict[str, Any]], today: datetime.date) -> List[Week]:
    """Turn raw `weeks` rows into Week objects with computed fields."""
    current_row = next((r for r in rows if r.get("is_current_week")), None)
    current_start = _as_date(current_row["start_date"]) if current_row else None

    weeks: List[Week] = []
    for row in rows:
        start = _as_date(row["start_date"])
        end = _as_date(row["end_date"])
        is_current = bool(row.get("is_current_week"))

        offset = 0
        if current_start is not None:
            offset = round((start - current_start).days / 7)

        if is_current:
            status = "current"
        elif end < today:
            status = "past"
        else:
            status = "future"

        weeks.append(
            Week(
                id=str(row["id"]),
                start_date=start,
                end_date=end,
                is_current_week=is_current,
                week_offset=offset,
                display_title=row.get("display_title") or display_title_for(offset, is_current),
                status=status,
            )
        )
    return weeks


class WeekCalendar:
    def __init__(self, client: Client) -> None:
        self.client = client
        self.weeks: List[Week] = []
        self.current_week: Optional[Week] = None
        self.loading = False
        self.initialized = False
        self.last_error: Optional[BaseException] = None

    def refresh(self, today: Optional[datetime.date] = None) -> List[Week]:
        """Fetch weeks from WEEKS_BACK weeks ago to WEEKS_AHEAD weeks ahead."""
        today = today or datetime.date.today()
        window_start = today - datetime.timedelta(weeks=WEEKS_BACK)
        window_end = today + datetime.timedelta(weeks=WEEKS_AHEAD)

        self.loading = True
        self.last_error = None
        try:
            res = (
                self.client.table("weeks")
                .select("*")
                .gte("end_date", window_start.isoformat())
                .lte("start_date", window_end.isoformat())
                .order("start_date")
                .execute()
            )
        except Exception as exc:  # noqa: BLE001
            self.last_error = BackendError("weeks", str(exc), exc)
            logger.error(
                "Error fetching weeks: %s",
                exc,
                extra={
                    "invoking_func": "refresh",
                    "invoking_purpose": "Load week calendar",
                    "next_step": "Keep previous weeks",
                    "resolution": "Check weeks table",
                },
            )
            return self.weeks
        finally:
            self.loading = False

        self.weeks = build_weeks(res.data or [], today)
        self.current_week = next((w for w in self.weeks if w.is_current_week), None)
        self.initialized = True

        if self.current_week is None:
            logger.warning(
                "No current week found in data",
                extra={
                    "invoking_func": "refresh",
                    "invoking_purpose": "Load week calendar",
                    "next_step": "Offsets default to 0",
                    "resolution": "Mark one row in weeks with is_current_week = true",
                },
            )
        else:
            logger.info(
                "Weeks processed: total=%d current=%s",
                len(self.weeks),
                self.current_week.display_title,
                extra={"invoking_func": "refresh"},
            )
        return self.weeks

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_week_by_id(self, week_id: str) -> Optional[Week]:
        return next((w for w in self.weeks if w.id == week_id), None)

    def get_week_by_offset(self, offset: int) -> Optional[Week]:
        return next((w for w in self.weeks if w.week_offset == offset), None)

    def get_weeks_range(self, start_offset: int, end_offset: int) -> List[Week]:
        return [w for w in self.weeks if start_offset <= w.week_offset <= end_offset]

    def get_upcoming_weeks(self, count: int) -> List[Week]:
        return [w for w in self.weeks if w.status in ("current", "future")][:count]

    def get_past_weeks(self, count: int) -> List[Week]:
        past = sorted((w for w in self.weeks if w.status == "past"), key=lambda w: w.start_date, reverse=True)
        return past[:count]

    def next_week(self) -> Optional[Week]:
        if self.current_week is None:
            return None
        return self.get_week_by_offset(self.current_week.week_offset + 1)

    def previous_week(self) -> Optional[Week]:
        if self.current_week is None:
            return None
        return self.get_week_by_offset(self.current_week.week_offset - 1)

    def get_current_week_offset(self) -> int:
        return self.current_week.week_offset if self.current_week else 0

    def get_week_date_range(self, week_id: str) -> Optional[Tuple[datetime.date, datetime.date]]:
        week = self.get_week_by_id(week_id)
        if week is None:
            return None
        return week.start_date, week.end_date

    def is_current_week(self, week_id: str) -> bool:
        week = self.get_week_by_id(week_id)
        return bool(week and week.is_current_week)

    def is_past_week(self, week_id: str) -> bool:
        week = self.get_week_by_id(week_id)
        return bool(week and week.status == "past")

    def is_future_week(self, week_id: str) -> bool:
        week = self.get_week_by_id(week_id)
        return bool(week and week.status == "future")
