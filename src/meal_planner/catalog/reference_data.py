"""
reference_data.py

Tag taxonomy and reference lookup collaborators. Tag `type` values
(cuisine, protein, budget, macro, time, meal_type, ...) double as the
vocabulary for user goals.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from supabase import Client

from src.meal_planner.errors import BackendError
from src.meal_planner.logging_utils import get_logger
from src.meal_planner.schema import Tag

logger = get_logger("reference_data")


class TagTaxonomy:
    def __init__(self, client: Client) -> None:
        self.client = client
        self.tags: List[Tag] = []
        self._by_id: Dict[str, Tag] = {}
        self.initialized = False
        self.last_error: Optional[BaseException] = None

    def refresh(self) -> List[Tag]:
        try:
            res = self.client.table("tags").select("*").order("name").execute()
        except Exception as exc:  # noqa: BLE001
            self.last_error = BackendError("tags", str(exc), exc)
            logger.error(
                "Error fetching tags: %s",
                exc,
                extra={
                    "invoking_func": "refresh",
                    "invoking_purpose": "Load tag taxonomy",
                    "next_step": "Goal alignment will score 0 until tags load",
                    "resolution": "Check the tags table and credentials",
                },
            )
            return self.tags

        self.set_tags(Tag.from_row(row) for row in res.data or [])
        self.initialized = True
        self.last_error = None
        logger.info("Tags loaded: %d", len(self.tags), extra={"invoking_func": "refresh"})
        return self.tags

    def set_tags(self, tags) -> None:
        self.tags = list(tags)
        self._by_id = {t.id: t for t in self.tags}

    def get_tag_by_id(self, tag_id: str) -> Optional[Tag]:
        return self._by_id.get(tag_id)

    def get_tags_by_type(self, tag_type: str) -> List[Tag]:
        return [t for t in self.tags if t.type == tag_type]


class ReferenceData(TagTaxonomy):
    """
    Tag taxonomy plus the other name-ordered lookup tables (ingredients,
    equipment, units). Rows are kept as plain dicts; only tags feed scoring.
    """

    LOOKUP_TABLES = ("ingredients", "equipment", "units")

    def __init__(self, client: Client) -> None:
        super().__init__(client)
        self.lookups: Dict[str, List[Dict[str, Any]]] = {name: [] for name in self.LOOKUP_TABLES}
        self.lookup_errors: Dict[str, BackendError] = {}

    def refresh_table(self, table: str) -> List[Dict[str, Any]]:
        if table not in self.lookups:
            raise ValueError(f"Unknown reference table {table!r}")
        try:
            res = self.client.table(table).select("*").order("name").execute()
        except Exception as exc:  # noqa: BLE001
            self.lookup_errors[table] = BackendError(table, str(exc), exc)
            logger.error(
                "Error fetching %s: %s",
                table,
                exc,
                extra={
                    "invoking_func": "refresh_table",
                    "invoking_purpose": "Load reference lookup table",
                    "next_step": f"Keep previously loaded {table}",
                    "resolution": f"Check the {table} table and credentials",
                },
            )
            return self.lookups[table]

        self.lookups[table] = list(res.data or [])
        self.lookup_errors.pop(table, None)
        logger.info("%s loaded: %d", table.capitalize(), len(self.lookups[table]), extra={"invoking_func": "refresh_table"})
        return self.lookups[table]

    def refresh_all(self) -> None:
        """Refresh tags and every lookup table; one failing table does not stop the rest."""
        self.refresh()
        for table in self.LOOKUP_TABLES:
            self.refresh_table(table)
        self.initialized = True

    @property
    def ingredients(self) -> List[Dict[str, Any]]:
        return self.lookups["ingredients"]

    @property
    def equipment(self) -> List[Dict[str, Any]]:
        return self.lookups["equipment"]

    @property
    def units(self) -> List[Dict[str, Any]]:
        return self.lookups["units"]

    def _find(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        return next((row for row in self.lookups[table] if str(row.get("id")) == str(row_id)), None)

    def get_ingredient_by_id(self, ingredient_id: str) -> Optional[Dict[str, Any]]:
        return self._find("ingredients", ingredient_id)

    def get_equipment_by_id(self, equipment_id: str) -> Optional[Dict[str, Any]]:
        return self._find("equipment", equipment_id)

    def get_unit_by_id(self, unit_id: str) -> Optional[Dict[str, Any]]:
        return self._find("units", unit_id)
