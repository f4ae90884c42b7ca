# logging_utils.py
"""
Shared structured logging utilities for the Meal Planner engine.

Goal:
- One place to define:
  * Run / execution ID
  * Log line format
  * Module "purposes" in human language

Format (one line per log entry):
<RunId>|<Date>|<Time>|<Level>|<File:Line>|<Module.Func>|<ModulePurpose>|
<InvokingFunc>|<InvokingFuncPurpose>|<Detail>|<NextStep>|<Resolution>|<END>

Usage:
    logger = get_logger("assembler")
    logger.info(
        "Generated %d meals",
        n,
        extra={
            "invoking_func": "generate",
            "invoking_purpose": "Build working plan from recommendations",
            "next_step": "Return plan to caller",
            "resolution": "",
        },
    )
"""

from __future__ import annotations

import datetime
import logging
import os
import uuid
from typing import Dict, Optional

RUN_ID: str = uuid.uuid4().hex[:8]

# Record attributes callers pass through `extra=`
CONTEXT_FIELDS = ("invoking_func", "invoking_purpose", "next_step", "resolution")

# Chatty transport loggers pulled in by supabase-py
QUIET_LOGGERS = ("httpx", "httpcore", "hpack")


class StructuredFormatter(logging.Formatter):
    """One '|' separated line per record, laid out as in the module docstring."""

    MODULE_PURPOSES: Dict[str, str] = {
        "config": "Create Supabase client and scoring config from environment variables",
        "scoring": "Score a recipe against user preferences with an explainable breakdown",
        "recommender": "Rank, tie-break and truncate scored recipes for a meal plan",
        "assembler": "Hold and edit the in-memory working meal plan",
        "week_store": "Persist and load week-scoped meal plans with status",
        "backend": "Call meal plan RPCs in Supabase",
        "recipes": "Load the recipe catalog with tag ids from Supabase",
        "reference_data": "Load tags, ingredients, equipment and units from Supabase",
        "store": "Load and update user meal preferences in Supabase",
        "week_calendar": "Load weeks and derive offsets, titles and status",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        stamp = datetime.datetime.fromtimestamp(record.created)

        detail = record.getMessage()
        if record.exc_info:
            detail = f"{detail} | EXC={record.exc_info[1]!r}"

        ctx = {name: str(getattr(record, name, "") or "") for name in CONTEXT_FIELDS}
        parts = [
            getattr(record, "run_id", RUN_ID),
            stamp.strftime("%Y-%m-%d"),
            stamp.strftime("%H:%M:%S"),
            record.levelname,
            f"{record.filename}:{record.lineno}",
            f"{record.module}.{record.funcName}",
            self.MODULE_PURPOSES.get(record.module, ""),
            ctx["invoking_func"],
            ctx["invoking_purpose"],
            detail,
            ctx["next_step"],
            ctx["resolution"],
            "<END>",
        ]
        return "|".join(parts)


def resolve_level(level: Optional[int] = None) -> int:
    """Explicit level, else MEAL_PLANNER_LOG_LEVEL (name or number), else INFO."""
    if level is not None:
        return level
    raw = os.environ.get("MEAL_PLANNER_LOG_LEVEL", "").strip()
    if raw.isdigit():
        return int(raw)
    named = logging.getLevelName(raw.upper()) if raw else logging.INFO
    return named if isinstance(named, int) else logging.INFO


def init_logging(level: Optional[int] = None) -> None:
    """Attach the structured handler to the root logger, once per process."""
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.setLevel(resolve_level(level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    init_logging()
    return logging.getLogger(name)
