"""Shared utility functions for the Budget Cycle Engine."""

import calendar
import logging
from datetime import date, datetime
from pathlib import Path

import colorlog


def get_logger(name: str) -> logging.Logger:
    """Get a logger with a colorized format for the project.

    Dotted names ("budget-cycle.scheduler") propagate to their top-level logger, which owns the handlers.
    """
    logger = logging.getLogger(name)
    if "." in name:
        get_logger(name.split(".", 1)[0])
        return logger
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def ensure_dir(path: str | Path) -> None:
    """Ensure a directory exists (like mkdir -p)."""
    Path(path).mkdir(parents=True, exist_ok=True)


def safe_cast(val: object, to_type: type, default: object = None) -> object:
    """Safely cast a value to a type, returning default on failure."""
    try:
        return to_type(val)
    except (ValueError, TypeError, OverflowError):
        return default


def parse_amount(val: object) -> float:
    """Parse a money amount sent as a number or numeric string; anything else is 0."""
    if isinstance(val, bool) or val is None:
        return 0.0
    if isinstance(val, str):
        val = val.strip().replace(",", "")
    amount = safe_cast(val, float, 0.0)
    # amounts are always finite
    if amount != amount or amount in (float("inf"), float("-inf")):
        return 0.0
    return amount


def parse_int(val: object, default: int | None = None) -> int | None:
    """Parse an integer field (days, ids, 0/1 flags), returning default on failure."""
    if val is None or val == "":
        return default
    if isinstance(val, (int, float)):
        return safe_cast(val, int, default)
    text = str(val).strip()
    parsed = safe_cast(text, int, None)
    if parsed is None:
        parsed = safe_cast(safe_cast(text, float, None), int, default)
    return parsed


def parse_flag(val: object, default: bool = False) -> bool:
    """Parse a 0/1, bool or "true"/"false" flag."""
    if val is None or val == "":
        return default
    if isinstance(val, str):
        return val.strip().lower() in ("1", "true", "yes", "on")
    return bool(val)


def parse_iso_date(val: object) -> date | None:
    """Parse an ISO yyyy-MM-dd date (a longer ISO timestamp is truncated), returning None on failure."""
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    if not isinstance(val, str) or not val:
        return None
    try:
        return date.fromisoformat(val.strip()[:10])
    except ValueError:
        return None


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping day to the valid range for the given year/month."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, max(1, min(day, last)))


def add_months(d: date, n: int, day: int | None = None) -> date:
    """Add n months to date d, keeping `day` (default d.day) and clamping to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    return clamp_day(year, month, day if day is not None else d.day)
