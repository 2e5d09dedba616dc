import logging
import math
from datetime import datetime, timezone
from pathlib import Path
import pandas as pd

from . import settings

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24


def get_date_suffix_for_filename(as_of: datetime | None = None) -> str:
    """Returns the run date as a YYYY-MM-DD string for filenames."""
    return (as_of or datetime.now()).strftime("%Y-%m-%d")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """
    Normalizes a timestamp to an aware UTC datetime.
    Naive timestamps are assumed to already be UTC (that is how the store writes them).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_between(start: datetime, end: datetime) -> float:
    """Elapsed fractional days from start to end."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def days_to_months(days: float) -> float:
    return days / settings.DAYS_PER_MONTH


def months_before(as_of: datetime, months: int) -> datetime:
    """
    Calendar-month subtraction (Mar 31 minus 1 month is Feb 28/29),
    as opposed to a fixed 30.44-day step.
    """
    return (pd.Timestamp(as_of) - pd.DateOffset(months=months)).to_pydatetime()


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Rounds halves upward (2.25 -> 2.3), unlike the
    built-in round() which rounds halves to even.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def load_csv(file_path: Path, skiprows: int = 0, dtype=None) -> pd.DataFrame | None:
    """
    A more robust CSV loader with a multi-stage encoding fallback.
    It will attempt to read a file in the following order:
    1. UTF-8 with BOM support ('utf-8-sig').
    2. Latin-1 - A permissive fallback that never fails but might misinterpret characters.
    Returns None when the file is missing or unreadable; callers decide whether that is fatal.
    """
    try:
        return pd.read_csv(file_path, encoding="utf-8-sig", skiprows=skiprows, dtype=dtype)

    except UnicodeDecodeError:
        logger.info(
            f"UTF-8 decoding failed for {file_path.name}. Retrying with 'latin-1'."
        )
        try:
            return pd.read_csv(file_path, encoding="latin-1", skiprows=skiprows, dtype=dtype)
        except (OSError, ValueError) as e_latin1:
            logger.error(
                f"Could not read {file_path.name} even with latin-1. Reason: {e_latin1}"
            )
            return None

    except FileNotFoundError:
        logger.warning(f"File not found at {file_path}, skipping.")
        return None

    except (OSError, ValueError) as e_general:
        # pandas raises EmptyDataError / ParserError, both ValueError subclasses
        logger.error(
            f"An unexpected error occurred while reading {file_path.name}. Reason: {e_general}"
        )
        return None
