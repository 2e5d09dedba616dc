import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Logging ---
LOG_FILENAME = os.getenv("LOG_FILENAME", "reorder.log")
LOG_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
LOG_BACKUP_COUNT = 3

# --- Filename Configuration ---
ITEM_IDS_FILENAME = os.getenv("ITEM_IDS_FILENAME", "item_ids.csv")
ITEMS_CSV = os.getenv("ITEMS_CSV", "lightspeed_items.csv")
EVENTS_CSV = os.getenv("EVENTS_CSV", "lightspeed_inventory_log.csv")
OUTPUT_FILENAME_BASE = os.getenv("OUTPUT_FILENAME_BASE", "order_recommendations")
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "true").lower() in ("1", "true", "yes")

# --- Hosted Store (Supabase / PostgREST) ---
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
ITEMS_TABLE = os.getenv("ITEMS_TABLE", "lightspeed_items")
EVENTS_TABLE = os.getenv("EVENTS_TABLE", "lightspeed_inventory_log")
EVENT_PAGE_SIZE = int(os.getenv("EVENT_PAGE_SIZE", "1000"))
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))

# --- Analysis Defaults ---
# Only the primary shop's stock and history are analyzed.
PRIMARY_LOCATION_ID = os.getenv("PRIMARY_LOCATION_ID", "1")
# How many months of demand one order should cover. A business rule, not an
# algorithm constant: shops ordering every two weeks would set 0.5.
ORDER_CYCLE_MONTHS = float(os.getenv("ORDER_CYCLE_MONTHS", "1.0"))
LOOKBACK_MONTHS = int(os.getenv("LOOKBACK_MONTHS", "12"))
STOCKOUT_WARNING_MONTHS = float(os.getenv("STOCKOUT_WARNING_MONTHS", "0.5"))
MAX_WORKERS = int(os.getenv("MAX_WORKERS", "4"))

# --- Estimation Constants ---
DAYS_PER_MONTH = 30.44
NO_SALES_SENTINEL = 999

# Recent window is months 0-3 back, middle 3-6; the older window runs from 6
# months back to the lookback. Only the older window grows with the lookback.
RECENT_WINDOW_MONTHS = 3
MIDDLE_WINDOW_END_MONTHS = 6
MIN_LOOKBACK_MONTHS = MIDDLE_WINDOW_END_MONTHS

# Weights applied to the recent / middle / older windows.
WINDOW_WEIGHTS = (3, 2, 1)

# The hot-seller test compares the recent window with months 6-12 back,
# whatever the lookback.
TREND_PRIOR_WINDOW_MONTHS = (6, 12)

# Items first seen less than a day ago get no seasonal or trend adjustment.
MIN_HISTORY_DAYS = 1

# Stale items (no sales inside the lookback) never get a rate based on
# fewer in-stock days than this.
STALE_MIN_EFFECTIVE_DAYS = 90
STALE_LOW_VOLUME_UNITS = 5
STALE_LOW_VOLUME_DAY_SHARE = 0.25

SEASONAL_MIN_MONTHS = 12
SEASONAL_MIN_UNITS = 6
SEASONAL_FULL_CONFIDENCE_YEARS = 3
SEASONAL_FACTOR_MIN = 0.3
SEASONAL_FACTOR_MAX = 3.0
SEASONAL_BUMP_THRESHOLD = 1.2
SEASONAL_DIP_THRESHOLD = 0.8

HOT_RATIO_THRESHOLD = 1.5
HOT_MIN_RECENT_UNITS = 3

URGENT_MONTHS_LEFT = 1
