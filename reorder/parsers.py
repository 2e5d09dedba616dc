import logging
import math
from pathlib import Path
from typing import Any, Iterable

from . import settings
from .schemas import InventoryChangeEvent, Item
from .utils import load_csv

logger = logging.getLogger(__name__)

# First-column values that mark a header row rather than an identifier.
ID_HEADER_NAMES = {"id", "item id", "itemid", "item_id", "sku", "upc", "system id", "system sku"}


def as_list(value: Any) -> list:
    """
    The point-of-sale API returns a bare object when a relation has one entry
    and an array when it has several. Always hand a list to the rest of the code.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _clean_str(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def _to_float(value: Any) -> float:
    text = _clean_str(value)
    try:
        number = float(text) if text else 0.0
    except ValueError:
        number = math.nan
    if not math.isfinite(number):
        raise ValueError(f"not a number: {text!r}")
    return number


def _to_int(value: Any) -> int:
    # Stores hand back quantities as "3", "3.0" or 3.0 depending on the source.
    return int(_to_float(value))


def parse_item_id_file(file_path: Path) -> list[str] | None:
    """
    Reads the identifiers to analyze from the first column of a CSV export.
    - Strips quotes and whitespace.
    - Skips a header row and blank lines.
    - Removes duplicates, keeping the first occurrence.
    """
    df = load_csv(file_path, dtype=str) if file_path.exists() else None
    if df is None:
        return None

    # load_csv consumed the first row as a header; it may be a real id.
    first_column = [df.columns[0]] + df.iloc[:, 0].tolist() if len(df.columns) else []

    tokens = []
    seen = set()
    duplicate_count = 0
    for raw in first_column:
        token = _clean_str(raw).replace('"', "")
        if not token or token.lower() in ID_HEADER_NAMES or token.startswith("Unnamed:"):
            continue
        if token in seen:
            duplicate_count += 1
            continue
        seen.add(token)
        tokens.append(token)

    if duplicate_count:
        logger.info(f"Note: {duplicate_count} duplicate identifier(s) were removed.")
    logger.info(f"✅ Parsed {len(tokens)} identifiers from {file_path.name}.")
    return tokens


def parse_lightspeed_item(raw: dict, location_id: str = settings.PRIMARY_LOCATION_ID) -> Item:
    """
    Normalizes a point-of-sale `Item` payload (with its ItemShops and Prices
    relations loaded) into our Item model. Quantity-on-hand is the primary
    shop's; an item with no row for that shop has zero on hand.
    """
    current_qty = 0
    shops = as_list((raw.get("ItemShops") or {}).get("ItemShop"))
    main_shop = next((s for s in shops if _clean_str(s.get("shopID")) == location_id), None)
    if main_shop:
        current_qty = _to_int(main_shop.get("qoh"))

    retail_price = 0.0
    prices = as_list((raw.get("Prices") or {}).get("ItemPrice"))
    default_price = next((p for p in prices if p.get("useType") == "Default"), None)
    if default_price:
        retail_price = _to_float(default_price.get("amount"))

    return Item(
        item_id=_clean_str(raw.get("itemID")),
        system_sku=_clean_str(raw.get("systemSku")),
        custom_sku=_clean_str(raw.get("customSku")),
        manufacturer_sku=_clean_str(raw.get("manufacturerSku")),
        upc=_clean_str(raw.get("upc")),
        description=_clean_str(raw.get("description")),
        unit_cost=_to_float(raw.get("defaultCost")),
        retail_price=retail_price,
        quantity_on_hand=current_qty,
    )


def parse_item_rows(records: Iterable[dict]) -> list[Item]:
    """Loads catalog rows as stored by the item sync (snake_case columns)."""
    return [
        Item(
            item_id=_clean_str(row.get("item_id")),
            system_sku=_clean_str(row.get("system_sku")),
            custom_sku=_clean_str(row.get("custom_sku")),
            manufacturer_sku=_clean_str(row.get("manufacturer_sku")),
            upc=_clean_str(row.get("upc")),
            description=_clean_str(row.get("description")),
            unit_cost=_to_float(row.get("default_cost")),
            retail_price=_to_float(row.get("retail_price")),
            quantity_on_hand=_to_int(row.get("qoh")),
        )
        for row in as_list(records)
    ]


def parse_event_rows(records: Iterable[dict]) -> list[InventoryChangeEvent]:
    """
    Loads inventory-log rows as stored by the log sync. Rows for item "0"
    (non-inventory lines such as discounts) are dropped.
    """
    events = []
    for row in as_list(records):
        item_id = _clean_str(row.get("item_id"))
        if not item_id or item_id == "0":
            continue
        events.append(
            InventoryChangeEvent(
                item_id=item_id,
                quantity_delta=_to_int(row.get("qoh_change")),
                reason=_clean_str(row.get("reason")),
                timestamp=row.get("create_time"),
                location_id=_clean_str(row.get("shop_id")) or "0",
            )
        )
    return events
