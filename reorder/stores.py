"""
Catalog and inventory-log collaborators.

The engine only needs two read capabilities: look items up by id/SKU/UPC, and
read the complete, time-ordered inventory log for a set of item ids at one
location. Three backings are provided: in-memory (tests, embedding), CSV
exports of the synced tables, and the hosted Supabase tables over PostgREST.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Protocol

import pandas as pd
import requests
from pydantic import ValidationError

from . import settings
from .parsers import as_list, parse_event_rows, parse_item_rows
from .schemas import InventoryChangeEvent, Item
from .utils import load_csv, to_utc

logger = logging.getLogger(__name__)

# Keeps PostgREST `in.(...)` filters well under common URL length limits.
ID_BATCH_SIZE = 100

ITEM_COLUMNS = "item_id,system_sku,custom_sku,manufacturer_sku,upc,description,default_cost,retail_price,qoh"
EVENT_COLUMNS = "item_id,shop_id,qoh_change,reason,create_time"


class RetrievalError(RuntimeError):
    """The store could not return a complete answer. Callers must not use partial data."""


class CatalogStore(Protocol):
    def find_by_ids(self, values: list[str]) -> list[Item]: ...

    def find_by_skus(self, values: list[str]) -> list[Item]: ...

    def find_by_upcs(self, values: list[str]) -> list[Item]: ...


class EventStore(Protocol):
    def fetch_events(
        self, item_ids: list[str], location_id: str, since: datetime | None = None
    ) -> Iterable[InventoryChangeEvent]: ...


# --- In-memory ---


class InMemoryCatalog:
    def __init__(self, items: Iterable[Item]):
        self.items = sorted(items, key=lambda i: i.item_id)

    def find_by_ids(self, values: list[str]) -> list[Item]:
        wanted = set(values)
        return [i for i in self.items if i.item_id in wanted]

    def find_by_skus(self, values: list[str]) -> list[Item]:
        wanted = set(values)
        return [i for i in self.items if i.sku_ids & wanted]

    def find_by_upcs(self, values: list[str]) -> list[Item]:
        wanted = set(values)
        return [i for i in self.items if i.upc and i.upc in wanted]


class InMemoryEventStore:
    def __init__(self, events: Iterable[InventoryChangeEvent]):
        self.events = list(events)

    def fetch_events(
        self, item_ids: list[str], location_id: str, since: datetime | None = None
    ) -> list[InventoryChangeEvent]:
        wanted = set(item_ids)
        since = to_utc(since) if since else None
        return [
            e
            for e in self.events
            if e.item_id in wanted
            and e.location_id == location_id
            and (since is None or e.timestamp >= since)
        ]


# --- CSV exports ---


def _read_table(path: Path) -> pd.DataFrame:
    df = load_csv(path, dtype=str)
    if df is None:
        raise RetrievalError(f"Could not read {path}")
    return df.fillna("")


class CsvCatalog(InMemoryCatalog):
    """Catalog backed by a CSV export of the items table."""

    def __init__(self, path: Path):
        try:
            items = parse_item_rows(_read_table(path).to_dict("records"))
        except (ValidationError, ValueError) as e:
            raise RetrievalError(f"Malformed item row in {path.name}: {e}") from e
        super().__init__(items)
        logger.info(f"✅ Loaded {len(self.items)} catalog items from {path.name}.")


class CsvEventStore:
    """Inventory log backed by a CSV export of the inventory-log table."""

    def __init__(self, path: Path):
        self.path = path
        self.df = _read_table(path)

    def fetch_events(
        self, item_ids: list[str], location_id: str, since: datetime | None = None
    ) -> list[InventoryChangeEvent]:
        df = self.df
        df = df[df["item_id"].isin(item_ids) & (df["shop_id"] == location_id)].copy()
        try:
            df["_ts"] = pd.to_datetime(df["create_time"], utc=True, format="ISO8601")
        except (ValueError, TypeError) as e:
            raise RetrievalError(f"Unparseable create_time in {self.path.name}: {e}") from e
        if since is not None:
            df = df[df["_ts"] >= pd.Timestamp(to_utc(since))]
        # mergesort is stable: same-timestamp rows keep their export order
        df = df.sort_values("_ts", kind="mergesort").drop(columns="_ts")
        try:
            return parse_event_rows(df.to_dict("records"))
        except (ValidationError, ValueError) as e:
            raise RetrievalError(f"Malformed inventory-log row in {self.path.name}: {e}") from e


# --- Supabase (PostgREST) ---


def _in_filter(values: list[str]) -> str:
    quoted = ",".join('"' + v.replace("\\", "\\\\").replace('"', '\\"') + '"' for v in values)
    return f"in.({quoted})"


def _batches(values: list[str], size: int = ID_BATCH_SIZE) -> Iterable[list[str]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


class SupabaseClient:
    """
    Thin PostgREST reader. The session and key are passed in; nothing here
    holds module-level credentials or token state.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: requests.Session | None = None,
        timeout: int = settings.REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }

    def select(self, table: str, params: dict) -> list[dict]:
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = self.session.get(url, params=params, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            return as_list(response.json())
        except requests.exceptions.RequestException as e:
            raise RetrievalError(f"Query on '{table}' failed: {e}") from e
        except ValueError as e:
            raise RetrievalError(f"Query on '{table}' returned invalid JSON: {e}") from e


class SupabaseCatalog:
    def __init__(self, client: SupabaseClient, table: str = settings.ITEMS_TABLE):
        self.client = client
        self.table = table

    def _find(self, values: list[str], filter_for) -> list[Item]:
        rows = []
        for batch in _batches(values):
            params = {"select": ITEM_COLUMNS, "order": "item_id.asc"}
            params.update(filter_for(batch))
            rows.extend(self.client.select(self.table, params))
        try:
            return parse_item_rows(rows)
        except (ValidationError, ValueError) as e:
            raise RetrievalError(f"Malformed item row from '{self.table}': {e}") from e

    def find_by_ids(self, values: list[str]) -> list[Item]:
        return self._find(values, lambda batch: {"item_id": _in_filter(batch)})

    def find_by_skus(self, values: list[str]) -> list[Item]:
        def sku_filter(batch):
            in_values = _in_filter(batch)
            return {
                "or": f"(system_sku.{in_values},custom_sku.{in_values},manufacturer_sku.{in_values})"
            }

        return self._find(values, sku_filter)

    def find_by_upcs(self, values: list[str]) -> list[Item]:
        return self._find(values, lambda batch: {"upc": _in_filter(batch)})


class SupabaseEventStore:
    """
    Reads the synced inventory log. PostgREST caps each response, so every
    id batch is paged with limit/offset until a short page comes back.
    """

    def __init__(
        self,
        client: SupabaseClient,
        table: str = settings.EVENTS_TABLE,
        page_size: int = settings.EVENT_PAGE_SIZE,
    ):
        self.client = client
        self.table = table
        self.page_size = page_size

    def fetch_events(
        self, item_ids: list[str], location_id: str, since: datetime | None = None
    ) -> list[InventoryChangeEvent]:
        rows = []
        for batch in _batches(item_ids):
            params = {
                "select": EVENT_COLUMNS,
                "item_id": _in_filter(batch),
                "shop_id": f"eq.{location_id}",
                # the log id breaks timestamp ties so pages never overlap
                "order": "create_time.asc,inventory_log_id.asc",
                "limit": self.page_size,
            }
            if since is not None:
                params["create_time"] = f"gte.{to_utc(since).isoformat()}"

            offset = 0
            while True:
                page = self.client.select(self.table, {**params, "offset": offset})
                rows.extend(page)
                if len(page) < self.page_size:
                    break
                offset += self.page_size

        logger.debug(f"Read {len(rows)} inventory-log rows from '{self.table}'.")
        try:
            return parse_event_rows(rows)
        except (ValidationError, ValueError) as e:
            raise RetrievalError(f"Malformed inventory-log row from '{self.table}': {e}") from e
