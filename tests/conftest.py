"""Shared pytest fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from reorder.schemas import AnalysisConfig, InventoryChangeEvent, Item, ReasonCode
from reorder.stores import InMemoryCatalog, InMemoryEventStore

AS_OF = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def at(year: int, month: int, day: int) -> datetime:
    """Noon UTC on the given date."""
    return datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def as_of() -> datetime:
    return AS_OF


@pytest.fixture
def make_event():
    """Build an event either `days_ago` relative to AS_OF or `when` at an explicit time."""

    def _make(
        delta: int,
        reason: ReasonCode = ReasonCode.SALE,
        days_ago: float | None = None,
        when: datetime | None = None,
        item_id: str = "1001",
        location_id: str = "1",
    ) -> InventoryChangeEvent:
        timestamp = when if when is not None else AS_OF - timedelta(days=days_ago or 0)
        return InventoryChangeEvent(
            item_id=item_id,
            quantity_delta=delta,
            reason=reason,
            timestamp=timestamp,
            location_id=location_id,
        )

    return _make


@pytest.fixture
def make_item():
    def _make(item_id: str = "1001", **fields) -> Item:
        defaults = {
            "system_sku": f"2100000{item_id}",
            "description": f"Test item {item_id}",
            "unit_cost": 10.0,
            "retail_price": 15.0,
            "quantity_on_hand": 0,
        }
        defaults.update(fields)
        return Item(item_id=item_id, **defaults)

    return _make


@pytest.fixture
def config() -> AnalysisConfig:
    return AnalysisConfig(
        location_id="1",
        order_cycle_months=1.0,
        lookback_months=12,
        stockout_warning_months=0.5,
        max_workers=1,
    )


@pytest.fixture
def stockout_events():
    """
    Fourteen months of history for item 1001, ending with 4 on hand:
    - 100 received 2024-04-15, 6 sold on the 20th of each month Apr 2024 .. Feb 2025
    - remaining 34 transferred out 2025-03-01 (stock hits 0)
    - 4 received 40 days later, nothing sold since
    """

    def _build(item_id: str = "1001") -> list[InventoryChangeEvent]:
        events = [
            InventoryChangeEvent(
                item_id=item_id,
                quantity_delta=100,
                reason=ReasonCode.RECEIVED,
                timestamp=at(2024, 4, 15),
                location_id="1",
            )
        ]
        year, month = 2024, 4
        for _ in range(11):
            events.append(
                InventoryChangeEvent(
                    item_id=item_id,
                    quantity_delta=-6,
                    reason=ReasonCode.SALE,
                    timestamp=at(year, month, 20),
                    location_id="1",
                )
            )
            month += 1
            if month > 12:
                month = 1
                year += 1
        events.append(
            InventoryChangeEvent(
                item_id=item_id,
                quantity_delta=-34,
                reason=ReasonCode.TRANSFER_OUT,
                timestamp=at(2025, 3, 1),
                location_id="1",
            )
        )
        events.append(
            InventoryChangeEvent(
                item_id=item_id,
                quantity_delta=4,
                reason=ReasonCode.RECEIVED,
                timestamp=at(2025, 3, 1) + timedelta(days=40),
                location_id="1",
            )
        )
        return events

    return _build


@pytest.fixture
def memory_stores():
    def _build(items, events):
        return InMemoryCatalog(items), InMemoryEventStore(events)

    return _build
