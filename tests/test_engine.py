"""End-to-end tests for the analysis engine."""

from __future__ import annotations

import pytest
from conftest import at
from pydantic import ValidationError

from reorder.engine import analyze_item_history, analyze_items
from reorder.schemas import AnalysisConfig, ReasonCode
from reorder.stores import InMemoryCatalog, RetrievalError


def _shelf(make_item, make_event, stockout_events):
    """A stock-out item, a fast mover, a never-sold item and a sparse newcomer."""
    items = [
        make_item("1001", quantity_on_hand=4, unit_cost=20.0),
        make_item("1002", quantity_on_hand=1, unit_cost=12.5),
        make_item("1003", quantity_on_hand=6),
        make_item("1004", quantity_on_hand=0, unit_cost=7.0),
    ]
    events = stockout_events("1001")
    events.append(make_event(26, ReasonCode.RECEIVED, when=at(2024, 5, 1), item_id="1002"))
    for month in (1, 2, 3, 4, 5):
        events.append(make_event(-5, when=at(2025, month, 10), item_id="1002"))
    events.append(make_event(6, ReasonCode.RECEIVED, when=at(2024, 8, 1), item_id="1003"))
    events.append(make_event(-5, days_ago=2 * 30.44, item_id="1004"))
    events.append(make_event(-5, days_ago=10, item_id="1004"))
    return items, events


def test_stockout_months_are_excluded_from_demand(make_item, stockout_events, memory_stores, config, as_of):
    catalog, store = memory_stores([make_item("1001", quantity_on_hand=4)], stockout_events())

    result = analyze_items(["1001"], catalog, store, config, as_of=as_of)
    (rec,) = result.recommendations

    assert rec.out_of_stock_months == 1.3
    assert rec.avg_monthly_sales == pytest.approx(3.4, abs=0.1)
    assert rec.months_of_stock_left == pytest.approx(1.2, abs=0.1)
    assert rec.months_of_stock_left != 999
    assert rec.recommended_order_qty == 0
    assert rec.notes == []


def test_full_batch(make_item, make_event, stockout_events, memory_stores, config, as_of):
    items, events = _shelf(make_item, make_event, stockout_events)
    catalog, store = memory_stores(items, events)

    result = analyze_items(["1001", "1002", "1003", "1004", "nope"], catalog, store, config, as_of=as_of)
    by_id = {r.item_id: r for r in result.recommendations}

    assert result.unmatched == ["nope"]
    assert result.as_of == as_of

    # never sold: sentinel, nothing to order
    assert by_id["1003"].avg_monthly_sales == 0
    assert by_id["1003"].months_of_stock_left == 999
    assert by_id["1003"].notes == []

    # two months, ten units: plain average
    assert by_id["1004"].avg_monthly_sales == 5.0
    assert by_id["1004"].recommended_order_qty == 5
    assert by_id["1004"].estimated_order_cost == 35.0

    # most urgent first
    assert [r.item_id for r in result.recommendations][:2] == ["1004", "1002"]
    assert result.recommendations[-1].item_id == "1003"

    assert result.summary.total_items == 4
    assert result.summary.items_needing_reorder == sum(
        1 for r in result.recommendations if r.recommended_order_qty > 0
    )
    assert result.summary.total_estimated_cost == pytest.approx(
        sum(r.estimated_order_cost for r in result.recommendations)
    )


def test_same_batch_twice_is_identical(make_item, make_event, stockout_events, memory_stores, as_of):
    items, events = _shelf(make_item, make_event, stockout_events)
    catalog, store = memory_stores(items, events)
    tokens = ["1004", "1001", "1003", "1002"]

    serial = analyze_items(tokens, catalog, store, AnalysisConfig(max_workers=1), as_of=as_of)
    again = analyze_items(tokens, catalog, store, AnalysisConfig(max_workers=1), as_of=as_of)
    threaded = analyze_items(tokens, catalog, store, AnalysisConfig(max_workers=4), as_of=as_of)

    assert serial.model_dump() == again.model_dump()
    assert serial.model_dump() == threaded.model_dump()


def test_check_digit_token_gives_same_answer(make_item, stockout_events, memory_stores, config, as_of):
    catalog, store = memory_stores([make_item("1001", quantity_on_hand=4)], stockout_events())

    by_id = analyze_items(["1001"], catalog, store, config, as_of=as_of)
    # system SKU 21000001001 plus a printed check digit
    by_label = analyze_items(["210000010017"], catalog, store, config, as_of=as_of)

    assert by_label.unmatched == []
    assert by_label.recommendations == by_id.recommendations


def test_item_without_events(make_item, memory_stores, config, as_of):
    catalog, store = memory_stores([make_item("1001", quantity_on_hand=0)], [])

    (rec,) = analyze_items(["1001"], catalog, store, config, as_of=as_of).recommendations

    assert rec.avg_monthly_sales == 0
    assert rec.months_of_stock_left == 0
    assert rec.recommended_order_qty == 0


class BrokenEventStore:
    def fetch_events(self, item_ids, location_id, since=None):
        raise RetrievalError("timeout")


def test_retrieval_failure_aborts_batch(make_item, config, as_of):
    catalog = InMemoryCatalog([make_item("1001")])

    with pytest.raises(RetrievalError):
        analyze_items(["1001"], catalog, BrokenEventStore(), config, as_of=as_of)


def test_item_history_for_no_sales_skips_adjustments(make_event, as_of):
    analysis = analyze_item_history([make_event(5, ReasonCode.RECEIVED, days_ago=400)], 5, as_of)

    assert analysis.demand.method == "none"
    assert analysis.seasonal_factor == 1.0
    assert not analysis.trend.is_hot


def test_item_first_seen_hours_ago_gets_no_adjustments(make_event, as_of):
    events = [
        make_event(10, ReasonCode.RECEIVED, days_ago=0.3),
        make_event(-3, days_ago=0.2),
        make_event(-2, days_ago=0.1),
    ]
    analysis = analyze_item_history(events, 5, as_of)

    assert analysis.history.total_days < 1
    assert analysis.demand.rate == pytest.approx(5.0)
    assert analysis.seasonal_factor == 1.0
    assert not analysis.trend.is_hot
    assert analysis.trend.ratio == 1.0


@pytest.mark.parametrize("lookback", [6, 12, 18, 24])
def test_any_lookback_from_six_months_is_accepted(lookback):
    assert AnalysisConfig(lookback_months=lookback).lookback_months == lookback


def test_lookback_shorter_than_fixed_windows_is_rejected():
    with pytest.raises(ValidationError):
        AnalysisConfig(lookback_months=5)
