"""Tests for the recency-weighted demand estimator."""

from __future__ import annotations

import pytest
from conftest import at

from reorder.demand import estimate_demand, split_sales, window_widths
from reorder.reconstruction import reconstruct_stock
from reorder.schemas import ReasonCode


def test_window_widths():
    assert window_widths(12) == (3, 3, 6)
    assert window_widths(24) == (3, 3, 18)
    assert window_widths(18) == (3, 3, 12)


def test_no_sales_is_zero(make_event, as_of):
    history = reconstruct_stock([make_event(5, ReasonCode.RECEIVED, days_ago=200)], 5, as_of)
    demand = estimate_demand(history, as_of)

    assert demand.rate == 0
    assert demand.method == "none"


def test_sparse_history_uses_plain_average(make_event, as_of):
    """Two months of history and 10 units sold is 5/month, not a 12-month weighted figure."""
    events = [
        make_event(-5, days_ago=2 * 30.44),
        make_event(-5, days_ago=10),
    ]
    history = reconstruct_stock(events, current_qty=0, as_of=as_of)
    demand = estimate_demand(history, as_of)

    assert demand.method == "sparse"
    assert demand.rate == pytest.approx(5.0)


def test_sparse_history_floors_span_at_one_month(make_event, as_of):
    history = reconstruct_stock([make_event(-4, days_ago=3)], current_qty=0, as_of=as_of)
    demand = estimate_demand(history, as_of)

    assert demand.rate == pytest.approx(4.0)


def test_split_sales_uses_calendar_months(make_event, as_of):
    events = [
        make_event(-1, when=at(2025, 3, 15)),  # exactly 3 months back: recent
        make_event(-2, when=at(2025, 3, 14)),  # middle
        make_event(-3, when=at(2024, 12, 15)),  # exactly 6 months back: middle
        make_event(-4, when=at(2024, 6, 15)),  # exactly 12 months back: older
        make_event(-5, when=at(2024, 6, 14)),  # outside the lookback
    ]
    history = reconstruct_stock(events, current_qty=0, as_of=as_of)

    assert split_sales(history.sales, as_of, 12) == (1, 5, 4)


def test_weighted_full_history(make_event, as_of):
    events = [
        make_event(40, ReasonCode.RECEIVED, when=at(2024, 4, 1)),
        make_event(-6, when=at(2024, 9, 1)),  # older
        make_event(-6, when=at(2025, 1, 10)),  # middle
        make_event(-9, when=at(2025, 5, 1)),  # recent
    ]
    history = reconstruct_stock(events, current_qty=19, as_of=as_of)
    demand = estimate_demand(history, as_of)

    assert history.total_months > 12
    assert demand.method == "weighted"
    assert (demand.recent_sales, demand.middle_sales, demand.older_sales) == (9, 6, 6)
    # (9*3 + 6*2 + 6*1) / (3*3 + 3*2 + 6*1)
    assert demand.rate == pytest.approx(45 / 21)


def test_weighted_windows_capped_by_short_history(make_event, as_of):
    events = [
        make_event(20, ReasonCode.RECEIVED, when=at(2025, 1, 15)),
        make_event(-2, when=at(2025, 2, 1)),  # middle
        make_event(-6, when=at(2025, 5, 1)),  # recent
    ]
    history = reconstruct_stock(events, current_qty=12, as_of=as_of)
    demand = estimate_demand(history, as_of)

    months = history.total_months
    assert 3 < months < 6
    expected = (6 * 3 + 2 * 2) / (3 * 3 + (months - 3) * 2)
    assert demand.method == "weighted"
    assert demand.rate == pytest.approx(expected)


def test_stale_item_uses_lifetime_rate(make_event, as_of):
    """Nothing sold inside the lookback: lifetime units over the in-stock span."""
    events = [
        make_event(10, ReasonCode.RECEIVED, days_ago=730),
        make_event(-2, days_ago=600),
    ]
    history = reconstruct_stock(events, current_qty=8, as_of=as_of)
    demand = estimate_demand(history, as_of)

    assert demand.method == "stale"
    assert demand.rate == pytest.approx(2 / (730 / 30.44))


def test_stale_low_volume_floor(make_event, as_of):
    """A sold-out stale item with 5 units or fewer is spread over at least a quarter of its history."""
    events = [
        make_event(2, ReasonCode.RECEIVED, days_ago=700),
        make_event(-2, days_ago=600),
    ]
    history = reconstruct_stock(events, current_qty=0, as_of=as_of)
    demand = estimate_demand(history, as_of)

    # in-stock 100 days, floor max(100, 90) then max(100, 0.25 * 700)
    assert history.out_of_stock_days == pytest.approx(600)
    assert demand.rate == pytest.approx(2 / (175 / 30.44))


def test_stale_minimum_effective_days(make_event, as_of):
    """Larger stale sellers still never divide by fewer than 90 days."""
    events = [
        make_event(30, ReasonCode.RECEIVED, days_ago=400),
        make_event(-30, days_ago=380),
    ]
    history = reconstruct_stock(events, current_qty=0, as_of=as_of)
    demand = estimate_demand(history, as_of)

    # in-stock 20 days, effective max(20, min(400, 90)) = 90
    assert demand.method == "stale"
    assert demand.rate == pytest.approx(30 / (90 / 30.44))


def test_longer_lookback_widens_windows(make_event, as_of):
    events = [
        make_event(20, ReasonCode.RECEIVED, when=at(2023, 1, 1)),
        make_event(-4, when=at(2024, 1, 10)),
    ]
    history = reconstruct_stock(events, current_qty=16, as_of=as_of)

    assert estimate_demand(history, as_of, lookback_months=12).method == "stale"
    widened = estimate_demand(history, as_of, lookback_months=24)
    assert widened.method == "weighted"
    assert widened.older_sales == 4


def test_lookback_does_not_move_the_sparse_guard(make_event, as_of):
    """Four months of history is weighted whatever the lookback; only under 3 months is sparse."""
    events = [
        make_event(10, ReasonCode.RECEIVED, when=at(2025, 2, 15)),
        make_event(-2, when=at(2025, 3, 1)),
        make_event(-3, when=at(2025, 5, 20)),
    ]
    history = reconstruct_stock(events, current_qty=5, as_of=as_of)

    short = estimate_demand(history, as_of, lookback_months=12)
    long = estimate_demand(history, as_of, lookback_months=24)

    assert 3 < history.total_months < 6
    assert short.method == long.method == "weighted"
    assert long.rate == pytest.approx(short.rate)
    assert (long.recent_sales, long.middle_sales) == (3, 2)


def test_trend_baseline_is_six_to_twelve_months_back(make_event, as_of):
    events = [
        make_event(40, ReasonCode.RECEIVED, when=at(2023, 1, 1)),
        make_event(-7, when=at(2023, 9, 1)),  # 21 months back: only inside a 24-month lookback
        make_event(-4, when=at(2024, 9, 1)),  # 9 months back
    ]
    history = reconstruct_stock(events, current_qty=29, as_of=as_of)

    for lookback in (12, 18, 24):
        demand = estimate_demand(history, as_of, lookback_months=lookback)
        assert demand.trend_prior_sales == 4

    assert estimate_demand(history, as_of, lookback_months=24).older_sales == 11
    assert estimate_demand(history, as_of, lookback_months=18).older_sales == 4
