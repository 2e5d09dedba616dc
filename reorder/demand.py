from datetime import datetime

from . import settings
from .schemas import DemandEstimate, SaleEvent, StockHistory
from .utils import days_to_months, months_before


def window_widths(lookback_months: int) -> tuple[int, int, int]:
    """Recent / middle / older window widths in months; 12 gives 3, 3, 6 and 24 gives 3, 3, 18."""
    recent = settings.RECENT_WINDOW_MONTHS
    middle = settings.MIDDLE_WINDOW_END_MONTHS - recent
    return recent, middle, max(0, lookback_months - settings.MIDDLE_WINDOW_END_MONTHS)


def units_sold_between(
    sales: list[SaleEvent], as_of: datetime, newer_months: int, older_months: int
) -> int:
    """Units sold from `older_months` back (inclusive) up to `newer_months` back (exclusive)."""
    start = months_before(as_of, older_months)
    end = months_before(as_of, newer_months) if newer_months else None
    return sum(
        s.quantity for s in sales if s.date >= start and (end is None or s.date < end)
    )


def split_sales(
    sales: list[SaleEvent], as_of: datetime, lookback_months: int
) -> tuple[int, int, int]:
    """Units sold in the recent, middle and older windows of the lookback, counted back from as_of."""
    recent_width, middle_width, _ = window_widths(lookback_months)
    recent_start = months_before(as_of, recent_width)
    middle_start = months_before(as_of, recent_width + middle_width)
    older_start = months_before(as_of, max(lookback_months, recent_width + middle_width))

    recent = middle = older = 0
    for sale in sales:
        if sale.date >= recent_start:
            recent += sale.quantity
        elif sale.date >= middle_start:
            middle += sale.quantity
        elif sale.date >= older_start:
            older += sale.quantity
    return recent, middle, older


def estimate_demand(
    history: StockHistory,
    as_of: datetime,
    lookback_months: int = settings.LOOKBACK_MONTHS,
) -> DemandEstimate:
    """
    Average monthly sales before any seasonal adjustment.

    Policy, first applicable wins:
    - no sales at all: 0
    - sparse: history shorter than the recent window, plain average over
      max(span, 1 month)
    - stale: nothing sold inside the lookback, lifetime units over an
      effective in-stock span that is never shorter than 90 days (or a
      quarter of the history for items that sold 5 units or fewer)
    - weighted: recent/middle/older window totals weighted 3/2/1 over the
      matching weighted month counts, each window capped by how much
      history actually exists
    """
    total_sold = history.total_sold
    total_months = history.total_months
    recent, middle, older = split_sales(history.sales, as_of, lookback_months)
    estimate = dict(
        recent_sales=recent,
        middle_sales=middle,
        older_sales=older,
        trend_prior_sales=units_sold_between(
            history.sales, as_of, *settings.TREND_PRIOR_WINDOW_MONTHS
        ),
        window_months=lookback_months,
    )

    if total_sold == 0:
        return DemandEstimate(rate=0.0, method="none", **estimate)

    recent_width, middle_width, older_width = window_widths(lookback_months)

    if total_months < recent_width:
        rate = total_sold / max(total_months, 1)
        return DemandEstimate(rate=rate, method="sparse", **estimate)

    if recent + middle + older == 0:
        total_days = history.total_days
        in_stock_days = total_days - history.out_of_stock_days
        effective_days = max(in_stock_days, min(total_days, settings.STALE_MIN_EFFECTIVE_DAYS))
        if total_sold <= settings.STALE_LOW_VOLUME_UNITS:
            effective_days = max(effective_days, total_days * settings.STALE_LOW_VOLUME_DAY_SHARE)
        rate = total_sold / days_to_months(effective_days)
        return DemandEstimate(rate=rate, method="stale", **estimate)

    recent_weight, middle_weight, older_weight = settings.WINDOW_WEIGHTS
    months_recent = min(recent_width, total_months)
    months_middle = min(middle_width, max(0, total_months - recent_width))
    months_older = min(older_width, max(0, total_months - recent_width - middle_width))

    weighted_sales = recent * recent_weight + middle * middle_weight + older * older_weight
    weighted_months = (
        months_recent * recent_weight + months_middle * middle_weight + months_older * older_weight
    )
    rate = weighted_sales / weighted_months if weighted_months > 0 else 0.0
    return DemandEstimate(rate=rate, method="weighted", **estimate)
