from datetime import datetime

from . import settings
from .schemas import StockHistory


def month_occurrences(start: datetime, end: datetime) -> list[int]:
    """How many times each calendar month (index 0 = January) appears from start's month through end's month."""
    counts = [0] * 12
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        counts[month - 1] += 1
        month += 1
        if month > 12:
            month = 1
            year += 1
    return counts


def seasonal_factor(history: StockHistory, as_of: datetime) -> float:
    """
    Multiplier for how this item sells in the current and next calendar month
    compared with its lifetime monthly average. Orders take about two weeks
    to land, so both months are blended equally.

    Needs a year of history and at least 6 units sold; otherwise 1.0. The raw
    factor is pulled toward 1.0 until three years of history exist, then
    clamped to [0.3, 3.0].
    """
    total_months = history.total_months
    total_sold = history.total_sold
    if (
        history.first_event_at is None
        or total_months < settings.SEASONAL_MIN_MONTHS
        or total_sold < settings.SEASONAL_MIN_UNITS
    ):
        return 1.0

    overall_avg = total_sold / total_months
    if overall_avg <= 0:
        return 1.0

    sales_by_month = [0] * 12
    for sale in history.sales:
        sales_by_month[sale.date.month - 1] += sale.quantity
    occurrences = month_occurrences(history.first_event_at, as_of)

    def month_avg(index: int) -> float:
        if occurrences[index] == 0:
            return overall_avg
        return sales_by_month[index] / occurrences[index]

    current_month = as_of.month - 1
    next_month = (current_month + 1) % 12
    blended_avg = (month_avg(current_month) + month_avg(next_month)) / 2

    raw_factor = blended_avg / overall_avg
    years_of_data = total_months / 12
    confidence = min(years_of_data / settings.SEASONAL_FULL_CONFIDENCE_YEARS, 1)
    factor = 1 + (raw_factor - 1) * confidence

    return max(settings.SEASONAL_FACTOR_MIN, min(settings.SEASONAL_FACTOR_MAX, factor))
