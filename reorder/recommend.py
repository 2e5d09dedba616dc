import math

from . import settings
from .schemas import AnalysisConfig, AnalysisSummary, Item, ItemAnalysis, OrderRecommendation
from .utils import round_half_up


def format_ratio(ratio: float) -> str:
    """Plain decimal, at most two places, no trailing zeros: 3.0 -> "3", 1.75 -> "1.75"."""
    return f"{ratio:.2f}".rstrip("0").rstrip(".")


def months_of_stock_left(current_qty: int, avg_monthly_sales: float) -> float:
    if avg_monthly_sales > 0:
        return current_qty / avg_monthly_sales
    return settings.NO_SALES_SENTINEL if current_qty > 0 else 0


def build_notes(
    analysis: ItemAnalysis, current_qty: int, months_left: float, config: AnalysisConfig
) -> list[str]:
    notes = []
    factor = analysis.seasonal_factor
    if factor >= settings.SEASONAL_BUMP_THRESHOLD:
        pct = round_half_up((factor - 1) * 100)
        notes.append(
            f"Seasonal bump: this item typically sells ~{pct:.0f}% more this time of year. "
            "Suggested quantity is adjusted upward."
        )
    elif factor <= settings.SEASONAL_DIP_THRESHOLD:
        pct = round_half_up((1 - factor) * 100)
        notes.append(
            f"Seasonal dip: this item typically sells ~{pct:.0f}% less this time of year. "
            "Suggested quantity is adjusted downward."
        )
    if analysis.trend.is_hot:
        notes.append(
            f"Hot seller: recent sales are {format_ratio(analysis.trend.ratio)}x higher than the prior trend. "
            "Consider ordering extra to keep up with demand."
        )
    if (
        analysis.avg_monthly_sales > 0
        and months_left < config.stockout_warning_months
        and current_qty > 0
    ):
        notes.append("At current sell rate, stock will run out before your next order cycle.")
    return notes


def build_recommendation(
    item: Item, analysis: ItemAnalysis, config: AnalysisConfig | None = None
) -> OrderRecommendation:
    """
    Turns one item's analysis into an order line: enough stock to cover one
    order cycle of demand, less what is already on hand.
    """
    config = config or AnalysisConfig()
    current_qty = item.quantity_on_hand
    avg_monthly_sales = analysis.avg_monthly_sales

    months_left = months_of_stock_left(current_qty, avg_monthly_sales)
    target_stock = math.ceil(avg_monthly_sales * config.order_cycle_months)
    recommended_order_qty = max(0, target_stock - current_qty)

    return OrderRecommendation(
        item_id=item.item_id,
        system_sku=item.system_sku,
        description=item.description,
        manufacturer_sku=item.manufacturer_sku,
        upc=item.upc,
        current_qty=current_qty,
        avg_monthly_sales=round_half_up(avg_monthly_sales, 1),
        months_of_stock_left=round_half_up(months_left, 1),
        recommended_order_qty=recommended_order_qty,
        unit_cost=item.unit_cost,
        retail_price=item.retail_price,
        estimated_order_cost=round_half_up(recommended_order_qty * item.unit_cost, 2),
        out_of_stock_months=analysis.history.out_of_stock_months,
        notes=build_notes(analysis, current_qty, months_left, config),
    )


def sort_by_urgency(recommendations: list[OrderRecommendation]) -> list[OrderRecommendation]:
    """Fewest months of stock left first. Stable, so ties keep their input order."""
    return sorted(recommendations, key=lambda r: r.months_of_stock_left)


def summarize(recommendations: list[OrderRecommendation]) -> AnalysisSummary:
    needing_reorder = [r for r in recommendations if r.recommended_order_qty > 0]
    return AnalysisSummary(
        total_items=len(recommendations),
        items_needing_reorder=len(needing_reorder),
        urgent_items=sum(
            1 for r in needing_reorder if r.months_of_stock_left < settings.URGENT_MONTHS_LEFT
        ),
        total_estimated_cost=round_half_up(sum(r.estimated_order_cost for r in recommendations), 2),
    )
