"""
Inventory demand analysis and reorder recommendations.

Pipeline per batch:
    identifiers -> catalog items -> inventory log -> stock reconstruction
    -> recency-weighted demand -> seasonal factor + hot-seller trend
    -> order lines sorted by urgency

Everything after retrieval is a pure function of (items, events, as_of), so
running the same batch twice gives identical output, and items can be
analyzed on worker threads in any order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Iterable

from . import settings
from .demand import estimate_demand
from .reconstruction import reconstruct_stock
from .recommend import build_recommendation, sort_by_urgency, summarize
from .resolver import resolve_identifiers
from .retriever import retrieve_events
from .schemas import (
    AnalysisConfig,
    AnalysisResult,
    InventoryChangeEvent,
    Item,
    ItemAnalysis,
    OrderRecommendation,
)
from .seasonality import seasonal_factor
from .stores import CatalogStore, EventStore
from .trend import detect_trend
from .utils import to_utc, utc_now

logger = logging.getLogger(__name__)


def analyze_item_history(
    events: list[InventoryChangeEvent],
    current_qty: int,
    as_of: datetime,
    lookback_months: int = settings.LOOKBACK_MONTHS,
) -> ItemAnalysis:
    """
    Runs reconstruction, demand, seasonality and trend for one item's time-ordered events.
    Items with no sales, or first seen less than a day ago, keep a neutral
    seasonal factor and trend.
    """
    history = reconstruct_stock(events, current_qty, as_of)
    demand = estimate_demand(history, as_of, lookback_months)
    if demand.method == "none" or history.total_days < settings.MIN_HISTORY_DAYS:
        return ItemAnalysis(history=history, demand=demand)

    return ItemAnalysis(
        history=history,
        demand=demand,
        seasonal_factor=seasonal_factor(history, as_of),
        trend=detect_trend(demand, history.total_months),
    )


def _recommend_item(
    item: Item,
    events: list[InventoryChangeEvent],
    as_of: datetime,
    config: AnalysisConfig,
) -> OrderRecommendation:
    analysis = analyze_item_history(events, item.quantity_on_hand, as_of, config.lookback_months)
    logger.debug(
        f"{item.item_id}: {analysis.demand.method} rate={analysis.demand.rate:.3f} "
        f"season={analysis.seasonal_factor:.2f} trend={analysis.trend.ratio} "
        f"oos_days={analysis.history.out_of_stock_days:.1f}"
    )
    return build_recommendation(item, analysis, config)


def recommend_items(
    items: list[Item],
    events_by_item: dict[str, list[InventoryChangeEvent]],
    as_of: datetime,
    config: AnalysisConfig,
) -> list[OrderRecommendation]:
    """
    Analyzes already-retrieved items. Results come back in `items` order
    regardless of worker count; any worker exception aborts the batch.
    """
    def work(item: Item) -> OrderRecommendation:
        return _recommend_item(item, events_by_item.get(item.item_id, []), as_of, config)

    if config.max_workers == 1 or len(items) <= 1:
        return [work(item) for item in items]

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        return list(executor.map(work, items))


def analyze_items(
    tokens: Iterable[str],
    catalog: CatalogStore,
    store: EventStore,
    config: AnalysisConfig | None = None,
    as_of: datetime | None = None,
    since: datetime | None = None,
) -> AnalysisResult:
    """
    Builds reorder recommendations for the given identifiers.

    Unknown identifiers are reported in `unmatched`. A RetrievalError from
    either store propagates: no partial result is ever returned.
    """
    config = config or AnalysisConfig()
    as_of = to_utc(as_of) if as_of else utc_now()

    tokens = list(tokens)
    logger.info(f"🚀 Starting inventory-log-backed analysis for {len(tokens)} identifiers")

    logger.info("Step 1: Resolving identifiers against the catalog...")
    resolution = resolve_identifiers(tokens, catalog)
    items = resolution.items

    logger.info("Step 2: Reading inventory log...")
    events_by_item = retrieve_events(
        [item.item_id for item in items], store, config.location_id, since
    )

    logger.info("Step 3: Building recommendations with stock-reconstructed averages...")
    recommendations = sort_by_urgency(recommend_items(items, events_by_item, as_of, config))
    summary = summarize(recommendations)

    logger.info(
        f"✅ Analysis complete: {summary.total_items} items, "
        f"{summary.items_needing_reorder} need reorder, {summary.urgent_items} urgent"
    )
    return AnalysisResult(
        recommendations=recommendations,
        summary=summary,
        unmatched=resolution.unmatched,
        as_of=as_of,
    )
