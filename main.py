import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from reorder import settings
from reorder.logger import setup_logger
from reorder.pipelines.reorder import ReorderPipeline
from reorder.schemas import AnalysisConfig
from reorder.stores import (
    CsvCatalog,
    CsvEventStore,
    RetrievalError,
    SupabaseCatalog,
    SupabaseClient,
    SupabaseEventStore,
)

logger = logging.getLogger(__name__)


def build_stores(args):
    """Creates the catalog and inventory-log readers for the chosen source."""
    if args.source == "supabase":
        if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
            raise SystemExit("SUPABASE_URL and SUPABASE_KEY must be set to read from Supabase.")
        client = SupabaseClient(settings.SUPABASE_URL, settings.SUPABASE_KEY)
        return SupabaseCatalog(client), SupabaseEventStore(client)

    return CsvCatalog(args.items_csv), CsvEventStore(args.events_csv)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Reorder recommendations from the point-of-sale inventory log.",
    )
    parser.add_argument(
        "ids_file",
        nargs="?",
        type=Path,
        default=settings.INPUT_DIR / settings.ITEM_IDS_FILENAME,
        help="CSV whose first column holds item ids, SKUs or UPCs",
    )
    parser.add_argument("--source", choices=["csv", "supabase"], default="csv")
    parser.add_argument("--items-csv", type=Path, default=settings.INPUT_DIR / settings.ITEMS_CSV)
    parser.add_argument("--events-csv", type=Path, default=settings.INPUT_DIR / settings.EVENTS_CSV)
    parser.add_argument("--order-cycle-months", type=float, default=settings.ORDER_CYCLE_MONTHS)
    parser.add_argument("--lookback-months", type=int, default=settings.LOOKBACK_MONTHS)
    parser.add_argument("--workers", type=int, default=settings.MAX_WORKERS)
    parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="Analyze as if run at this ISO timestamp (default: now)",
    )
    parser.add_argument("--output-dir", type=Path, default=settings.OUTPUT_DIR)
    parser.add_argument("--test", action="store_true", help="Skip writing output files")
    parser.add_argument("-v", "--verbose", action="store_true", help="Per-item debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logger(log_level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = AnalysisConfig(
            order_cycle_months=args.order_cycle_months,
            lookback_months=args.lookback_months,
            max_workers=args.workers,
        )
    except ValidationError as e:
        logger.error(f"❌ Invalid analysis settings:\n{e}")
        return 2

    try:
        catalog, store = build_stores(args)
    except RetrievalError as e:
        logger.error(f"❌ Could not open data source: {e}")
        return 1

    pipeline = ReorderPipeline(
        ids_path=args.ids_file,
        catalog=catalog,
        store=store,
        config=config,
        as_of=args.as_of,
        output_dir=args.output_dir,
        test_mode=args.test,
    )
    return 0 if pipeline.run() is not None else 1


if __name__ == "__main__":
    sys.exit(main())
