import logging
from datetime import datetime
from pathlib import Path

from reorder import data_handler, parsers, settings
from reorder.engine import analyze_items
from reorder.pipeline import DataPipeline
from reorder.schemas import AnalysisConfig, AnalysisResult
from reorder.stores import CatalogStore, EventStore, RetrievalError

logger = logging.getLogger(__name__)


class ReorderPipeline(DataPipeline):
    """Reads an identifier list, analyzes it and saves the order recommendations."""

    def __init__(
        self,
        ids_path: Path,
        catalog: CatalogStore,
        store: EventStore,
        config: AnalysisConfig | None = None,
        as_of: datetime | None = None,
        output_dir: Path | None = None,
        test_mode: bool = False,
    ):
        super().__init__("reorder", test_mode=test_mode)
        self.ids_path = ids_path
        self.catalog = catalog
        self.store = store
        self.config = config or AnalysisConfig()
        self.as_of = as_of
        self.output_dir = output_dir or settings.OUTPUT_DIR

    def extract(self) -> list[str] | None:
        logger.info(f"-- Reading identifiers from {self.ids_path.name} --")
        tokens = parsers.parse_item_id_file(self.ids_path)
        if not tokens:
            logger.error(f"  > ERROR: No identifiers found in {self.ids_path}.")
        return tokens

    def transform(self, tokens: list[str]) -> AnalysisResult | None:
        try:
            return analyze_items(tokens, self.catalog, self.store, self.config, self.as_of)
        except RetrievalError as e:
            logger.error(f"❌ Analysis aborted, no recommendations were produced: {e}")
            return None

    def load(self, result: AnalysisResult):
        logger.info("\n--- Order Recommendations ---")
        if result.recommendations:
            frame = data_handler.recommendations_frame(result)
            logger.info(
                frame[
                    ["itemID", "description", "currentQty", "avgMonthlySales",
                     "monthsOfStockLeft", "recommendedOrderQty", "estimatedOrderCost"]
                ].to_string(index=False)
            )
        else:
            logger.warning("No items could be analyzed.")

        summary = result.summary
        logger.info("\n--- Final Summary ---")
        logger.info(f"Items analyzed: {summary.total_items}")
        logger.info(f"Need reorder: {summary.items_needing_reorder}")
        logger.info(f"Urgent: {summary.urgent_items}")
        logger.info(f"Estimated cost: ${summary.total_estimated_cost:,.2f}")
        if result.unmatched:
            logger.info(f"Not found: {', '.join(result.unmatched)}")

        if not self.test_mode:
            data_handler.save_outputs(result, output_dir=self.output_dir)
        else:
            logger.info("🧪 Test Mode: Skipping file output.")
