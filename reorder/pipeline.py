import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for batch pipelines.
    Follows an Extract -> Transform -> Load (ETL) pattern.
    """

    def __init__(self, report_type: str, test_mode: bool = False):
        self.report_type = report_type
        self.test_mode = test_mode

    def run(self) -> Any | None:
        """
        Orchestrates the pipeline execution. Returns the transformed data,
        or None when nothing was extracted or the transform failed.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()} REPORT")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        raw_data = self.extract()
        if not raw_data:
            logger.warning(f"⚠️ No data extracted for {self.report_type}. Nothing to analyze.")
            return None

        # --- 2. TRANSFORM ---
        result = self.transform(raw_data)
        if result is None:
            logger.error(f"❌ Transformation failed for {self.report_type}.")
            return None

        # --- 3. LOAD ---
        self.load(result)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.\n")
        logger.info("=" * 60)
        return result

    @abstractmethod
    def extract(self) -> Any | None:
        """Responsible for finding and parsing the pipeline's input."""

    @abstractmethod
    def transform(self, raw_data: Any) -> Any | None:
        """Responsible for the computation. Returns None on failure; never partial data."""

    @abstractmethod
    def load(self, result: Any) -> None:
        """Reports and persists the result."""
