import json
import logging
from pathlib import Path
import pandas as pd

from . import settings
from . import utils
from .schemas import AnalysisResult, OrderRecommendation

logger = logging.getLogger(__name__)


def recommendations_frame(result: AnalysisResult) -> pd.DataFrame:
    """One row per order line, columns named by the schema aliases."""
    columns = [info.alias or name for name, info in OrderRecommendation.model_fields.items()]
    rows = []
    for rec in result.recommendations:
        row = rec.model_dump(by_alias=True)
        row["notes"] = " | ".join(rec.notes)
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def save_outputs(
    result: AnalysisResult,
    base_name: str = settings.OUTPUT_FILENAME_BASE,
    output_dir: Path | None = None,
) -> list[Path]:
    """Saves the recommendations to CSV and conditionally the full result to JSON, with dated filenames."""
    output_dir = output_dir or settings.OUTPUT_DIR
    output_dir.mkdir(parents=True, exist_ok=True)
    date_suffix = utils.get_date_suffix_for_filename(result.as_of)

    csv_path = output_dir / f"{base_name}_{date_suffix}.csv"
    recommendations_frame(result).to_csv(csv_path, index=False)
    logger.info(f"✅ Recommendations saved to: {csv_path}")
    saved = [csv_path]

    if settings.SAVE_JSON_OUTPUT:
        json_path = output_dir / f"{base_name}_{date_suffix}.json"
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(result.model_dump(mode="json", by_alias=True), f, indent=2)
        logger.info(f"✅ JSON output saved to: {json_path}")
        saved.append(json_path)
    else:
        logger.info("INFO: Skipping JSON file save as per configuration.")

    return saved
