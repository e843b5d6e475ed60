"""Summary tables for tracked metrics and their doubling rates."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any

from doubling_core.schemas import DoublingRate, RateStatus

from .session import TrackerSession

logger = logging.getLogger(__name__)

FIELDNAMES = [
    "id",
    "name",
    "base_value",
    "current_value",
    "samples",
    "last_updated",
    "days_per_doubling",
    "months_per_doubling",
    "projected_next_double",
    "status",
]


class SummaryExporter:
    """Flattens a session's metrics and rates into exportable rows."""

    def __init__(self, session: TrackerSession):
        self.session = session

    def rows(self) -> list[dict[str, Any]]:
        """Collect one summary row per metric, in creation order.

        Returns:
            List of row dicts keyed by FIELDNAMES
        """
        rows = []
        for item in self.session.overview():
            row: dict[str, Any] = {
                "id": item.id,
                "name": item.name,
                "base_value": item.base_value,
                "current_value": item.current_value,
                "samples": item.sample_count,
                "last_updated": item.last_updated.isoformat() if item.last_updated else None,
                "days_per_doubling": None,
                "months_per_doubling": None,
                "projected_next_double": None,
                "status": None,
            }
            if isinstance(item.rate, DoublingRate):
                row["days_per_doubling"] = item.rate.days_per_doubling
                row["months_per_doubling"] = item.rate.months_per_doubling
                row["projected_next_double"] = item.rate.projected_next_double_date.isoformat()
                row["status"] = "doubling"
            elif isinstance(item.rate, RateStatus):
                row["status"] = item.rate.value
            else:
                row["status"] = item.rate_text
            rows.append(row)
        return rows

    def export_csv(self, output_path: Path) -> None:
        """Export the summary to a CSV file.

        Args:
            output_path: Path to output CSV file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
            writer.writeheader()
            writer.writerows(self.rows())

    def export_json(self, output_path: Path) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w") as f:
            json.dump(self.rows(), f, indent=2)

    def export_series_csv(self, metric_id: int, output_path: Path) -> bool:
        """Write a metric's date/value points for charting.

        Args:
            metric_id: Metric to export
            output_path: Path to output CSV file

        Returns:
            False when the metric has fewer than two samples and nothing was written

        Raises:
            NotFound: If the metric does not exist
        """
        metric = self.session.store.get_metric(metric_id)
        points = metric.series()
        if not points:
            logger.warning(f"Skipping series for {metric.name}: fewer than two samples")
            return False

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["date", "value"])
            for day, value in points:
                writer.writerow([day.isoformat(), value])
        return True
