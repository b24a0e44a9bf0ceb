"""
Export for model runs.

Writes a ModelResult as a JSON bundle or as a set of CSV tables
(one per spreadsheet sheet, one per sensitivity grid, and the LBO
debt schedule). Values are written raw; formatting is left to the
consumer.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

import orjson

from bottomline.config import Settings, get_settings
from bottomline.exceptions import ExportError
from bottomline.logging import get_logger
from bottomline.valuation.lbo import LboScenario
from bottomline.valuation.model import ModelResult
from bottomline.valuation.sensitivity import SensitivityGrid
from bottomline.valuation.spreadsheet import SpreadsheetSheet

logger = get_logger(__name__)


class ModelExporter:
    """Exports model runs to files.

    Supports:
    - JSON export of the full result
    - CSV export of sheets, sensitivity grids and the debt schedule
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the exporter.

        Args:
            settings: Settings for the default output location.
        """
        self.settings = settings or get_settings()

    def default_dir(self, result: ModelResult) -> Path:
        """Per-model directory under OUTPUT_DIR, created if missing.

        Raises:
            ExportError: If the directory cannot be created.
        """
        try:
            return self.settings.get_model_output_dir(result.model_id)
        except OSError as e:
            raise ExportError(
                f"Failed to create output directory: {e}",
                context={"path": str(self.settings.OUTPUT_DIR / result.model_id)},
            ) from e

    def export_json(
        self,
        result: ModelResult,
        output_path: str | Path | None = None,
    ) -> Path:
        """Export a model run to JSON.

        Args:
            result: Model run to export.
            output_path: Output file path. Defaults to model.json in the
                model's output directory.

        Returns:
            Path to created file.

        Raises:
            ExportError: If the file cannot be written.
        """
        path = Path(output_path) if output_path else self.default_dir(result) / "model.json"
        payload = result.to_dict()
        payload["meta"] = {"currency": result.assumptions.currency or self.settings.DEFAULT_CURRENCY}

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
        except OSError as e:
            raise ExportError(
                f"Failed to write JSON export: {e}",
                context={"path": str(path), "format": "json"},
            ) from e

        logger.info("Exported model JSON", path=str(path))
        return path

    def export_csv(
        self,
        result: ModelResult,
        output_dir: str | Path | None = None,
    ) -> list[Path]:
        """Export a model run to CSV files.

        Args:
            result: Model run to export.
            output_dir: Output directory. Defaults to the model's output
                directory.

        Returns:
            List of created file paths.

        Raises:
            ExportError: If any file cannot be written.
        """
        directory = Path(output_dir) if output_dir else self.default_dir(result)
        tables: list[tuple[str, list[list[Any]]]] = []

        for sheet in result.spreadsheet:
            tables.append((f"{sheet.id}.csv", self._sheet_rows(sheet)))

        for name, grid in result.sensitivity.grids().items():
            tables.append((f"sensitivity-{name}.csv", self._grid_rows(grid)))

        tables.append(("lbo-debt-schedule.csv", self._debt_schedule_rows(result.lbo)))

        created_files = []
        try:
            directory.mkdir(parents=True, exist_ok=True)
            for filename, rows in tables:
                path = directory / filename
                with open(path, "w", newline="", encoding="utf-8") as f:
                    csv.writer(f).writerows(rows)
                created_files.append(path)
        except OSError as e:
            raise ExportError(
                f"Failed to write CSV export: {e}",
                context={"path": str(directory), "format": "csv"},
            ) from e

        logger.info("Exported model CSV", directory=str(directory), files=len(created_files))
        return created_files

    def _sheet_rows(self, sheet: SpreadsheetSheet) -> list[list[Any]]:
        """Sheet rows with the label as the first column."""
        rows: list[list[Any]] = [list(sheet.column_headers)]
        for row in sheet.rows:
            rows.append([row.label, *(cell.value for cell in row.cells)])
        return rows

    def _grid_rows(self, grid: SensitivityGrid) -> list[list[Any]]:
        """Grid as a matrix with row values down the first column."""
        rows: list[list[Any]] = [[grid.title], [f"{grid.row_label} \\ {grid.col_label}", *grid.col_values]]
        for value, data in zip(grid.row_values, grid.data):
            rows.append([value, *data])
        return rows

    def _debt_schedule_rows(self, lbo: LboScenario) -> list[list[Any]]:
        """Debt schedule with one row per year."""
        if not lbo.debt_schedule:
            return [["year"]]
        header = list(lbo.debt_schedule[0].to_dict())
        return [header] + [list(year.to_dict().values()) for year in lbo.debt_schedule]
