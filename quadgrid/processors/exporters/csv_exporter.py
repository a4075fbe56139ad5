# quadgrid/processors/exporters/csv_exporter.py
"""CSV exporter for the grid interchange table."""

import csv
import gzip
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from quadgrid.abstractions.types import Grid, RECORD_COLUMNS
from quadgrid.infrastructure.logging import get_logger

from .base_exporter import BaseExporter, ExportConfig

logger = get_logger(__name__)


class GridCSVExporter(BaseExporter):
    """Export a grid as rows of x, y, cell_size, cell_id."""

    format_name = 'csv'

    def __init__(self):
        super().__init__()
        self.supported_compressions = {'gzip', 'gz', None}

    def export(self,
               grid: Grid,
               config: ExportConfig,
               progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None) -> Path:
        """
        Export grid to CSV.

        Args:
            grid: Grid to export
            config: Export configuration
            progress_callback: Optional progress callback

        Returns:
            Path to exported CSV file
        """
        self._reset_stats()
        self._validate_config(config)

        config.output_path.parent.mkdir(parents=True, exist_ok=True)
        output_file = self._get_output_path(config)

        if config.compression in ('gzip', 'gz'):
            with gzip.open(output_file, 'wt', newline='', encoding='utf-8') as f:
                self._export_to_file(f, grid, config, progress_callback)
        else:
            with open(output_file, 'w', newline='', encoding='utf-8') as f:
                self._export_to_file(f, grid, config, progress_callback)

        self.export_stats['end_time'] = datetime.now()

        if config.include_metadata:
            self._create_metadata_file(output_file, grid)

        logger.info(f"Exported {self.export_stats['rows_exported']:,} cells to {output_file}")
        return output_file

    def _validate_config(self, config: ExportConfig):
        if config.compression not in self.supported_compressions:
            raise ValueError(
                f"Unsupported compression: {config.compression}. "
                f"Supported: {sorted(c for c in self.supported_compressions if c)}"
            )
        if config.chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got: {config.chunk_size}")

    def _get_output_path(self, config: ExportConfig) -> Path:
        path = config.output_path
        if config.compression in ('gzip', 'gz') and path.suffix != '.gz':
            path = path.with_name(path.name + '.gz')
        return path

    def _export_to_file(self,
                        file_handle,
                        grid: Grid,
                        config: ExportConfig,
                        progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None):
        writer = csv.writer(file_handle)
        writer.writerow(RECORD_COLUMNS)

        total_rows = 0
        for chunk_num, rows in enumerate(self._iterate_chunks(grid, config)):
            writer.writerows(rows)

            total_rows += len(rows)
            self.export_stats['rows_exported'] = total_rows
            self.export_stats['chunks_processed'] = chunk_num + 1

            if progress_callback:
                progress_callback({
                    'rows_exported': total_rows,
                    'current_chunk': chunk_num + 1,
                    'chunk_size': len(rows)
                })

    def _iterate_chunks(self, grid: Grid, config: ExportConfig) -> Iterator[List[List[Any]]]:
        """Yield rows in canonical order, ``chunk_size`` at a time."""
        fmt = config.float_format
        chunk: List[List[Any]] = []

        for cell in grid:
            if fmt:
                row = [fmt % cell.x, fmt % cell.y, fmt % cell.size, cell.cell_id]
            else:
                row = [cell.x, cell.y, cell.size, cell.cell_id]
            chunk.append(row)

            if len(chunk) >= config.chunk_size:
                yield chunk
                chunk = []

        if chunk:
            yield chunk

    def _create_metadata_file(self, output_file: Path, grid: Grid):
        metadata = self._grid_metadata(grid, output_file)
        metadata['export_stats'] = {
            k: (v.isoformat() if isinstance(v, datetime) else v)
            for k, v in self.get_export_stats().items()
        }

        metadata_file = output_file.with_name(output_file.name + '.meta.json')
        with open(metadata_file, 'w', encoding='utf-8') as f:
            json.dump(metadata, f, indent=2)

        logger.debug(f"Wrote export metadata to {metadata_file}")

    def validate_export(self, output_path: Path) -> bool:
        """Check header and dense sequential ids of an exported file."""
        output_path = Path(output_path)
        opener = gzip.open if output_path.suffix == '.gz' else open

        try:
            with opener(output_path, 'rt', newline='', encoding='utf-8') as f:
                reader = csv.reader(f)
                header = next(reader, None)
                if header != RECORD_COLUMNS:
                    logger.warning(f"Unexpected CSV header in {output_path}: {header}")
                    return False

                for expected_id, row in enumerate(reader, start=1):
                    if int(row[3]) != expected_id:
                        logger.warning(f"Non-sequential cell id at row {expected_id} of {output_path}")
                        return False
        except (OSError, ValueError, IndexError) as e:
            logger.warning(f"Could not validate {output_path}: {e}")
            return False

        return True
