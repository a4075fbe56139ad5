# quadgrid/processors/exporters/base_exporter.py
"""Base exporter for grid export operations."""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from quadgrid.abstractions.types import Grid
from quadgrid.config import config as default_config
from quadgrid.infrastructure.logging import get_logger

logger = get_logger(__name__)


class ExportConfig:
    """Configuration for export operations."""

    def __init__(self,
                 output_path: Path,
                 chunk_size: Optional[int] = None,
                 include_metadata: Optional[bool] = None,
                 compression: Optional[str] = None,
                 float_format: Optional[str] = None,
                 **kwargs):
        self.output_path = Path(output_path)
        self.chunk_size = chunk_size if chunk_size is not None else default_config.get('export.chunk_size', 10000)
        self.include_metadata = (
            include_metadata if include_metadata is not None
            else default_config.get('export.include_metadata', True)
        )
        self.compression = compression if compression is not None else default_config.get('export.compression')
        self.float_format = float_format if float_format is not None else default_config.get('export.float_format')
        self.additional_options = kwargs


class BaseExporter(ABC):
    """Abstract base class for grid exporters."""

    format_name = 'base'

    def __init__(self):
        self.export_stats = {
            'rows_exported': 0,
            'chunks_processed': 0,
            'start_time': None,
            'end_time': None
        }

    @abstractmethod
    def export(self,
               grid: Grid,
               config: ExportConfig,
               progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None) -> Path:
        """
        Export a grid to the exporter's format.

        Args:
            grid: Grid to export
            config: Export configuration
            progress_callback: Optional callback for progress updates

        Returns:
            Path to exported file
        """
        pass

    @abstractmethod
    def validate_export(self, output_path: Path) -> bool:
        """Validate the exported file."""
        pass

    def get_export_stats(self) -> Dict[str, Any]:
        """Get export statistics."""
        stats = self.export_stats.copy()
        if stats['start_time'] and stats['end_time']:
            stats['duration_seconds'] = (
                stats['end_time'] - stats['start_time']
            ).total_seconds()
        return stats

    def _reset_stats(self):
        self.export_stats.update({
            'rows_exported': 0,
            'chunks_processed': 0,
            'start_time': datetime.now(),
            'end_time': None
        })

    def _grid_metadata(self, grid: Grid, output_file: Path) -> Dict[str, Any]:
        return {
            'format': self.format_name,
            'file': output_file.name,
            'cell_count': len(grid),
            'bounds': list(grid.bounds) if len(grid) else None,
            'total_area': grid.total_area,
            'size_counts': {str(size): count for size, count in grid.size_counts().items()},
            'columns': ['x', 'y', 'cell_size', 'cell_id'],
            'exported_at': datetime.now().isoformat()
        }
