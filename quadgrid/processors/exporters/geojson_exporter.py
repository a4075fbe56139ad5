# quadgrid/processors/exporters/geojson_exporter.py
"""GeoJSON exporter: one Polygon feature per grid cell."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from shapely.geometry import mapping

from quadgrid.abstractions.types import Grid
from quadgrid.infrastructure.logging import get_logger

from .base_exporter import BaseExporter, ExportConfig

logger = get_logger(__name__)


class GridGeoJSONExporter(BaseExporter):
    """Export cell footprints as a GeoJSON FeatureCollection (no CRS member)."""

    format_name = 'geojson'

    def export(self,
               grid: Grid,
               config: ExportConfig,
               progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None) -> Path:
        self._reset_stats()
        config.output_path.parent.mkdir(parents=True, exist_ok=True)
        output_file = config.output_path

        features = []
        for cell in grid:
            features.append({
                'type': 'Feature',
                'id': cell.cell_id,
                'geometry': mapping(cell.polygon),
                'properties': cell.to_record()
            })
            if progress_callback and len(features) % config.chunk_size == 0:
                progress_callback({'rows_exported': len(features)})

        collection = {
            'type': 'FeatureCollection',
            'features': features
        }
        if config.include_metadata:
            collection['metadata'] = self._grid_metadata(grid, output_file)

        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(collection, f)

        self.export_stats['rows_exported'] = len(features)
        self.export_stats['chunks_processed'] = 1
        self.export_stats['end_time'] = datetime.now()

        logger.info(f"Exported {len(features):,} cell polygons to {output_file}")
        return output_file

    def validate_export(self, output_path: Path) -> bool:
        try:
            with open(output_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not validate {output_path}: {e}")
            return False

        if data.get('type') != 'FeatureCollection':
            return False

        ids = [feature.get('id') for feature in data.get('features', [])]
        return ids == list(range(1, len(ids) + 1))
