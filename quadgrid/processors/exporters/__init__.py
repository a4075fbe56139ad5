"""Exporters for the grid interchange table."""

from .base_exporter import BaseExporter, ExportConfig
from .csv_exporter import GridCSVExporter
from .geojson_exporter import GridGeoJSONExporter

EXPORTERS = {
    'csv': GridCSVExporter,
    'geojson': GridGeoJSONExporter,
}

__all__ = ['BaseExporter', 'ExportConfig', 'GridCSVExporter', 'GridGeoJSONExporter', 'EXPORTERS']
