#!/usr/bin/env python3
"""
Grid refinement CLI tool.

Builds and refines square grids around points read from CSV, and validates
exported grids.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import pandas as pd

from quadgrid.abstractions.types import Grid, RefinementPolicy
from quadgrid.config import config
from quadgrid.domain.validators import GridIntegrityValidator
from quadgrid.grid_systems import GridBuilder, GridError
from quadgrid.infrastructure.logging import get_logger, setup_logging, setup_simple_logging
from quadgrid.processors.exporters import EXPORTERS, ExportConfig
from quadgrid.refinement import RefinementDriver

logger = get_logger(__name__)

POLICY_CHOICES = [policy.value for policy in RefinementPolicy]


def _read_points(path: str, x_col: str, y_col: str) -> pd.DataFrame:
    df = pd.read_csv(path)
    missing = [col for col in (x_col, y_col) if col not in df.columns]
    if missing:
        raise click.BadParameter(f"columns {missing} not found in {path}", param_hint='POINTS_CSV')
    return df[[x_col, y_col]].rename(columns={x_col: 'x', y_col: 'y'})


def _write_grid(grid: Grid, output: Optional[str], fmt: str, compress: bool):
    if output is None:
        # Interchange table on stdout
        grid.to_dataframe().to_csv(sys.stdout, index=False)
        return

    exporter = EXPORTERS[fmt]()
    export_config = ExportConfig(output_path=Path(output), compression='gzip' if compress else None)
    output_file = exporter.export(grid, export_config)
    click.echo(f"✅ Wrote {len(grid)} cells to {output_file}", err=True)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML file merged over the default configuration')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Also write JSON logs to this file')
def cli(verbose, config_path, log_file):
    """Quadtree grid refinement CLI."""
    if config_path:
        config.load_file(Path(config_path))

    level = 'DEBUG' if verbose else config.get('logging.level', 'INFO')
    if log_file:
        setup_logging(config, log_file=log_file, log_level=level)
    else:
        setup_simple_logging(level)


@cli.command()
@click.argument('points_csv', type=click.Path(exists=True, dir_okay=False))
@click.option('--cell-size', '-s', type=float, default=None, help='Initial cell size')
@click.option('--buffer', '-b', type=int, default=None, help='Extra rows/columns on every side')
@click.option('--x-col', default='x', show_default=True)
@click.option('--y-col', default='y', show_default=True)
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output file (stdout CSV if omitted)')
@click.option('--format', 'fmt', type=click.Choice(sorted(EXPORTERS)), default='csv', show_default=True)
@click.option('--gzip', 'compress', is_flag=True, help='Gzip CSV output')
def build(points_csv, cell_size, buffer, x_col, y_col, output, fmt, compress):
    """Build the uniform grid around the points in POINTS_CSV."""
    try:
        points = _read_points(points_csv, x_col, y_col)
        grid = GridBuilder().build(points, cell_size, buffer)
        _write_grid(grid, output, fmt, compress)
    except GridError as e:
        click.echo(f"❌ Failed to build grid: {e}", err=True)
        raise click.Abort()


@cli.command()
@click.argument('points_csv', type=click.Path(exists=True, dir_okay=False))
@click.option('--cell-size', '-s', type=float, default=None, help='Initial cell size')
@click.option('--buffer', '-b', type=int, default=None, help='Extra rows/columns on every side')
@click.option('--iterations', '-n', type=int, default=None, help='Number of refinement passes')
@click.option('--policy', '-p', type=click.Choice(POLICY_CHOICES), default=None, help='Selection policy')
@click.option('--x-col', default='x', show_default=True)
@click.option('--y-col', default='y', show_default=True)
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output file (stdout CSV if omitted)')
@click.option('--format', 'fmt', type=click.Choice(sorted(EXPORTERS)), default='csv', show_default=True)
@click.option('--gzip', 'compress', is_flag=True, help='Gzip CSV output')
@click.option('--summary', is_flag=True, help='Print per-pass diagnostics as JSON on stderr')
def refine(points_csv, cell_size, buffer, iterations, policy, x_col, y_col, output, fmt, compress, summary):
    """Build and refine a grid around the points in POINTS_CSV."""
    try:
        points = _read_points(points_csv, x_col, y_col)
        driver = RefinementDriver()
        if summary:
            result = driver.refine_with_history(points, cell_size, buffer, iterations, policy)
            grid = result.grid
            click.echo(json.dumps(result.summary(), indent=2), err=True)
        else:
            grid = driver.refine(points, cell_size, buffer, iterations, policy)
        _write_grid(grid, output, fmt, compress)
    except GridError as e:
        click.echo(f"❌ Refinement failed: {e}", err=True)
        raise click.Abort()


@cli.command()
@click.argument('grid_csv', type=click.Path(exists=True, dir_okay=False))
@click.option('--points', 'points_csv', type=click.Path(exists=True, dir_okay=False),
              help='Points that must be covered')
@click.option('--x-col', default='x', show_default=True)
@click.option('--y-col', default='y', show_default=True)
def validate(grid_csv, points_csv, x_col, y_col):
    """Check an exported grid for ordering, overlap and coverage problems."""
    grid_table = pd.read_csv(grid_csv)
    try:
        stored = Grid.from_dataframe(grid_table)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='GRID_CSV')

    data = {'grid': stored, 'table': grid_table}
    if points_csv:
        data['points'] = _read_points(points_csv, x_col, y_col)

    result = GridIntegrityValidator().validate(data)

    for issue in result.issues:
        click.echo(str(issue), err=True)

    if result.is_valid:
        click.echo(f"✅ Grid valid: {len(stored)} cells")
    else:
        click.echo(f"❌ Grid invalid: {result.error_count} errors", err=True)
        sys.exit(1)


if __name__ == '__main__':
    cli()
