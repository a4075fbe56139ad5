"""Shared fixtures for quadgrid tests."""

import logging
import os

# Keep a developer's config.yml out of the global config instance
os.environ.setdefault('QUADGRID_IGNORE_CONFIG', 'true')

import numpy as np
import pytest

from quadgrid.grid_systems import GridBuilder
from quadgrid.refinement import QuadSubdivider, RefinementDriver, RefinementRegionSelector


@pytest.fixture
def builder():
    return GridBuilder()


@pytest.fixture
def selector():
    return RefinementRegionSelector()


@pytest.fixture
def subdivider():
    return QuadSubdivider()


@pytest.fixture
def driver():
    return RefinementDriver()


@pytest.fixture
def center_point():
    return [(5.0, 5.0)]


@pytest.fixture
def three_by_three(builder, center_point):
    """Uniform 3x3 grid of unit cells centered on (5, 5)."""
    return builder.build(center_point, cell_size=1.0, buffer=1)


@pytest.fixture
def scattered_points():
    """Deterministic off-lattice points."""
    rng = np.random.RandomState(42)
    return [tuple(p) for p in rng.uniform(0, 10, size=(6, 2)).round(3)]


@pytest.fixture
def restore_root_logging():
    """Put the root logger back the way the test found it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
