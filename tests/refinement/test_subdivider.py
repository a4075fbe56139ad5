"""Tests for quadtree subdivision."""

import numpy as np
import pytest

from quadgrid.abstractions.types import Cell, Grid
from quadgrid.grid_systems import NotFoundError
from quadgrid.refinement import subdivide


class TestQuadSubdivider:
    """Test QuadSubdivider.subdivide."""

    def test_single_cell_quadrants(self, subdivider):
        """Test one cell becomes four quarter-size children in canonical order."""
        grid = Grid.from_arrays([5.0], [5.0], [1.0])
        refined = subdivider.subdivide(grid, [1])

        assert list(refined) == [
            Cell(4.75, 4.75, 0.5, 1),
            Cell(4.75, 5.25, 0.5, 2),
            Cell(5.25, 4.75, 0.5, 3),
            Cell(5.25, 5.25, 0.5, 4),
        ]

    def test_children_tile_parent(self, subdivider, three_by_three):
        """Test the children cover exactly the parent footprint."""
        parent = three_by_three.cell_by_id(5)
        refined = subdivider.subdivide(three_by_three, [5])

        children = [c for c in refined if c.size == parent.size / 2]
        assert len(children) == 4
        assert sum(c.area for c in children) == parent.area
        assert all(parent.polygon.covers(c.polygon) for c in children)

    def test_count_grows_by_three_per_parent(self, subdivider, three_by_three):
        refined = subdivider.subdivide(three_by_three, [1, 5, 9])
        assert len(refined) == len(three_by_three) + 3 * 3

    def test_unselected_cells_kept(self, subdivider, three_by_three):
        """Test cells outside the region survive under the same key."""
        refined = subdivider.subdivide(three_by_three, [5])
        kept = three_by_three.keys() - {three_by_three.cell_by_id(5).key}

        assert kept <= refined.keys()
        assert three_by_three.cell_by_id(5).key not in refined.keys()

    def test_ids_reassigned(self, subdivider, three_by_three):
        """Test ids stay dense and follow x-then-y order after refinement."""
        refined = subdivider.subdivide(three_by_three, [5])

        assert [c.cell_id for c in refined] == list(range(1, 13))
        # Quadrants of the center cell sit between x=4 and x=5 columns
        assert refined.cell_by_id(4).key == (4.75, 4.75, 0.5)
        assert refined.cell_by_id(6).key == (5.0, 4.0, 1.0)

    def test_duplicate_ids_ignored(self, subdivider, three_by_three):
        assert subdivider.subdivide(three_by_three, [5, 5, 5]) == subdivider.subdivide(three_by_three, [5])

    def test_empty_region(self, subdivider, three_by_three):
        """Test an empty region returns an equal grid."""
        refined = subdivider.subdivide(three_by_three, [])

        assert refined == three_by_three
        assert refined is not three_by_three

    def test_area_conserved(self, subdivider, three_by_three):
        refined = subdivider.subdivide(three_by_three, range(1, 10))
        assert refined.total_area == three_by_three.total_area

    def test_input_unchanged(self, subdivider, three_by_three):
        before = three_by_three.to_records()
        subdivider.subdivide(three_by_three, [1, 2])
        assert three_by_three.to_records() == before

    def test_unique_keys_with_neighbouring_parents(self, subdivider, builder):
        """Test adjacent parents never produce coinciding children."""
        grid = builder.build([(5.0, 5.0), (6.0, 5.0)], 1.0, 1)
        refined = subdivider.subdivide(grid, range(1, len(grid) + 1))

        assert len(refined) == len(grid) + 3 * len(grid)
        assert len(refined.keys()) == len(refined)

    @pytest.mark.parametrize('bad_id', [0, 10, -1])
    def test_missing_id(self, subdivider, three_by_three, bad_id):
        """Test ids outside 1..N are rejected."""
        with pytest.raises(NotFoundError) as exc_info:
            subdivider.subdivide(three_by_three, [1, bad_id])

        assert exc_info.value.missing_ids == [bad_id]
        assert exc_info.value.cell_count == 9

    @pytest.mark.parametrize('bad_id', [2.5, '3', True, 5.0])
    def test_non_integer_id(self, subdivider, three_by_three, bad_id):
        """Test values that merely convert to a valid id are not accepted as one."""
        with pytest.raises(NotFoundError) as exc_info:
            subdivider.subdivide(three_by_three, [bad_id])

        assert exc_info.value.missing_ids == [bad_id]

    def test_numpy_integer_ids(self, subdivider, three_by_three):
        refined = subdivider.subdivide(three_by_three, np.array([5, 5], dtype=np.int64))
        assert len(refined) == 12

    def test_missing_ids_listed_integers_first(self, subdivider, three_by_three):
        with pytest.raises(NotFoundError) as exc_info:
            subdivider.subdivide(three_by_three, ['x', 12, 1, 10])

        assert exc_info.value.missing_ids == [10, 12, 'x']

    def test_region_from_other_snapshot(self, subdivider, selector, three_by_three):
        """Test a region selected on a finer grid does not apply to the coarser one."""
        finer = subdivider.subdivide(three_by_three, range(1, 10))
        region = selector.select(finer, [(6.2, 6.2)], 'nearest_cell')

        with pytest.raises(NotFoundError):
            subdivider.subdivide(three_by_three, region)

    def test_module_shortcut(self, three_by_three):
        assert len(subdivide(three_by_three, [5])) == 12
