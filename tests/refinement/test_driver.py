"""Tests for the iterative refinement driver."""

import logging

import pytest

from quadgrid.abstractions.types import RefinementPolicy
from quadgrid.config import config
from quadgrid.grid_systems import InvalidPolicyError, ValidationError
from quadgrid.refinement import RefinementDriver, refine, validate_iterations


class TestValidateIterations:
    """Test pass count validation."""

    @pytest.mark.parametrize('value', [0, 1, 25])
    def test_accepts(self, value):
        assert validate_iterations(value) == value

    @pytest.mark.parametrize('value', [-1, 1.0, '2', True, None])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            validate_iterations(value)


class TestRefinementDriver:
    """Test RefinementDriver.refine."""

    def test_zero_iterations_is_uniform_grid(self, driver, builder, scattered_points):
        """Test no passes returns exactly the built grid."""
        grid = driver.refine(scattered_points, 1.0, 1, 0, 'neighborhood_box')
        assert grid == builder.build(scattered_points, 1.0, 1)

    def test_one_pass_matches_manual_pipeline(self, driver, three_by_three, selector, subdivider, center_point):
        """Test the driver equals build, select, subdivide run by hand."""
        region = selector.select(three_by_three, center_point, 'nearest_cell')
        expected = subdivider.subdivide(three_by_three, region)

        assert driver.refine(center_point, 1.0, 1, 1, 'nearest_cell') == expected

    def test_two_passes_neighborhood_box(self, driver, center_point):
        """Test 9 cells -> 36 -> 36 + 3 * 16."""
        grid = driver.refine(center_point, 1.0, 1, 2, 'neighborhood_box')

        assert len(grid) == 36 + 3 * 16
        assert grid.size_counts() == {0.25: 64, 0.5: 20}

    def test_nearest_cell_depth(self, driver, center_point):
        """Test each pass halves the cell under the point."""
        grid = driver.refine(center_point, 1.0, 1, 3, 'nearest_cell')

        assert grid.min_cell_size == 0.125
        assert len(grid) == 9 + 3 * 3

    def test_deterministic(self, driver, scattered_points):
        """Test identical inputs give identical tables."""
        a = driver.refine(scattered_points, 2.0, 1, 3, 'neighborhood_box')
        b = driver.refine(scattered_points, 2.0, 1, 3, 'neighborhood_box')

        assert a == b
        assert a.to_records() == b.to_records()

    def test_policy_enum_and_spelling(self, driver, center_point):
        by_enum = driver.refine(center_point, 1.0, 1, 1, RefinementPolicy.NEAREST_CELL)
        by_name = driver.refine(center_point, 1.0, 1, 1, 'NearestCell')
        assert by_enum == by_name

    def test_invalid_policy_with_zero_iterations(self, driver, center_point):
        """Test the policy is checked even when no pass runs."""
        with pytest.raises(InvalidPolicyError):
            driver.refine(center_point, 1.0, 1, 0, 'bogus')

    def test_invalid_inputs(self, driver, center_point):
        with pytest.raises(ValidationError):
            driver.refine(center_point, 0.0, 1, 1, 'nearest_cell')
        with pytest.raises(ValidationError):
            driver.refine(center_point, 1.0, -1, 1, 'nearest_cell')
        with pytest.raises(ValidationError):
            driver.refine(center_point, 1.0, 1, -1, 'nearest_cell')
        with pytest.raises(ValidationError):
            driver.refine([], 1.0, 1, 1, 'nearest_cell')

    def test_stops_when_nothing_selected(self, driver):
        """Test a pass that selects nothing ends the run."""
        result = driver.refine_with_history([(0.0, 0.0)], 1.0, 0, 3, 'neighborhood_box')
        assert result.iterations_run == 3

        # Built-in policies always pick something around a covered point; stub an empty pick
        class EmptySelector:
            def select(self, grid, points, policy):
                return frozenset()

        stalled = RefinementDriver(selector=EmptySelector()).refine_with_history(
            [(0.0, 0.0)], 1.0, 0, 5, 'nearest_cell'
        )
        assert stalled.iterations_run == 1
        assert stalled.cell_counts() == (1, 1)

    def test_config_defaults(self, driver, center_point, monkeypatch):
        """Test missing arguments fall back to configuration."""
        monkeypatch.setitem(config.settings['refinement'], 'default_iterations', 2)
        monkeypatch.setitem(config.settings['refinement'], 'default_policy', 'nearest_cell')

        assert driver.refine(center_point, 1.0, 1) == driver.refine(center_point, 1.0, 1, 2, 'nearest_cell')

    def test_cell_count_warning(self, center_point, monkeypatch, caplog):
        monkeypatch.setitem(config.settings['refinement'], 'max_cells_warning', 10)
        driver = RefinementDriver()

        with caplog.at_level(logging.WARNING, logger='quadgrid.refinement.driver'):
            driver.refine(center_point, 1.0, 1, 1, 'neighborhood_box')

        assert any('warning threshold' in r.getMessage() for r in caplog.records)

    def test_stage_failure_logged_once(self, driver, center_point, caplog):
        """Test a failing build is reported by its stage alone."""
        with caplog.at_level(logging.DEBUG, logger='quadgrid'):
            with pytest.raises(ValidationError):
                driver.refine(center_point, 0.0, 1, 1, 'nearest_cell')

        errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert len(errors) == 1
        assert errors[0].context['stage'] == 'build'
        assert 'ValidationError' in errors[0].traceback
        assert any(r.getMessage().startswith('Failed grid_build') for r in caplog.records
                   if r.levelno == logging.DEBUG)

    def test_module_shortcut(self, driver, center_point):
        assert refine(center_point, 1.0, 1, 1, 'nearest_cell') == driver.refine(center_point, 1.0, 1, 1, 'nearest_cell')


class TestRefineWithHistory:
    """Test retained snapshots and per-pass diagnostics."""

    def test_history_and_steps(self, driver, center_point):
        result = driver.refine_with_history(center_point, 1.0, 1, 2, 'neighborhood_box')

        assert result.cell_counts() == (9, 36, 84)
        assert result.initial_grid == driver.refine(center_point, 1.0, 1, 0, 'neighborhood_box')
        assert result.grid is result.history[-1]
        assert [s.selected_count for s in result.steps] == [9, 16]
        assert [s.cells_added for s in result.steps] == [27, 48]
        assert [s.min_cell_size for s in result.steps] == [0.5, 0.25]

    def test_monotonic_growth(self, driver, scattered_points):
        """Test every pass adds exactly three cells per selected cell."""
        result = driver.refine_with_history(scattered_points, 2.0, 1, 3, 'nearest_cell')

        for step in result.steps:
            assert step.cells_after == step.cells_before + 3 * step.selected_count
            assert step.cells_after >= step.cells_before

    def test_summary(self, driver, center_point):
        summary = driver.refine_with_history(center_point, 1.0, 1, 1, 'nearest_cell').summary()

        assert summary['parameters'] == {
            'cell_size': 1.0,
            'buffer': 1,
            'iterations': 1,
            'policy': 'nearest_cell',
            'point_count': 1
        }
        assert summary['final_cell_count'] == 12
        assert summary['steps'][0]['selected_count'] == 1

    def test_refine_matches_history_grid(self, driver, scattered_points):
        with_history = driver.refine_with_history(scattered_points, 1.0, 1, 2, 'nearest_cell')
        assert with_history.grid == driver.refine(scattered_points, 1.0, 1, 2, 'nearest_cell')
