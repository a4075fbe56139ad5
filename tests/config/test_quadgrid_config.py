"""Tests for configuration loading."""

import logging

import pytest
import yaml

from quadgrid.config import Config, config
from quadgrid.config import defaults


@pytest.fixture
def config_file(tmp_path):
    """Write a real override file."""
    data = {
        'grids': {'default_cell_size': 0.5},
        'refinement': {'default_policy': 'nearest_cell', 'default_iterations': 4},
        'custom': {'nested': {'value': 7}},
    }
    path = tmp_path / 'config.yml'
    with open(path, 'w') as f:
        yaml.dump(data, f)
    return path


class TestConfig:
    """Test Config defaults and YAML overrides."""

    def test_defaults(self):
        cfg = Config()

        assert cfg.source is None
        assert cfg.settings['grids'] == defaults.GRIDS
        assert cfg.settings['refinement']['default_policy'] == 'neighborhood_box'
        assert cfg.get('export.chunk_size') == 10000
        assert set(cfg.settings) == {'grids', 'refinement', 'export', 'logging', 'paths'}
        assert cfg.get('paths.logs_dir') == defaults.PATHS['logs_dir']

    def test_defaults_are_copies(self):
        cfg = Config()
        cfg.settings['grids']['default_cell_size'] = 99.0
        assert defaults.GRIDS['default_cell_size'] == 1.0

    def test_yaml_override_deep_merges(self, config_file):
        cfg = Config(config_file)

        assert cfg.source == config_file
        assert cfg.get('grids.default_cell_size') == 0.5
        assert cfg.get('grids.default_buffer') == 1
        assert cfg.settings['refinement']['default_iterations'] == 4
        assert cfg.settings['refinement']['max_cells_warning'] == 1_000_000
        assert cfg.get('custom.nested.value') == 7

    def test_get_missing_key(self):
        cfg = Config()
        assert cfg.get('grids.unknown') is None
        assert cfg.get('nope.deeper', 'fallback') == 'fallback'

    def test_missing_file_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING, logger='quadgrid.config.config'):
            cfg = Config(tmp_path / 'absent.yml')

        assert cfg.settings == Config().settings
        assert 'not found' in caplog.text

    def test_malformed_yaml_keeps_defaults(self, tmp_path, caplog):
        path = tmp_path / 'bad.yml'
        path.write_text("grids: [unclosed\n")

        with caplog.at_level(logging.ERROR, logger='quadgrid.config.config'):
            cfg = Config(path)

        assert cfg.settings['grids'] == defaults.GRIDS
        assert cfg.source is None
        assert 'loading failed' in caplog.text

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / 'list.yml'
        path.write_text("- 1\n- 2\n")
        assert Config(path).settings['grids'] == defaults.GRIDS

    def test_load_file(self, config_file):
        cfg = Config()
        cfg.load_file(config_file)
        assert cfg.settings['refinement']['default_policy'] == 'nearest_cell'

    def test_load_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config().load_file(tmp_path / 'absent.yml')

    def test_auto_discovery_skipped_in_tests(self, tmp_path, monkeypatch):
        (tmp_path / 'config.yml').write_text("grids:\n  default_cell_size: 3.0\n")
        monkeypatch.chdir(tmp_path)
        assert Config().get('grids.default_cell_size') == 1.0

    def test_auto_discovery(self, tmp_path, monkeypatch):
        (tmp_path / 'config.yml').write_text("grids:\n  default_cell_size: 3.0\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(Config, '_is_test_mode', lambda self: False)
        monkeypatch.setattr(defaults, 'PROJECT_ROOT', tmp_path / 'elsewhere')

        cfg = Config()
        assert cfg.get('grids.default_cell_size') == 3.0
        assert cfg.source.resolve() == (tmp_path / 'config.yml').resolve()

    def test_global_instance(self):
        assert isinstance(config, Config)
        assert config.get('grids.default_buffer') is not None
