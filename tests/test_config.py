"""Tests for YAML configuration loading."""

from pathlib import Path

import pytest
import yaml

from simulator import SimulationRunner
from utils import load_config, load_simulation_config, save_config


SHIPPED_CONFIG = Path(__file__).resolve().parents[1] / 'src' / 'config' / 'simulation.yml'


@pytest.fixture
def minimal_config():
    return {
        'random_seed': 7,
        'data': {'panel_path': 'panel.pkl'},
        'simulation': {
            'n_iter': 10,
            'treatment': {'min_window_obs': 5},
            'baseline': {
                'n_days': 100,
                'n_cities': 2,
                'p_obs_treat': 0.5,
                'percent_effect_size': 1.0,
                'id_method': 'reduced_form',
                'formula': "death_total ~ co | city",
            },
        },
    }


class TestLoadConfig:

    def test_round_trip(self, minimal_config, tmp_path):
        path = tmp_path / 'nested' / 'config.yml'
        save_config(minimal_config, path)
        assert load_config(path) == minimal_config

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / 'absent.yml')

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / 'bad.yml'
        path.write_text("simulation: [unclosed\n")
        with pytest.raises(yaml.YAMLError):
            load_config(path)


class TestLoadSimulationConfig:

    def test_defaults_filled(self, minimal_config, tmp_path):
        path = tmp_path / 'config.yml'
        save_config(minimal_config, path)
        config = load_simulation_config(path)
        simulation = config['simulation']

        assert simulation['n_iter'] == 10
        assert simulation['n_jobs'] == 1
        assert simulation['alpha'] == 0.05
        assert simulation['grid_mode'] == 'one_at_a_time'
        assert simulation['random_seed'] == 7
        # nested sections merge key by key
        assert simulation['treatment'] == {'threshold_jitter': 0.5, 'min_window_obs': 5}
        assert simulation['checkpoint'] == {'dir': None, 'every': None}

    @pytest.mark.parametrize("section", ['data', 'simulation'])
    def test_missing_section(self, minimal_config, tmp_path, section):
        del minimal_config[section]
        path = tmp_path / 'config.yml'
        save_config(minimal_config, path)
        with pytest.raises(ValueError, match="missing sections"):
            load_simulation_config(path)

    def test_missing_panel_path(self, minimal_config, tmp_path):
        minimal_config['data'] = {'raw_path': 'raw.rds'}
        path = tmp_path / 'config.yml'
        save_config(minimal_config, path)
        with pytest.raises(ValueError, match="panel_path"):
            load_simulation_config(path)

    def test_missing_baseline_parameter(self, minimal_config, tmp_path):
        del minimal_config['simulation']['baseline']['formula']
        path = tmp_path / 'config.yml'
        save_config(minimal_config, path)
        with pytest.raises(ValueError, match="formula"):
            load_simulation_config(path)

    @pytest.mark.parametrize("key, value", [('n_iter', 0), ('alpha', 1.5)])
    def test_out_of_range(self, minimal_config, tmp_path, key, value):
        minimal_config['simulation'][key] = value
        path = tmp_path / 'config.yml'
        save_config(minimal_config, path)
        with pytest.raises(ValueError, match=key):
            load_simulation_config(path)

    def test_shipped_config_builds_grid(self, panel):
        config = load_simulation_config(SHIPPED_CONFIG)
        runner = SimulationRunner(panel, config['simulation'])
        grid = runner.build_grid()

        assert len(grid) > 1
        assert grid['cell_id'].is_unique
        assert runner.seed == config['random_seed']
        runner.parse_specs(grid)

    def test_shipped_config_varies_instrument_strength_on_iv(self, panel):
        config = load_simulation_config(SHIPPED_CONFIG)
        grid = SimulationRunner(panel, config['simulation']).build_grid()

        iv = grid[grid['id_method'] == 'IV']
        assert len(iv) == len(set(config['simulation']['vary']['iv_strength'])) + 1
        assert (grid.loc[grid['id_method'] != 'IV', 'iv_strength'] == 0.0).all()
