"""Configuration loader utility for YAML files."""

from pathlib import Path
from typing import Any, Dict, Union
import yaml


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load configuration from YAML file.
    
    Parameters
    ----------
    config_path : str or Path
        Path to the YAML configuration file.
        
    Returns
    -------
    Dict[str, Any]
        Dictionary containing configuration parameters.
        
    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    yaml.YAMLError
        If the YAML file is malformed.
    """
    config_path = Path(config_path)
    
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")
    
    with open(config_path, 'r') as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing YAML file {config_path}: {e}")
    
    return config


def save_config(config: Dict[str, Any], config_path: Union[str, Path]) -> None:
    """
    Save configuration to YAML file.
    
    Parameters
    ----------
    config : Dict[str, Any]
        Dictionary containing configuration parameters.
    config_path : str or Path
        Path where to save the YAML configuration file.
    """
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    
    with open(config_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

SIMULATION_DEFAULTS = {
    'random_seed': 42,
    'n_iter': 100,
    'n_jobs': 1,
    'alpha': 0.05,
    'grid_mode': 'one_at_a_time',
    'checkpoint': {'dir': None, 'every': None},
    'treatment': {'threshold_jitter': 0.5, 'min_window_obs': 30},
    'vary': {},
}
REQUIRED_SECTIONS = ['data', 'simulation']
REQUIRED_BASELINE = [
    'n_days', 'n_cities', 'p_obs_treat', 'percent_effect_size', 'id_method', 'formula'
]


def _merge_defaults(defaults: Dict[str, Any], values: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(defaults)
    for key, value in (values or {}).items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_simulation_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a simulation configuration and fill in defaults.

    The file needs a 'data' section with the panel path and a 'simulation'
    section with a 'baseline' parameter cell. Missing simulation settings
    are taken from ``SIMULATION_DEFAULTS``; the top-level 'random_seed' is
    copied into the simulation section.

    Parameters
    ----------
    config_path : str or Path
        Path to the YAML configuration file.

    Returns
    -------
    Dict[str, Any]
        Validated configuration.

    Raises
    ------
    ValueError
        If a required section or baseline parameter is missing, or a
        setting is out of range.
    """
    config = load_config(config_path) or {}

    missing = [section for section in REQUIRED_SECTIONS if section not in config]
    if missing:
        raise ValueError(f"Configuration {config_path} is missing sections: {missing}")
    if 'panel_path' not in (config['data'] or {}):
        raise ValueError("Configuration 'data' section needs a 'panel_path'")

    simulation = _merge_defaults(SIMULATION_DEFAULTS, config['simulation'])
    if 'random_seed' in config:
        simulation['random_seed'] = config['random_seed']

    baseline = simulation.get('baseline') or {}
    missing = [key for key in REQUIRED_BASELINE if key not in baseline]
    if missing:
        raise ValueError(f"Simulation baseline is missing parameters: {missing}")

    if int(simulation['n_iter']) < 1:
        raise ValueError(f"n_iter must be positive, got {simulation['n_iter']}")
    if not 0 < float(simulation['alpha']) < 1:
        raise ValueError(f"alpha must be in (0, 1), got {simulation['alpha']}")

    config['simulation'] = simulation
    return config
