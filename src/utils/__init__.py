"""Configuration and checkpoint utilities."""

from .config_loader import load_config, load_simulation_config, save_config
from .checkpoints import CheckpointStore

__all__ = ['load_config', 'load_simulation_config', 'save_config', 'CheckpointStore']
