"""Simulation module for measuring power, type M and type S errors.

This module draws study samples from a daily city panel, adds a known
effect under several identification designs (reduced form, RDD, OLS, IV),
re-estimates it and collects the replicate-level results.
"""

from .core.data_structures import ParameterCell, ReplicateResult, SimulationSample
from .runner import SimulationRunner, run_replicate
from .grid import build_parameter_grid
from .illustration import simulate_mad_scientist

__all__ = [
    'SimulationRunner',
    'run_replicate',
    'build_parameter_grid',
    'simulate_mad_scientist',
    'ParameterCell',
    'ReplicateResult',
    'SimulationSample',
]
__version__ = '1.0.0'
