"""Core infrastructure for simulation generation.

``BaseDesign`` lives in :mod:`simulator.core.base_design`; it depends on
the components package, which in turn imports from here.
"""

from .data_structures import ParameterCell, ReplicateResult, SimulationSample

__all__ = ['ParameterCell', 'ReplicateResult', 'SimulationSample']
