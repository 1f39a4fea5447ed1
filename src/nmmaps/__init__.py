"""NMMAPS panel loading and cleaning."""

from .data_loader import (
    NMMAPS_COLUMNS,
    clean_panel,
    load_panel,
    standardize_units,
    summarize_panel,
)

__all__ = ['NMMAPS_COLUMNS', 'clean_panel', 'load_panel', 'standardize_units', 'summarize_panel']
