"""Evaluation metrics for simulation results."""

from .metrics import MetricsCalculator, combine_summaries, print_summary, summarise_results

__all__ = ['MetricsCalculator', 'combine_summaries', 'print_summary', 'summarise_results']
