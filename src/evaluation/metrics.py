"""Metrics for evaluating the statistical properties of estimators."""

from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from scipy import stats

from simulator.core.data_structures import PARAM_COLUMNS


# summary column -> column holding its aggregation weight
WEIGHTED_COLUMNS = {
    'power': 'n_reps',
    'coverage_rate': 'n_reps',
    'mean_estimate': 'n_reps',
    'mean_std_error': 'n_reps',
    'mean_true_effect': 'n_reps',
    'mean_n_obs': 'n_reps',
    'type_m': 'n_significant',
    'type_s': 'n_significant',
    'mean_f_stat': 'n_f_stat',
}
COUNT_COLUMNS = ['n_reps', 'n_significant', 'n_f_stat', 'n_failed']


class MetricsCalculator:
    """
    Calculate replicate-level inference metrics.

    Metrics include:
    - Power: share of statistically significant estimates
    - Type M: mean exaggeration ratio of significant estimates
    - Type S: share of significant estimates with the wrong sign
    - Coverage rate: share of confidence intervals containing the true effect

    Ratios are NaN when the group they are computed over is empty.
    """

    @staticmethod
    def significant(p_values: np.ndarray, alpha: float = 0.05) -> np.ndarray:
        return np.asarray(p_values, dtype=float) <= alpha

    @staticmethod
    def power(p_values: np.ndarray, alpha: float = 0.05) -> float:
        """
        Calculate the probability that an estimate is significant.

        Parameters
        ----------
        p_values : np.ndarray
            P-values of the replicates.
        alpha : float, default=0.05
            Significance threshold.

        Returns
        -------
        float
            P(p <= alpha), NaN without replicates.
        """
        p_values = np.asarray(p_values, dtype=float)
        if p_values.size == 0:
            return np.nan
        return float(np.mean(p_values <= alpha))

    @staticmethod
    def type_m(
        estimates: np.ndarray,
        true_effects: np.ndarray,
        p_values: np.ndarray,
        alpha: float = 0.05
    ) -> float:
        """
        Calculate the exaggeration ratio of significant estimates.

        Parameters
        ----------
        estimates : np.ndarray
            Point estimates.
        true_effects : np.ndarray
            True effects the replicates were generated with.
        p_values : np.ndarray
            P-values of the replicates.
        alpha : float, default=0.05
            Significance threshold.

        Returns
        -------
        float
            mean(|estimate / true_effect|) over significant replicates with a
            non-zero true effect; NaN if there are none.
        """
        estimates = np.asarray(estimates, dtype=float)
        true_effects = np.asarray(true_effects, dtype=float)
        keep = MetricsCalculator.significant(p_values, alpha) & (true_effects != 0)
        if not keep.any():
            return np.nan
        return float(np.mean(np.abs(estimates[keep] / true_effects[keep])))

    @staticmethod
    def type_s(
        estimates: np.ndarray,
        true_effects: np.ndarray,
        p_values: np.ndarray,
        alpha: float = 0.05
    ) -> float:
        """
        Calculate the sign error rate of significant estimates.

        Returns
        -------
        float
            P(sign(estimate) != sign(true_effect) | significant), over
            replicates with a non-zero true effect; NaN if there are none.
        """
        estimates = np.asarray(estimates, dtype=float)
        true_effects = np.asarray(true_effects, dtype=float)
        keep = MetricsCalculator.significant(p_values, alpha) & (true_effects != 0)
        if not keep.any():
            return np.nan
        return float(np.mean(np.sign(estimates[keep]) != np.sign(true_effects[keep])))

    @staticmethod
    def coverage_rate(
        estimates: np.ndarray,
        std_errors: np.ndarray,
        true_effects: np.ndarray,
        level: float = 0.95,
        dof: Optional[np.ndarray] = None
    ) -> float:
        """
        Calculate the share of confidence intervals covering the true effect.

        Parameters
        ----------
        estimates : np.ndarray
            Point estimates.
        std_errors : np.ndarray
            Standard errors.
        true_effects : np.ndarray
            True effects.
        level : float, default=0.95
            Nominal confidence level.
        dof : np.ndarray, optional
            Degrees of freedom of each replicate's t test. Intervals use the
            t quantile where it is finite and the normal quantile elsewhere,
            so an interval excludes zero exactly when the estimate is
            significant at ``1 - level``.

        Returns
        -------
        float
            Coverage rate, NaN without replicates.
        """
        estimates = np.asarray(estimates, dtype=float)
        if estimates.size == 0:
            return np.nan
        q = 1 - (1 - level) / 2
        critical = np.full(estimates.shape, stats.norm.ppf(q))
        if dof is not None:
            dof = np.asarray(dof, dtype=float)
            finite = np.isfinite(dof)
            critical[finite] = stats.t.ppf(q, dof[finite])
        half_width = critical * np.asarray(std_errors, dtype=float)
        return float(np.mean(np.abs(estimates - np.asarray(true_effects, dtype=float)) <= half_width))

    @staticmethod
    def compute_all_metrics(
        estimates: np.ndarray,
        std_errors: np.ndarray,
        p_values: np.ndarray,
        true_effects: np.ndarray,
        alpha: float = 0.05,
        level: float = 0.95,
        dof: Optional[np.ndarray] = None
    ) -> Dict[str, float]:
        """
        Compute all metrics at once.

        Returns
        -------
        Dict[str, float]
            Dictionary containing all metrics.
        """
        return {
            'power': MetricsCalculator.power(p_values, alpha),
            'type_m': MetricsCalculator.type_m(estimates, true_effects, p_values, alpha),
            'type_s': MetricsCalculator.type_s(estimates, true_effects, p_values, alpha),
            'coverage_rate': MetricsCalculator.coverage_rate(
                estimates, std_errors, true_effects, level, dof
            ),
        }


def _default_group_cols(df: pd.DataFrame) -> List[str]:
    return [col for col in ['cell_id'] + PARAM_COLUMNS if col in df.columns]


def _failed_mask(results: pd.DataFrame) -> pd.Series:
    failed = results[['estimate', 'std_error', 'p_value', 'true_effect']].isna().any(axis=1)
    if 'error' in results.columns:
        failed |= results['error'].notna()
    return failed


def summarise_results(
    results: pd.DataFrame,
    alpha: float = 0.05,
    level: float = 0.95,
    group_cols: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Aggregate replicate rows into one summary row per parameter cell.

    Parameters
    ----------
    results : pd.DataFrame
        Replicate rows with 'estimate', 'std_error', 'p_value' and
        'true_effect'; optionally 'f_stat', 'dof', 'n_obs' and 'error'.
    alpha : float, default=0.05
        Significance threshold.
    level : float, default=0.95
        Confidence level used for the coverage rate.
    group_cols : List[str], optional
        Columns identifying a cell. Defaults to the parameter columns
        present in ``results``; an empty list summarises the whole table.

    Returns
    -------
    pd.DataFrame
        One row per group with counts and metrics. Failed replicates are
        counted in 'n_failed' and excluded from every metric.
    """
    group_cols = _default_group_cols(results) if group_cols is None else list(group_cols)
    failed = _failed_mask(results)
    calculator = MetricsCalculator()

    if group_cols:
        groups = results.groupby(group_cols, sort=False, dropna=False)
    else:
        groups = [((), results)]

    rows = []
    for key, group in groups:
        key = key if isinstance(key, tuple) else (key,)
        ok = group.loc[~failed.loc[group.index]]

        estimates = ok['estimate'].to_numpy(dtype=float)
        std_errors = ok['std_error'].to_numpy(dtype=float)
        p_values = ok['p_value'].to_numpy(dtype=float)
        true_effects = ok['true_effect'].to_numpy(dtype=float)
        f_stats = ok['f_stat'].dropna() if 'f_stat' in ok.columns else pd.Series(dtype=float)
        dofs = ok['dof'].to_numpy(dtype=float) if 'dof' in ok.columns else None

        row = dict(zip(group_cols, key))
        row.update({
            'n_reps': len(ok),
            'n_failed': int(len(group) - len(ok)),
            'n_significant': int(calculator.significant(p_values, alpha).sum()),
            'n_f_stat': len(f_stats),
        })
        row.update(calculator.compute_all_metrics(
            estimates, std_errors, p_values, true_effects, alpha, level, dofs
        ))
        row.update({
            'mean_f_stat': float(f_stats.mean()) if len(f_stats) else np.nan,
            'mean_estimate': float(np.mean(estimates)) if len(ok) else np.nan,
            'mean_std_error': float(np.mean(std_errors)) if len(ok) else np.nan,
            'mean_true_effect': float(np.mean(true_effects)) if len(ok) else np.nan,
            'mean_n_obs': float(ok['n_obs'].mean()) if len(ok) and 'n_obs' in ok else np.nan,
        })
        rows.append(row)

    return pd.DataFrame(rows)


def _weighted_mean(values: pd.Series, weights: pd.Series) -> float:
    values = values.to_numpy(dtype=float)
    weights = np.where(np.isnan(values), 0, weights.to_numpy(dtype=float))
    total = weights.sum()
    if total <= 0:
        return np.nan
    return float(np.sum(np.where(weights > 0, values, 0) * weights) / total)


def combine_summaries(
    summary: pd.DataFrame,
    group_cols: Optional[List[str]] = None
) -> pd.DataFrame:
    """
    Re-aggregate summary rows that describe the same cell.

    Counts are added and metrics averaged with the count they were computed
    over as weight, so summaries of separate batches combine into the
    summary of the pooled replicates (up to ``type_m`` and ``type_s`` being
    averages over significant replicates). Applied to a table with one row
    per cell it returns the same values.

    Parameters
    ----------
    summary : pd.DataFrame
        Output of :func:`summarise_results`, possibly concatenated.
    group_cols : List[str], optional
        Cell identifiers; defaults to the parameter columns present.

    Returns
    -------
    pd.DataFrame
        One row per cell with the columns of ``summary``.
    """
    group_cols = _default_group_cols(summary) if group_cols is None else list(group_cols)

    if group_cols:
        groups = summary.groupby(group_cols, sort=False, dropna=False)
    else:
        groups = [((), summary)]

    rows = []
    for key, group in groups:
        key = key if isinstance(key, tuple) else (key,)
        row = dict(zip(group_cols, key))
        for col in COUNT_COLUMNS:
            if col in group.columns:
                row[col] = int(group[col].sum())
        for col, weight_col in WEIGHTED_COLUMNS.items():
            if col in group.columns and weight_col in group.columns:
                row[col] = _weighted_mean(group[col], group[weight_col])
        rows.append(row)

    return pd.DataFrame(rows, columns=[c for c in summary.columns if c in rows[0]] if rows else summary.columns)


def print_summary(summary: pd.DataFrame, alpha: float = 0.05) -> None:
    """
    Print formatted summary of metrics.

    Parameters
    ----------
    summary : pd.DataFrame
        Output of :func:`summarise_results`.
    alpha : float, default=0.05
        Significance threshold the summary was computed with.
    """
    print("\n" + "="*60)
    print(f"POWER, TYPE M AND TYPE S (alpha = {alpha})")
    print("="*60)

    label_cols = [c for c in PARAM_COLUMNS if c in summary.columns and c != 'formula']
    for _, row in summary.iterrows():
        label = ", ".join(f"{col}={row[col]}" for col in label_cols)
        print(f"\n{label or 'All replicates'}:")
        print("-" * 40)
        for metric in ['n_reps', 'power', 'type_m', 'type_s', 'coverage_rate', 'mean_f_stat']:
            if metric in row:
                print(f"  {metric.upper():14s}: {row[metric]:10.4f}")
