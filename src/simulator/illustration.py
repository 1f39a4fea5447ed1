"""Stylised "mad scientist" experiment.

A researcher randomly doubles air pollution on half of the days of a year
in one city and compares daily deaths. With a Negative-Binomial death
count of mean 106 and a true effect of one extra death per treated day,
the experiment is badly underpowered: significant estimates exaggerate
the effect several times and some have the wrong sign.
"""

import numpy as np
import pandas as pd

from scipy import stats
from typing import Optional

from .core.utils import make_rng, signed_poisson


def draw_negative_binomial(
    mean: float,
    dispersion: float,
    size,
    rng: np.random.Generator
) -> np.ndarray:
    """Draw counts with E[Y] = mean and Var[Y] = mean + mean**2 / dispersion."""
    if mean <= 0 or dispersion <= 0:
        raise ValueError("mean and dispersion must be positive")
    return rng.negative_binomial(dispersion, dispersion / (dispersion + mean), size=size)


def simulate_mad_scientist(
    n_days: int = 366,
    mean: float = 106,
    dispersion: float = 38,
    effect: float = 1,
    p_treat: float = 0.5,
    n_reps: int = 10_000,
    seed: Optional[int] = None
) -> pd.DataFrame:
    """
    Simulate the experiment ``n_reps`` times.

    Parameters
    ----------
    n_days : int, default=366
        Days observed per experiment.
    mean, dispersion : float
        Negative-Binomial parameters of untreated daily deaths.
    effect : float, default=1
        Mean number of extra deaths on treated days. Each treated day gets
        a Poisson draw with this mean.
    p_treat : float, default=0.5
        Probability that a day is treated.
    n_reps : int, default=10000
        Number of simulated experiments.
    seed : int, optional
        Random seed.

    Returns
    -------
    pd.DataFrame
        One row per experiment with 'estimate' (difference in means),
        'std_error' (Welch), 'p_value', 'n_obs' and 'true_effect'.
        Experiments with fewer than two days in a group are dropped.
    """
    if not 0 < p_treat < 1:
        raise ValueError(f"p_treat must be in (0, 1), got {p_treat}")
    rng = make_rng(seed)

    y0 = draw_negative_binomial(mean, dispersion, (n_reps, n_days), rng).astype(float)
    treated = rng.random((n_reps, n_days)) < p_treat
    y = y0 + treated * signed_poisson(effect, y0.shape, rng)

    n1 = treated.sum(axis=1)
    valid = (n1 >= 2) & (n_days - n1 >= 2)
    estimate, std_error, p_value = welch_test(y[valid], treated[valid])

    return pd.DataFrame({
        'rep': np.flatnonzero(valid),
        'estimate': estimate,
        'std_error': std_error,
        'p_value': p_value,
        'n_obs': n_days,
        'true_effect': float(effect),
    })


def welch_test(y: np.ndarray, treated: np.ndarray):
    """
    Row-wise Welch test of treated against control means.

    Group sizes differ across rows, so the test runs on group moments
    through :func:`scipy.stats.ttest_ind_from_stats`.

    Returns
    -------
    estimate, std_error, p_value : np.ndarray
        Difference in means, its Welch standard error and two-sided p-value.
    """
    y_treated = np.where(treated, y, np.nan)
    y_control = np.where(treated, np.nan, y)
    n1 = treated.sum(axis=1)
    n0 = treated.shape[1] - n1

    mean1, mean0 = np.nanmean(y_treated, axis=1), np.nanmean(y_control, axis=1)
    sd1 = np.nanstd(y_treated, axis=1, ddof=1)
    sd0 = np.nanstd(y_control, axis=1, ddof=1)

    welch = stats.ttest_ind_from_stats(mean1, sd1, n1, mean0, sd0, n0, equal_var=False)
    std_error = np.sqrt(sd1 ** 2 / n1 + sd0 ** 2 / n0)
    return mean1 - mean0, std_error, welch.pvalue
