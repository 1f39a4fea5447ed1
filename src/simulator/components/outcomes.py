"""Synthetic outcome generation."""

import numpy as np
import pandas as pd

from typing import Tuple

from estimators import EstimationError, FixestEstimator, ModelSpec

from ..core.utils import signed_poisson


class OutcomeGenerator:
    """Adds a known effect to a real outcome series.

    Two mechanisms are provided:

    - ``add_count_effect``: for binary treatments. Each treated observation
      receives a Poisson count whose mean is the target percentage of the
      mean outcome.
    - ``reparameterize``: for continuous exposures (OLS and IV). The base
      model is fitted on the real data, its exposure coefficient is swapped
      for the target one and the residual noise is resampled.

    Outputs keep the length and order of their input.
    """

    def __init__(self, estimator: FixestEstimator = None):
        self.estimator = estimator or FixestEstimator()

    @staticmethod
    def effect_in_counts(outcome: pd.Series, percent_effect_size: float) -> float:
        """Translate a percentage effect into outcome units (counts)."""
        mean_outcome = outcome.mean()
        if not np.isfinite(mean_outcome):
            raise EstimationError("Outcome mean is not finite (no defined observations)")
        return percent_effect_size / 100 * mean_outcome

    def add_count_effect(
        self,
        df: pd.DataFrame,
        outcome: str,
        percent_effect_size: float,
        rng: np.random.Generator,
        treatment_col: str = 'treated'
    ) -> Tuple[np.ndarray, float]:
        """Generate y(1) = y(0) + sign * Poisson(lambda) for treated rows.

        Args:
            df: Sample with the real outcome and a treatment column
            outcome: Real outcome column, used as y(0)
            percent_effect_size: Effect in percent of the mean outcome
            rng: Random generator of the replicate
            treatment_col: Binary treatment column (NaN rows left untouched)

        Returns:
            tuple: (synthetic outcome array, true effect in counts)
        """
        defined = df[treatment_col].notna()
        true_effect = self.effect_in_counts(df.loc[defined, outcome], percent_effect_size)

        y = df[outcome].to_numpy(dtype=float)
        treated = (df[treatment_col] == 1).to_numpy()

        y_synth = y.copy()
        y_synth[treated] += signed_poisson(true_effect, int(treated.sum()), rng)

        return y_synth, true_effect

    def reparameterize(
        self,
        df: pd.DataFrame,
        spec: ModelSpec,
        percent_effect_size: float,
        rng: np.random.Generator,
        exposure_values: np.ndarray = None
    ) -> Tuple[np.ndarray, float]:
        """Rebuild the outcome with a chosen exposure coefficient.

        y* = fitted - beta_hat * x + beta_true * x' + e*, where e* is drawn
        with replacement from the base model residuals and x' is the
        (possibly perturbed) exposure.

        Args:
            df: Complete-case sample for ``spec``
            spec: OLS base model on the real outcome
            percent_effect_size: Effect of one unit of exposure, in percent
                of the mean outcome
            rng: Random generator of the replicate
            exposure_values: Exposure used to build y*; defaults to the
                observed exposure

        Returns:
            tuple: (synthetic outcome array, true coefficient)
        """
        beta_hat, fitted, residuals = self.estimator.fitted_and_residuals(df, spec)
        true_effect = self.effect_in_counts(df[spec.outcome], percent_effect_size)

        x = df[spec.exposure].to_numpy(dtype=float)
        x_new = x if exposure_values is None else np.asarray(exposure_values, dtype=float)
        if len(x_new) != len(x):
            raise ValueError("Exposure values must align with the sample")

        noise = rng.choice(residuals, size=len(residuals), replace=True)
        y_synth = fitted - beta_hat * x + true_effect * x_new + noise

        return y_synth, true_effect

    @staticmethod
    def shift_exposure(
        exposure: pd.Series,
        instrument: np.ndarray,
        iv_strength: float
    ) -> np.ndarray:
        """Shift the exposure by iv_strength standard deviations where instrument == 1."""
        x = exposure.to_numpy(dtype=float)
        return x + iv_strength * np.nanstd(x) * np.asarray(instrument, dtype=float)
