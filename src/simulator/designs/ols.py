"""OLS on the continuous exposure."""

import numpy as np
import pandas as pd

from typing import Tuple

from estimators import ModelSpec

from ..core.base_design import BaseDesign, SYNTHETIC_OUTCOME
from ..core.data_structures import ParameterCell


class OLSDesign(BaseDesign):
    """OLS design.

    - Base model fitted on the real outcome
    - Exposure coefficient replaced by the target effect, residuals resampled
    - Synthetic outcome regressed on the exposure, controls and fixed effects
    """

    def get_name(self) -> str:
        return "OLS"

    def _generate_outcomes(
        self,
        df: pd.DataFrame,
        cell: ParameterCell,
        spec: ModelSpec,
        rng: np.random.Generator
    ) -> Tuple[pd.DataFrame, float]:
        """Generate outcomes: y* = fitted + (beta - beta_hat) * x + e*."""
        y_synth, true_effect = self.outcome_gen.reparameterize(
            df, self.ols_base(spec), cell.percent_effect_size, rng
        )
        df[SYNTHETIC_OUTCOME] = y_synth
        return df, true_effect

    def estimation_spec(self, spec: ModelSpec) -> ModelSpec:
        return self.ols_base(spec).with_outcome(SYNTHETIC_OUTCOME)
