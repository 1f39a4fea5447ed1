"""Reduced form: binary treatment, count effect."""

import numpy as np
import pandas as pd

from typing import Tuple

from estimators import ModelSpec

from ..core.base_design import BaseDesign, SYNTHETIC_OUTCOME
from ..core.data_structures import ParameterCell


class ReducedFormDesign(BaseDesign):
    """Reduced form design.

    - Binary treatment from random days or pollution alerts
    - Poisson count effect added to treated observations
    - Outcome regressed on the treatment indicator, controls and fixed effects
    """

    def get_name(self) -> str:
        return "reduced_form"

    def _generate_outcomes(
        self,
        df: pd.DataFrame,
        cell: ParameterCell,
        spec: ModelSpec,
        rng: np.random.Generator
    ) -> Tuple[pd.DataFrame, float]:
        """Generate outcomes: y* = y + sign * Poisson(lambda) * treated."""
        y_synth, true_effect = self.outcome_gen.add_count_effect(
            df, spec.outcome, cell.percent_effect_size, rng
        )
        df[SYNTHETIC_OUTCOME] = y_synth
        return df, true_effect

    def estimation_spec(self, spec: ModelSpec) -> ModelSpec:
        return self.ols_base(spec).with_outcome(SYNTHETIC_OUTCOME).with_exposure('treated')
