"""Instrumental variable design with a simulated instrument."""

import numpy as np
import pandas as pd

from dataclasses import replace
from typing import Tuple

from estimators import ModelSpec

from ..core.base_design import BaseDesign, SYNTHETIC_OUTCOME
from ..core.data_structures import ParameterCell


INSTRUMENT = 'instrument'


class IVDesign(BaseDesign):
    """IV design.

    - Binary instrument drawn with probability p_obs_treat
    - Exposure shifted by iv_strength standard deviations on instrumented
      observations
    - Outcome rebuilt as in the OLS design with the shifted exposure
    - Two-stage least squares with the simulated instrument
    """

    def get_name(self) -> str:
        return "IV"

    def _generate_outcomes(
        self,
        df: pd.DataFrame,
        cell: ParameterCell,
        spec: ModelSpec,
        rng: np.random.Generator
    ) -> Tuple[pd.DataFrame, float]:
        """Generate outcomes with an instrumented exposure shift."""
        base = self.ols_base(spec)
        instrument = rng.binomial(1, cell.p_obs_treat, size=len(df)).astype(float)
        exposure_iv = self.outcome_gen.shift_exposure(df[base.exposure], instrument, cell.iv_strength)

        y_synth, true_effect = self.outcome_gen.reparameterize(
            df, base, cell.percent_effect_size, rng, exposure_values=exposure_iv
        )

        df[INSTRUMENT] = instrument
        df[base.exposure] = exposure_iv
        df[SYNTHETIC_OUTCOME] = y_synth
        return df, true_effect

    def estimation_spec(self, spec: ModelSpec) -> ModelSpec:
        return replace(self.ols_base(spec), instrument=INSTRUMENT).with_outcome(SYNTHETIC_OUTCOME)
