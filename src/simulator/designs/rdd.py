"""Regression discontinuity around a pollution alert threshold."""

from estimators import ModelSpec

from ..core.base_design import SYNTHETIC_OUTCOME
from .reduced_form import ReducedFormDesign


class RDDDesign(ReducedFormDesign):
    """Regression discontinuity design.

    - Treatment from crossing an alert threshold (observations outside the
      bandwidth excluded)
    - Poisson count effect added to treated observations
    - Local linear fit: separate slopes of the running variable on each side
      of the threshold
    """

    def get_name(self) -> str:
        return "RDD"

    def estimation_spec(self, spec: ModelSpec) -> ModelSpec:
        return self.ols_base(spec).with_outcome(SYNTHETIC_OUTCOME).with_exposure(
            'treated',
            extra_covariates=('running', 'treated_x_running')
        )
