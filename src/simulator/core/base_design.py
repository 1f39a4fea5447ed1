"""Abstract base class for all identification designs."""

import numpy as np
import pandas as pd

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, Optional, Tuple

from estimators import EstimationError, EstimationResult, FixestEstimator, ModelSpec

from .data_structures import ParameterCell, SimulationSample

from ..components.treatment import TreatmentAssigner
from ..components.outcomes import OutcomeGenerator


SYNTHETIC_OUTCOME = 'y_synth'


class BaseDesign(ABC):
    """Abstract base class for identification designs.

    A design turns a real study sample into a synthetic dataset with a known
    effect and re-estimates that effect with its identification strategy.
    """

    def __init__(self, config: Optional[Dict] = None, estimator: Optional[FixestEstimator] = None):
        """Initialize design with configuration."""
        self.config = config or {}
        self.estimator = estimator or FixestEstimator()

        # Initialize components
        self.treatment_assigner = TreatmentAssigner(self.config.get('treatment'))
        self.outcome_gen = OutcomeGenerator(self.estimator)

    @abstractmethod
    def get_name(self) -> str:
        pass

    @abstractmethod
    def _generate_outcomes(
        self,
        df: pd.DataFrame,
        cell: ParameterCell,
        spec: ModelSpec,
        rng: np.random.Generator
    ) -> Tuple[pd.DataFrame, float]:
        """Add the synthetic outcome column; return the frame and true effect."""
        pass

    @abstractmethod
    def estimation_spec(self, spec: ModelSpec) -> ModelSpec:
        """Specification estimated on the synthetic data."""
        pass

    def generate(
        self,
        sample: pd.DataFrame,
        cell: ParameterCell,
        spec: ModelSpec,
        rng: np.random.Generator
    ) -> SimulationSample:
        """Main generation pipeline.

        Args:
            sample: Study sample drawn from the panel
            cell: Parameter cell being simulated
            spec: Base model on the real outcome
            rng: Random generator of the replicate

        Returns:
            Synthetic sample with its true effect
        """
        df = self._complete_cases(sample, self.ols_base(spec))
        df = self.treatment_assigner.assign(
            df,
            quasi_exp=cell.quasi_exp,
            p_obs_treat=cell.p_obs_treat,
            rng=rng,
            pollutant=spec.exposure
        )
        df, true_effect = self._generate_outcomes(df, cell, spec, rng)

        self._validate_data(df, len(sample))

        return SimulationSample(
            data=df,
            true_effect=true_effect,
            metadata=self._get_metadata(cell, df)
        )

    def estimate(self, simulated: SimulationSample, spec: ModelSpec) -> EstimationResult:
        """Estimate the effect on the defined observations of a synthetic sample."""
        data = simulated.data
        if 'treated' in data.columns:
            data = data.loc[data['treated'].notna()]
        return self.estimator.estimate(data, self.estimation_spec(spec))

    def run(
        self,
        sample: pd.DataFrame,
        cell: ParameterCell,
        spec: ModelSpec,
        rng: np.random.Generator
    ) -> Tuple[SimulationSample, EstimationResult]:
        """Generate a synthetic sample and estimate its effect."""
        simulated = self.generate(sample, cell, spec, rng)
        return simulated, self.estimate(simulated, spec)

    @staticmethod
    def ols_base(spec: ModelSpec) -> ModelSpec:
        """Base specification without instrument."""
        return replace(spec, instrument=None)

    def _complete_cases(self, sample: pd.DataFrame, spec: ModelSpec) -> pd.DataFrame:
        self.estimator.validate(sample, spec)
        return sample.dropna(subset=spec.columns).reset_index(drop=True)

    def _validate_data(self, df: pd.DataFrame, n_input: int):
        if df.empty:
            raise EstimationError(f"No complete observations left out of {n_input}")
        if not np.isfinite(df[SYNTHETIC_OUTCOME]).all():
            raise EstimationError("Synthetic outcome contains non-finite values")

    def _get_metadata(self, cell: ParameterCell, df: pd.DataFrame) -> Dict:
        treated = df['treated']
        defined = treated.notna()
        return {
            'design': self.get_name(),
            'cell_id': cell.cell_id,
            'n_obs': len(df),
            'n_excluded': int((~defined).sum()),
            'share_treated': float(treated[defined].mean()) if defined.any() else np.nan,
        }
