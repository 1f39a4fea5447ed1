"""Abstract base class for estimators."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from scipy import stats

from .model_spec import ModelSpec


@dataclass(frozen=True)
class EstimationResult:
    """Coefficient of interest extracted from a fitted model.

    ``dof`` holds the degrees of freedom of the t distribution behind
    ``p_value``; None means the p-value is based on the normal distribution.
    """
    estimate: float
    std_error: float
    p_value: float
    n_obs: int
    f_stat: Optional[float] = None
    dof: Optional[float] = None

    def critical_value(self, level: float = 0.95) -> float:
        """Two-sided critical value matching the distribution of ``p_value``."""
        q = 1 - (1 - level) / 2
        if self.dof is None:
            return float(stats.norm.ppf(q))
        return float(stats.t.ppf(q, self.dof))

    def conf_int(self, level: float = 0.95) -> tuple:
        """Symmetric confidence interval at the given level."""
        half_width = self.critical_value(level) * self.std_error
        return (self.estimate - half_width, self.estimate + half_width)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for key in ('f_stat', 'dof'):
            if result[key] is None:
                result[key] = np.nan
        return result


class BaseEstimator(ABC):
    """
    Abstract base class for regression estimators.

    All estimators used by the simulation designs must implement this
    interface.
    """

    @abstractmethod
    def fit(self, data: pd.DataFrame, spec: ModelSpec) -> Any:
        """
        Fit the model described by ``spec`` on ``data``.

        Parameters
        ----------
        data : pd.DataFrame
            Estimation sample.
        spec : ModelSpec
            Model specification.

        Returns
        -------
        Any
            Fitted model object of the underlying library.
        """
        pass

    @abstractmethod
    def extract(self, model: Any, spec: ModelSpec) -> EstimationResult:
        """
        Extract the coefficient of interest from a fitted model.

        Parameters
        ----------
        model : Any
            Object returned by :meth:`fit`.
        spec : ModelSpec
            Specification the model was fitted with.

        Returns
        -------
        EstimationResult
            Estimate, standard error, p-value and sample size.
        """
        pass

    def estimate(self, data: pd.DataFrame, spec: ModelSpec) -> EstimationResult:
        """Fit the model and extract the coefficient in one call."""
        model = self.fit(data, spec)
        return self.extract(model, spec)
