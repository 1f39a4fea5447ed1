"""Regression specifications and estimators."""

from .base_estimator import BaseEstimator, EstimationResult
from .exceptions import EstimationError, ModelSpecError, PowerSimError
from .fixest_estimator import FixestEstimator
from .model_spec import ModelSpec

__all__ = [
    'BaseEstimator',
    'EstimationResult',
    'EstimationError',
    'FixestEstimator',
    'ModelSpec',
    'ModelSpecError',
    'PowerSimError',
]
