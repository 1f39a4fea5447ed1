"""Components for simulation generation."""

from .sampler import StudyPeriodSampler
from .treatment import TreatmentAssigner
from .outcomes import OutcomeGenerator

__all__ = [
    'StudyPeriodSampler',
    'TreatmentAssigner',
    'OutcomeGenerator'
]
