"""Identification design implementations."""

from .reduced_form import ReducedFormDesign
from .rdd import RDDDesign
from .ols import OLSDesign
from .iv import IVDesign

__all__ = ['ReducedFormDesign', 'RDDDesign', 'OLSDesign', 'IVDesign']
