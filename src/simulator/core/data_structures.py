"""Data structures for simulation inputs and outputs."""

import hashlib
import json

import numpy as np
import pandas as pd

from dataclasses import asdict, dataclass, field, fields
from typing import Dict, Optional


ID_METHODS = ('reduced_form', 'RDD', 'OLS', 'IV')
QUASI_EXPERIMENTS = ('random_days', 'alert', 'none')

# quasi-experiment forced by each identification method (None: free choice)
REQUIRED_QUASI_EXP = {
    'reduced_form': None,
    'RDD': 'alert',
    'OLS': 'none',
    'IV': 'none',
}

# parameters read by a single identification method; neutral elsewhere
METHOD_PARAMETERS = {
    'iv_strength': ('IV', 0.0),
}

PARAM_COLUMNS = [
    'n_days', 'n_cities', 'p_obs_treat', 'percent_effect_size',
    'id_method', 'quasi_exp', 'iv_strength', 'formula',
]


def normalise_id_method(id_method: str) -> str:
    """Map case variants such as 'rdd' or 'Reduced_Form' to canonical names."""
    lookup = {name.lower(): name for name in ID_METHODS}
    key = str(id_method).strip().lower()
    if key not in lookup:
        raise ValueError(f"Unknown identification method: {id_method}. Choose from {ID_METHODS}")
    return lookup[key]


@dataclass(frozen=True)
class ParameterCell:
    """One simulation scenario.

    A cell is normalised on construction: methods that imply a particular
    quasi-experiment (RDD needs an alert threshold, OLS and IV use the raw
    exposure) get it regardless of what was requested, and parameters a
    method never reads (``iv_strength`` outside IV) are set to a neutral
    value so they cannot split otherwise identical cells.
    """
    n_days: int
    n_cities: int
    p_obs_treat: float
    percent_effect_size: float
    id_method: str
    formula: str
    quasi_exp: str = 'random_days'
    iv_strength: float = 0.0

    def __post_init__(self):
        id_method = normalise_id_method(self.id_method)
        quasi_exp = REQUIRED_QUASI_EXP[id_method] or self.quasi_exp
        if id_method == 'reduced_form' and quasi_exp == 'none':
            raise ValueError("The reduced form needs a binary treatment ('random_days' or 'alert')")
        if quasi_exp not in QUASI_EXPERIMENTS:
            raise ValueError(f"Unknown quasi-experiment: {quasi_exp}. Choose from {QUASI_EXPERIMENTS}")
        if int(self.n_days) < 1 or int(self.n_cities) < 1:
            raise ValueError("n_days and n_cities must be positive")
        if not 0 < float(self.p_obs_treat) < 1:
            raise ValueError(f"p_obs_treat must be in (0, 1), got {self.p_obs_treat}")
        if float(self.iv_strength) < 0:
            raise ValueError(f"iv_strength must be non-negative, got {self.iv_strength}")

        object.__setattr__(self, 'id_method', id_method)
        object.__setattr__(self, 'quasi_exp', quasi_exp)
        object.__setattr__(self, 'n_days', int(self.n_days))
        object.__setattr__(self, 'n_cities', int(self.n_cities))
        object.__setattr__(self, 'p_obs_treat', float(self.p_obs_treat))
        object.__setattr__(self, 'percent_effect_size', float(self.percent_effect_size))
        object.__setattr__(self, 'iv_strength', float(self.iv_strength))
        for name, (method, neutral) in METHOD_PARAMETERS.items():
            if id_method != method:
                object.__setattr__(self, name, neutral)

    @property
    def cell_id(self) -> str:
        """Stable identifier derived from the parameter values."""
        payload = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha1(payload.encode('utf-8')).hexdigest()[:12]

    def to_dict(self) -> Dict:
        return {name: getattr(self, name) for name in PARAM_COLUMNS}

    @classmethod
    def from_dict(cls, params: Dict) -> 'ParameterCell':
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in params.items() if k in known})


@dataclass
class ReplicateResult:
    """Outcome of one Monte Carlo draw for one parameter cell."""
    cell_id: str
    rep: int
    seed: int
    estimate: float
    std_error: float
    p_value: float
    n_obs: int
    true_effect: float
    f_stat: float = np.nan
    dof: float = np.nan
    share_treated: float = np.nan
    n_excluded: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class SimulationSample:
    """Synthetic dataset produced by a design for one replicate."""
    data: pd.DataFrame
    true_effect: float
    metadata: Dict = field(default_factory=dict)

    def __post_init__(self):
        """Validate data structure."""
        required_columns = ['city', 'date', 'y_synth']

        missing = set(required_columns) - set(self.data.columns)
        if missing:
            raise ValueError(f"Data missing required columns: {missing}")
        if not np.isfinite(self.true_effect):
            raise ValueError(f"True effect must be finite, got {self.true_effect}")
