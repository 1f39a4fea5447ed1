"""Utility functions for simulation."""

import hashlib

import numpy as np
import pandas as pd

from typing import Union


def replicate_seed(base_seed: int, cell_id: str, rep: int) -> int:
    """Derive the seed of one replicate.

    The seed depends only on the run seed, the cell and the repetition
    index, so a replicate draws the same numbers whatever batch or worker
    executes it.

    Args:
        base_seed: Run-level seed from the configuration
        cell_id: Hexadecimal cell identifier
        rep: Repetition index within the cell

    Returns:
        32-bit integer seed
    """
    sequence = np.random.SeedSequence([int(base_seed), int(cell_id, 16) % (2 ** 32), int(rep)])
    return int(sequence.generate_state(1)[0])


def run_fingerprint(panel: pd.DataFrame, base_seed: int) -> str:
    """Identifier of the run seed and panel contents that replicates were drawn from."""
    digest = hashlib.sha1(str(int(base_seed)).encode('utf-8'))
    digest.update(pd.util.hash_pandas_object(panel, index=True).to_numpy().tobytes())
    digest.update(','.join(map(str, panel.columns)).encode('utf-8'))
    return digest.hexdigest()[:12]


def make_rng(seed: Union[int, np.random.Generator, None]) -> np.random.Generator:
    """Return a Generator, passing existing generators through."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def percent_rank(values: pd.Series) -> pd.Series:
    """Rank scaled to [0, 1]: (rank - 1) / (n - 1), ties get their mean rank."""
    n = values.notna().sum()
    if n <= 1:
        return pd.Series(np.where(values.notna(), 0.0, np.nan), index=values.index)
    return (values.rank(method='average') - 1) / (n - 1)


def signed_poisson(
    lam: float,
    size: int,
    rng: np.random.Generator
) -> np.ndarray:
    """Draw Poisson counts with mean |lam| carrying the sign of lam."""
    return np.sign(lam) * rng.poisson(abs(lam), size=size)
