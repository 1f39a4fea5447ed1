"""Treatment assignment for the quasi-experimental designs."""

import logging

import numpy as np
import pandas as pd

from typing import Dict, Optional

from ..core.utils import percent_rank


logger = logging.getLogger(__name__)


class TreatmentAssigner:
    """Assigns a binary treatment indicator to every observation.

    Three quasi-experiments are supported:

    - ``random_days``: independent Bernoulli draws with probability
      ``p_obs_treat``.
    - ``alert``: an alert is issued when the pollutant crosses a threshold in
      its quantile range. Only observations inside a bandwidth around the
      threshold are kept; the others are undefined (NaN).
    - ``none``: every observation is treated.
    """

    def __init__(self, config: Optional[Dict] = None):
        """Initialize treatment assigner.

        Args:
            config: Treatment configuration from YAML. ``threshold_jitter``
                is the largest share of the quantile range the alert window
                may lose, ``min_window_obs`` the window size under which a
                warning is logged.
        """
        config = config or {}
        self.threshold_jitter = float(config.get('threshold_jitter', 0.5))
        self.min_window_obs = int(config.get('min_window_obs', 30))

        if not 0 <= self.threshold_jitter < 1:
            raise ValueError(f"threshold_jitter must be in [0, 1), got {self.threshold_jitter}")

    def assign(
        self,
        df: pd.DataFrame,
        quasi_exp: str,
        p_obs_treat: float,
        rng: np.random.Generator,
        pollutant: Optional[str] = None
    ) -> pd.DataFrame:
        """Assign treatments.

        Args:
            df: Study sample
            quasi_exp: 'random_days', 'alert' or 'none'
            p_obs_treat: Target proportion of treated observations
            rng: Random generator of the replicate
            pollutant: Column driving alerts (required for 'alert')

        Returns:
            pd.DataFrame: Copy of df with a float 'treated' column (1, 0 or
            NaN). Alerts also add 'running' (pollutant rank centred on the
            threshold) and 'treated_x_running'.
        """
        df = df.copy()

        if quasi_exp == 'random_days':
            self._check_probability(p_obs_treat)
            df['treated'] = rng.binomial(1, p_obs_treat, size=len(df)).astype(float)
        elif quasi_exp == 'alert':
            self._check_probability(p_obs_treat)
            if pollutant is None or pollutant not in df.columns:
                raise ValueError(f"Alert assignment needs a pollutant column, got {pollutant!r}")
            df = self._assign_alert(df, p_obs_treat, rng, pollutant)
        elif quasi_exp == 'none':
            df['treated'] = 1.0
        else:
            raise ValueError(f"Unknown quasi-experiment: {quasi_exp}")

        return df

    def alert_window(self, p_obs_treat: float, rng: np.random.Generator) -> Dict[str, float]:
        """Draw the alert threshold and its symmetric bandwidth.

        A window covering a share ``w`` of the quantile range is drawn in
        ``[1 - threshold_jitter, 1]``. For ``p <= 0.5`` the window is the top
        of the range and the threshold sits at ``1 - p * w``; otherwise it
        is the bottom of the range with the threshold at ``(1 - p) * w``. The
        bandwidth around the threshold is symmetric and clipped at the edge
        of the range, which makes the treated share inside the window equal
        to ``p``.

        Returns:
            dict: 'threshold', 'bandwidth', 'lower' and 'upper' quantiles
        """
        width = rng.uniform(1 - self.threshold_jitter, 1)
        if p_obs_treat <= 0.5:
            threshold = 1 - p_obs_treat * width
            bandwidth = (1 - p_obs_treat) * width
        else:
            threshold = (1 - p_obs_treat) * width
            bandwidth = p_obs_treat * width

        return {
            'threshold': threshold,
            'bandwidth': bandwidth,
            'lower': max(threshold - bandwidth, 0.0),
            'upper': min(threshold + bandwidth, 1.0),
        }

    def _assign_alert(
        self,
        df: pd.DataFrame,
        p_obs_treat: float,
        rng: np.random.Generator,
        pollutant: str
    ) -> pd.DataFrame:
        window = self.alert_window(p_obs_treat, rng)
        rank = percent_rank(df[pollutant])

        inside = rank.between(window['lower'], window['upper'])
        treated = np.where(rank > window['threshold'], 1.0, 0.0)

        df['treated'] = np.where(inside, treated, np.nan)
        df['running'] = rank - window['threshold']
        df['treated_x_running'] = df['treated'] * df['running']

        n_inside = int(inside.sum())
        if n_inside < self.min_window_obs:
            # undefined observations are dropped downstream; small windows
            # can move the realised treated share away from the target
            logger.warning(
                "Alert window keeps only %d of %d observations (target share %.2f)",
                n_inside, len(df), p_obs_treat
            )
        return df

    @staticmethod
    def _check_probability(p_obs_treat: float):
        if not 0 < p_obs_treat < 1:
            raise ValueError(f"p_obs_treat must be in (0, 1), got {p_obs_treat}")
