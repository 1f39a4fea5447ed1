"""Random study period and city selection."""

import logging

import numpy as np
import pandas as pd

from typing import Tuple


logger = logging.getLogger(__name__)


class StudyPeriodSampler:
    """Draws a contiguous date window and a subset of cities from a panel.

    The panel is kept as a read-only reference; every draw returns a new
    frame.
    """

    def __init__(
        self,
        panel: pd.DataFrame,
        city_col: str = 'city',
        date_col: str = 'date'
    ):
        """Initialize sampler.

        Args:
            panel: Cleaned panel with one row per (city, date)
            city_col: Column identifying spatial units
            date_col: Column holding observation dates
        """
        missing = {city_col, date_col} - set(panel.columns)
        if missing:
            raise ValueError(f"Panel missing required columns: {missing}")

        self.panel = panel
        self.city_col = city_col
        self.date_col = date_col
        self.dates = np.sort(panel[date_col].unique())
        self.cities = np.sort(panel[city_col].unique())

    @property
    def n_available_days(self) -> int:
        return len(self.dates)

    @property
    def n_available_cities(self) -> int:
        return len(self.cities)

    def clamp(self, n_days: int, n_cities: int) -> Tuple[int, int]:
        """Limit requested sizes to what the panel offers."""
        if n_days < 1 or n_cities < 1:
            raise ValueError(f"n_days and n_cities must be positive, got {n_days}, {n_cities}")

        if n_days > self.n_available_days:
            logger.warning(
                "Requested %d days but the panel covers %d; using all days",
                n_days, self.n_available_days
            )
            n_days = self.n_available_days
        if n_cities > self.n_available_cities:
            logger.warning(
                "Requested %d cities but the panel has %d; using all cities",
                n_cities, self.n_available_cities
            )
            n_cities = self.n_available_cities
        return n_days, n_cities

    def draw(
        self,
        n_days: int,
        n_cities: int,
        rng: np.random.Generator
    ) -> pd.DataFrame:
        """Select a study window and a set of cities.

        Args:
            n_days: Number of consecutive panel dates
            n_cities: Number of cities, drawn without replacement
            rng: Random generator of the replicate

        Returns:
            pd.DataFrame: Panel rows of the selected cities and dates
        """
        n_days, n_cities = self.clamp(n_days, n_cities)

        start = rng.integers(0, self.n_available_days - n_days + 1)
        window = self.dates[start:start + n_days]
        cities = rng.choice(self.cities, size=n_cities, replace=False)

        mask = (
            self.panel[self.date_col].between(window[0], window[-1])
            & self.panel[self.city_col].isin(cities)
        )
        sample = self.panel.loc[mask].sort_values([self.city_col, self.date_col])
        return sample.reset_index(drop=True)
