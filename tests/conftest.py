"""
Pytest configuration file providing shared fixtures.
"""
import numpy as np
import pandas as pd
import pytest

from estimators import FixestEstimator, ModelSpec


BASE_FORMULA = "death_total ~ co + temperature + temperature_sq | city + dow"


def make_panel(n_cities=4, n_days=400, seed=0):
    """
    Build a small NMMAPS-like cleaned panel.

    Daily deaths are Negative-Binomial around a city level with a seasonal
    temperature pattern; CO is log-normal and mildly seasonal. ``city_level``
    is constant within city (collinear with city fixed effects).
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range('2000-01-01', periods=n_days, freq='D')
    frames = []
    for i in range(n_cities):
        doy = dates.dayofyear.to_numpy()
        season = np.cos(2 * np.pi * doy / 365.25)
        temperature = 15 - 10 * season + rng.normal(0, 3, n_days)
        co = np.exp(0.2 * season + rng.normal(0, 0.4, n_days))
        mean_deaths = 40 + 5 * i + 4 * season
        dispersion = 20
        deaths = rng.negative_binomial(dispersion, dispersion / (dispersion + mean_deaths))
        frames.append(pd.DataFrame({
            'city': f"city{i}",
            'date': dates,
            'death_total': deaths.astype(float),
            'co': co,
            'temperature': temperature,
            'temperature_sq': temperature ** 2,
            'city_level': float(i),
        }))
    panel = pd.concat(frames, ignore_index=True)
    panel['month'] = panel['date'].dt.month
    panel['dow'] = panel['date'].dt.dayofweek
    panel['year'] = panel['date'].dt.year
    return panel


@pytest.fixture
def panel():
    """Synthetic cleaned panel (4 cities, 400 days)."""
    return make_panel()


@pytest.fixture
def base_spec():
    return ModelSpec.from_formula(BASE_FORMULA)


@pytest.fixture
def estimator():
    return FixestEstimator()


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def linear_data():
    """
    Cross-section with y = 2 x + 0.5 c + city effect + noise and an
    instrumented variant where x is confounded by u.
    """
    rng = np.random.default_rng(7)
    n = 600
    city = rng.integers(0, 5, n)
    c = rng.normal(size=n)
    u = rng.normal(size=n)
    z = rng.binomial(1, 0.5, n).astype(float)
    x = rng.normal(size=n)
    x_endog = 1.5 * z + u + rng.normal(size=n)
    city_effect = city * 1.0
    return pd.DataFrame({
        'city': city,
        'c': c,
        'x': x,
        'z': z,
        'x_endog': x_endog,
        'city_level': city_effect,
        'y': 2 * x + 0.5 * c + city_effect + rng.normal(size=n),
        'y_iv': 2 * x_endog + 0.5 * c + city_effect + 2 * u + rng.normal(size=n),
    })
