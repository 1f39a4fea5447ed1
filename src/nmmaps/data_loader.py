"""Loading and cleaning of the NMMAPS daily city panel."""

import logging

from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd
import pyreadr


logger = logging.getLogger(__name__)

# raw NMMAPS name -> cleaned name
NMMAPS_COLUMNS = {
    'city': 'city',
    'date': 'date',
    'agecat': 'age_group',
    'death': 'death_total',
    'resp': 'death_resp',
    'cvd': 'death_cvd',
    'copd': 'death_copd',
    'accident': 'death_accident',
    'pm10tmean': 'pm10',
    'o3tmean': 'o3',
    'cotmean': 'co',
    'no2tmean': 'no2',
    'so2tmean': 'so2',
    'tmpd': 'temperature',
    'dptp': 'dewpoint',
    'rhum': 'humidity',
}

OUTCOME_GROUPS = {
    'death_cardioresp': ['death_cvd', 'death_resp'],
}

POLLUTANTS = ['pm10', 'o3', 'co', 'no2', 'so2']
WEATHER = ['temperature', 'dewpoint', 'humidity']
TEMPERATURE_COLUMNS = ['temperature', 'dewpoint']


def load_panel(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a panel stored as CSV, pickle or R data file.

    Parameters
    ----------
    path : str or Path
        File with suffix .csv, .pkl/.pickle, .rds or .RData.

    Returns
    -------
    pd.DataFrame
        The stored frame. For .RData files holding several objects the
        first one is returned.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the suffix is not supported.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Panel file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.csv':
        return pd.read_csv(path)
    if suffix in ('.pkl', '.pickle'):
        return pd.read_pickle(path)
    if suffix in ('.rds', '.rdata', '.rda'):
        objects = pyreadr.read_r(str(path))
        if not objects:
            raise ValueError(f"No data frame found in {path}")
        return next(iter(objects.values()))

    raise ValueError(f"Unsupported panel format '{path.suffix}' for {path}")


def standardize_units(
    df: pd.DataFrame,
    temperature_unit: str = 'fahrenheit'
) -> pd.DataFrame:
    """Convert temperature columns to degrees Celsius."""
    unit = temperature_unit.lower()
    if unit not in ('fahrenheit', 'celsius'):
        raise ValueError(f"Unknown temperature unit: {temperature_unit}")

    df = df.copy()
    if unit == 'fahrenheit':
        for col in TEMPERATURE_COLUMNS:
            if col in df.columns:
                df[col] = (df[col] - 32) * 5 / 9
    return df


def _collapse_age_groups(df: pd.DataFrame, outcomes: List[str]) -> pd.DataFrame:
    """Sum outcome counts over age groups; other columns are shared by the group."""
    if 'age_group' not in df.columns:
        return df
    others = [c for c in df.columns if c not in outcomes + ['city', 'date', 'age_group']]
    grouped = df.groupby(['city', 'date'], sort=False)
    collapsed = grouped[outcomes].sum(min_count=1)
    if others:
        collapsed = collapsed.join(grouped[others].first())
    collapsed = collapsed.reset_index()
    logger.info("Collapsed %d age-group rows into %d city-days", len(df), len(collapsed))
    return collapsed


def _interpolate_short_gaps(values: pd.Series, max_gap: int) -> pd.Series:
    """Linear interpolation of interior runs of at most ``max_gap`` missing values."""
    missing = values.isna()
    run_length = missing.groupby((~missing).cumsum()).transform('sum')
    filled = values.interpolate(limit_area='inside')
    return filled.where(~missing | (run_length <= max_gap))


def _impute(df: pd.DataFrame, columns: List[str], max_gap_days: int) -> pd.DataFrame:
    """Interpolate short gaps within city, then fill with the city-by-month mean."""
    df = df.copy()
    month = df['date'].dt.month
    for col in columns:
        n_missing = int(df[col].isna().sum())
        if n_missing == 0:
            continue
        df[col] = df.groupby('city', sort=False)[col].transform(
            lambda s: _interpolate_short_gaps(s, max_gap_days)
        )
        df[col] = df[col].fillna(df.groupby([df['city'], month])[col].transform('mean'))
        logger.info(
            "Imputed %d of %d missing values in '%s'",
            n_missing - int(df[col].isna().sum()), n_missing, col
        )
    return df


def clean_panel(
    raw: pd.DataFrame,
    rename: Optional[Dict[str, str]] = None,
    outcome_groups: Optional[Dict[str, List[str]]] = None,
    max_gap_days: int = 3,
    temperature_unit: str = 'fahrenheit',
    outcome: str = 'death_total'
) -> pd.DataFrame:
    """
    Clean a raw NMMAPS extract into a (city, date) panel.

    Parameters
    ----------
    raw : pd.DataFrame
        Raw records, one row per city, date and (optionally) age group.
    rename : Dict[str, str], optional
        Raw to cleaned column names; defaults to ``NMMAPS_COLUMNS``.
    outcome_groups : Dict[str, List[str]], optional
        Aggregate outcomes built as the sum of their components; defaults
        to ``OUTCOME_GROUPS``. Groups with missing components are skipped.
    max_gap_days : int, default=3
        Longest run of missing days filled by interpolation.
    temperature_unit : str, default='fahrenheit'
        Unit of the raw temperature columns.
    outcome : str, default='death_total'
        Rows where this column is missing after cleaning are dropped.

    Returns
    -------
    pd.DataFrame
        Panel sorted by city and date, unique on (city, date), with
        temperatures in Celsius, ``temperature_sq`` and the calendar fields
        ``year``, ``month``, ``dow`` and ``doy``.
    """
    rename = NMMAPS_COLUMNS if rename is None else rename
    outcome_groups = OUTCOME_GROUPS if outcome_groups is None else outcome_groups

    df = raw.rename(columns=rename)
    missing = [col for col in ('city', 'date') if col not in df.columns]
    if missing:
        raise ValueError(f"Panel is missing key columns: {missing}")

    df['city'] = df['city'].astype(str)
    df['date'] = pd.to_datetime(df['date'])

    key = ['city', 'date'] + (['age_group'] if 'age_group' in df.columns else [])
    n_dupes = int(df.duplicated(key).sum())
    if n_dupes:
        logger.warning("Dropping %d duplicated %s rows", n_dupes, tuple(key))
        df = df.drop_duplicates(key, keep='first')

    count_cols = [c for c in df.columns if c.startswith('death_')]
    df = _collapse_age_groups(df, count_cols)

    for name, components in outcome_groups.items():
        absent = [c for c in components if c not in df.columns]
        if absent:
            logger.warning("Skipping outcome '%s': missing components %s", name, absent)
            continue
        # a group is missing when any component is
        df[name] = df[components].sum(axis=1, min_count=len(components))

    df = standardize_units(df, temperature_unit)
    df = df.sort_values(['city', 'date']).reset_index(drop=True)

    fill_cols = [c for c in POLLUTANTS + WEATHER if c in df.columns]
    df = _impute(df, fill_cols, max_gap_days)

    if outcome in df.columns:
        undefined = df[outcome].isna()
        if undefined.any():
            logger.warning("Dropping %d rows with missing '%s'", int(undefined.sum()), outcome)
            df = df.loc[~undefined].reset_index(drop=True)
    else:
        logger.warning("Outcome column '%s' not found; no rows dropped", outcome)

    if 'temperature' in df.columns:
        df['temperature_sq'] = df['temperature'] ** 2
    df['year'] = df['date'].dt.year
    df['month'] = df['date'].dt.month
    df['dow'] = df['date'].dt.dayofweek
    df['doy'] = df['date'].dt.dayofyear

    return df


def summarize_panel(panel: pd.DataFrame) -> Dict[str, object]:
    """Counts of cities, days and rows, plus the share of missing values per column."""
    missing = panel.isna().mean()
    return {
        'n_cities': int(panel['city'].nunique()),
        'n_days': int(panel['date'].nunique()),
        'n_rows': len(panel),
        'start': panel['date'].min(),
        'end': panel['date'].max(),
        'missing_share': {col: float(share) for col, share in missing.items() if share > 0},
    }
