"""Tests for study period and city sampling."""

import logging

import numpy as np
import pytest

from simulator.components import StudyPeriodSampler


class TestDraw:

    def test_sizes(self, panel, rng):
        sample = StudyPeriodSampler(panel).draw(30, 2, rng)

        assert len(sample) == 60
        assert sample['city'].nunique() == 2
        assert sample['date'].nunique() == 30

    def test_window_is_contiguous(self, panel, rng):
        sampler = StudyPeriodSampler(panel)
        sample = sampler.draw(45, 3, rng)

        dates = np.sort(sample['date'].unique())
        start = np.searchsorted(sampler.dates, dates[0])
        np.testing.assert_array_equal(dates, sampler.dates[start:start + 45])

    def test_sorted_by_city_and_date(self, panel, rng):
        sample = StudyPeriodSampler(panel).draw(20, 3, rng)
        assert sample.equals(sample.sort_values(['city', 'date']).reset_index(drop=True))

    def test_same_seed_same_sample(self, panel):
        sampler = StudyPeriodSampler(panel)
        first = sampler.draw(50, 2, np.random.default_rng(3))
        second = sampler.draw(50, 2, np.random.default_rng(3))
        assert first.equals(second)

    def test_start_dates_vary(self, panel, rng):
        sampler = StudyPeriodSampler(panel)
        starts = {sampler.draw(10, 1, rng)['date'].min() for _ in range(20)}
        assert len(starts) > 5

    def test_panel_not_mutated(self, panel, rng):
        before = panel.copy()
        sample = StudyPeriodSampler(panel).draw(10, 2, rng)
        sample['death_total'] = 0.0
        assert panel.equals(before)


class TestClamping:

    def test_oversize_request_clamped(self, panel, rng, caplog):
        sampler = StudyPeriodSampler(panel)
        with caplog.at_level(logging.WARNING):
            sample = sampler.draw(10_000, 50, rng)

        assert len(sample) == len(panel)
        assert "using all days" in caplog.text
        assert "using all cities" in caplog.text

    @pytest.mark.parametrize("n_days, n_cities", [(0, 2), (10, 0), (-5, 1)])
    def test_non_positive_sizes(self, panel, rng, n_days, n_cities):
        with pytest.raises(ValueError):
            StudyPeriodSampler(panel).draw(n_days, n_cities, rng)

    def test_missing_key_columns(self, panel):
        with pytest.raises(ValueError, match="missing required columns"):
            StudyPeriodSampler(panel.drop(columns='city'))
