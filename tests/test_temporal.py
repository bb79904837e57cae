# tests/test_temporal.py
from datetime import date, timedelta

import pytest

from auto_insights import build_ai_payload, generate_insights
from auto_insights.stats.temporal import (
    count_anomalies,
    detect_changepoint,
    first_date_trend,
    linear_trend,
    month_seasonality,
    time_series_points,
    weekday_index,
    weekday_seasonality,
)
from auto_insights.types import Table


def daily_table(values, start=date(2023, 1, 1)):
    return Table.from_records([
        {'day': (start + timedelta(days=i)).isoformat(), 'value': v} for i, v in enumerate(values)
    ])


class TestLinearTrend:

    def test_upward(self):
        slope, r, r2, direction = linear_trend([1, 2, 3, 4])
        assert slope == pytest.approx(1.0)
        assert r2 == pytest.approx(1.0)
        assert r == pytest.approx(1.0)
        assert direction == 'up'

    def test_downward_carries_sign(self):
        slope, r, r2, direction = linear_trend([8, 6, 4, 2])
        assert slope == pytest.approx(-2.0)
        assert r == pytest.approx(-1.0)
        assert direction == 'down'

    def test_flat(self):
        slope, r, r2, direction = linear_trend([5, 5, 5])
        assert slope == 0
        assert r2 == 0
        assert direction == 'flat'

    def test_tiny_slope_is_flat(self):
        assert linear_trend([1.0, 1.0 + 1e-10, 1.0 + 2e-10])[3] == 'flat'


class TestChangepoint:

    def test_level_shift(self):
        cp = detect_changepoint([1] * 6 + [10] * 6)
        assert cp is not None
        assert cp.at_index == 6
        assert cp.improvement >= 0.9

    def test_constant_series(self):
        assert detect_changepoint([3] * 12) is None

    @pytest.mark.parametrize("values", [[1.1] * 6, [0.1] * 7, [0.3] * 10])
    def test_constant_inexact_floats(self, values):
        assert detect_changepoint(values) is None

    def test_too_short_for_candidates(self):
        assert detect_changepoint([1, 1, 9, 9, 9]) is None

    def test_weak_split_not_reported(self):
        assert detect_changepoint([1, 2, 1, 2, 1, 2, 1, 2, 1, 2]) is None

    def test_split_near_margin(self):
        cp = detect_changepoint([0, 0, 0, 5, 5, 5, 5, 5, 5])
        assert cp.at_index == 3


class TestAnomalies:

    def test_single_spike(self):
        assert count_anomalies([10] * 30 + [100]) == 1

    def test_constant_and_empty(self):
        assert count_anomalies([4, 4, 4]) == 0
        assert count_anomalies([]) == 0


class TestFirstDateTrend:

    def test_trend_over_sorted_points(self):
        table = daily_table([1] * 6 + [10] * 6)
        reversed_table = Table(columns=table.columns, rows=list(reversed(table.rows)))

        trend = first_date_trend(reversed_table)

        assert trend.date_col == 'day'
        assert trend.num_col == 'value'
        assert trend.dir == 'up'
        assert trend.changepoint.at_index == 6
        assert trend.anomalies == 0
        assert 0 < trend.r2 <= 1

    def test_skips_rows_without_date_or_number(self):
        table = Table.from_records([
            {'day': '2023-01-01', 'value': 1},
            {'day': None, 'value': 2},
            {'day': '2023-01-03', 'value': ''},
            {'day': '2023-01-04', 'value': 4},
            {'day': '2023-01-05', 'value': 5},
        ])
        points = time_series_points(table, 'day', 'value')
        assert [v for _, v in points] == [1.0, 4.0, 5.0]

    def test_no_date_column(self):
        table = Table.from_records([{'a': i, 'b': 'x'} for i in range(10)])
        assert first_date_trend(table) is None

    def test_too_few_points(self):
        assert first_date_trend(daily_table([1, 2])) is None


class TestSeasonality:

    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index(date(2023, 1, 1)) == 0  # Sunday
        assert weekday_index(date(2023, 1, 7)) == 6  # Saturday

    def test_weekday_peak(self):
        values = [100 if i % 7 == 0 else 1 for i in range(14)]
        season = weekday_seasonality(daily_table(values))

        assert season.best_weekday == 0
        assert season.best_weekday_avg == pytest.approx(100)

    def test_strong_month_seasonality(self):
        table = Table.from_records(
            [{'day': f'2023-01-{d:02d}', 'value': 10} for d in (1, 2, 3)]
            + [{'day': f'2023-02-{d:02d}', 'value': 10} for d in (1, 2, 3)]
            + [{'day': f'2023-03-{d:02d}', 'value': 30} for d in (1, 2, 3)]
        )
        season = month_seasonality(table)

        assert season.peak_month == 2
        assert season.trough_month == 0
        assert season.strong is True

    def test_weak_month_seasonality(self):
        table = Table.from_records(
            [{'day': f'2023-01-{d:02d}', 'value': 10} for d in (1, 2)]
            + [{'day': f'2023-02-{d:02d}', 'value': 11} for d in (1, 2)]
        )
        season = month_seasonality(table)

        assert season.peak_month == 1
        assert season.strong is False

    def test_single_bucket_is_reported(self):
        season = month_seasonality(daily_table([1, 2, 3, 4]))

        assert season.peak_month == season.trough_month == 0
        assert season.strong is False

    def test_single_weekday_is_its_own_best(self):
        values = [5, 7, 9, 11]
        table = Table.from_records([
            {'day': (date(2023, 1, 2) + timedelta(weeks=i)).isoformat(), 'value': v}
            for i, v in enumerate(values)
        ])
        season = weekday_seasonality(table)

        assert season.best_weekday == 1  # Monday
        assert season.best_weekday_avg == pytest.approx(8.0)


class TestConstantFloatSeries:

    def test_trend_is_flat_without_changepoint(self):
        trend = first_date_trend(daily_table([1.1] * 6))

        assert trend.dir == 'flat'
        assert trend.r2 == 0
        assert trend.changepoint is None
        assert trend.anomalies == 0

    def test_payload_has_no_changepoint(self):
        payload = build_ai_payload(generate_insights(daily_table([1.1] * 6)))
        assert payload['trend']['changepoint'] is None
