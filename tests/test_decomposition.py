import pytest

from forecasting_engine.custom_exceptions import InvalidWindowError
from forecasting_engine.decomposition import centered_moving_average, decompose

WEEKLY = [20, 22, 25, 27, 35, 48, 40, 21, 23, 26, 29, 36, 50, 41, 22, 24, 27, 30, 38, 52, 43]


@pytest.mark.parametrize(
    "series, season_length",
    [
        (WEEKLY, 7),
        ([20, 30] * 7, 7),
        ([5, 1, 9], 7),
        ([3.5, 8.25, 1.0, 12.0, 7.75], 2),
        ([42], 7),
    ],
)
def test_components_sum_back_to_the_series(series, season_length):
    components = decompose(series, season_length)

    assert len(components.trend) == len(components.seasonal) == len(components.residual) == len(series)
    for i, value in enumerate(series):
        rebuilt = components.trend[i] + components.seasonal[i] + components.residual[i]
        assert abs(rebuilt - value) < 1e-9


def test_trend_window_shrinks_at_the_edges():
    trend = centered_moving_average([1, 2, 3, 4, 5], half_window=1)
    assert trend.tolist() == [1.5, 2.0, 3.0, 4.0, 4.5]


def test_constant_series_has_no_seasonality():
    components = decompose([12] * 14)
    assert components.trend == [12.0] * 14
    assert components.seasonal == [0.0] * 14
    assert components.residual == [0.0] * 14


def test_seasonal_component_repeats_by_position():
    components = decompose(WEEKLY, 7)
    for i in range(7, len(WEEKLY)):
        assert components.seasonal[i] == components.seasonal[i - 7]


def test_empty_series():
    components = decompose([])
    assert (components.trend, components.seasonal, components.residual) == ([], [], [])


def test_season_length_must_be_positive():
    with pytest.raises(InvalidWindowError):
        decompose([1, 2, 3], 0)
