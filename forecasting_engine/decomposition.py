from typing import Sequence

import numpy as np

from .custom_exceptions import InvalidWindowError
from .schemas import SeasonalComponents


def centered_moving_average(series: Sequence[float], half_window: int) -> np.ndarray:
    """Centered mean over [i - half_window, i + half_window], clipped at the series edges."""
    values = np.asarray(series, dtype=float)
    n = values.size
    trend = np.empty(n)
    for i in range(n):
        start = max(0, i - half_window)
        end = min(n, i + half_window + 1)
        trend[i] = values[start:end].mean()
    return trend


def decompose(series: Sequence[float], season_length: int = 7) -> SeasonalComponents:
    """
    Additive decomposition into trend, seasonal and residual components.

    The seasonal value at position i is the average detrended value over all
    positions sharing i mod season_length, so the three components always sum
    back to the input.
    """
    if season_length <= 0:
        raise InvalidWindowError(f"Season length must be positive, got {season_length}.")

    values = np.asarray(series, dtype=float)
    if values.size == 0:
        return SeasonalComponents(trend=[], seasonal=[], residual=[])

    trend = centered_moving_average(values, season_length // 2)
    detrended = values - trend

    positions = np.arange(values.size) % season_length
    pattern = np.zeros(season_length)
    for k in range(season_length):
        members = detrended[positions == k]
        if members.size:
            pattern[k] = members.mean()

    seasonal = pattern[positions]
    residual = values - trend - seasonal

    return SeasonalComponents(
        trend=trend.tolist(),
        seasonal=seasonal.tolist(),
        residual=residual.tolist(),
    )
