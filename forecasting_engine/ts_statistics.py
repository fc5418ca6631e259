"""
Numeric primitives shared by every forecaster.

All functions are pure and accept any sequence of numbers. Standard deviations
are population deviations (divide by n), which the confidence and anomaly
scores depend on.
"""
import math
from typing import List, Sequence

import numpy as np

from .custom_exceptions import InvalidWindowError
from .schemas import LinearTrend


def _as_array(series: Sequence[float]) -> np.ndarray:
    return np.asarray(series, dtype=float)


def mean(series: Sequence[float]) -> float:
    values = _as_array(series)
    return float(values.mean()) if values.size else 0.0


def moving_average(series: Sequence[float], window: int) -> float:
    """Mean of the last `window` values, or of the whole series when it is shorter."""
    if window <= 0:
        raise InvalidWindowError(f"Moving average window must be positive, got {window}.")
    values = _as_array(series)
    if values.size == 0:
        return 0.0
    if values.size < window:
        return float(values.mean())
    return float(values[-window:].mean())


def linear_trend(series: Sequence[float]) -> LinearTrend:
    """Ordinary least squares of value against index 0..n-1."""
    y = _as_array(series)
    n = y.size
    if n < 2:
        return LinearTrend(slope=0.0, intercept=float(y[0]) if n else 0.0, r2=0.0)

    x = np.arange(n, dtype=float)
    sum_x, sum_y = x.sum(), y.sum()
    sum_xy, sum_xx = (x * y).sum(), (x * x).sum()

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    fitted = slope * x + intercept
    ss_tot = float(((y - y.mean()) ** 2).sum())
    ss_res = float(((y - fitted) ** 2).sum())
    r2 = 1.0 if ss_tot == 0 else 1.0 - ss_res / ss_tot
    return LinearTrend(slope=float(slope), intercept=float(intercept), r2=r2)


def variance(series: Sequence[float]) -> float:
    values = _as_array(series)
    return float(values.var()) if values.size else 0.0


def std_dev(series: Sequence[float]) -> float:
    """Population standard deviation."""
    values = _as_array(series)
    return float(values.std()) if values.size else 0.0


def confidence_from_variance(series: Sequence[float], predicted_value: float) -> float:
    """
    Heuristic confidence in [0.3, 0.98] for a prediction made from `series`.

    Starts from one minus the coefficient of variation and decays the further
    the prediction sits from the historical mean, measured in standard
    deviations.
    """
    values = _as_array(series)
    if values.size == 0:
        return 0.5

    avg = float(values.mean())
    sd = float(values.std())

    cv = sd / avg if avg != 0 else 1.0
    base = max(0.3, 1.0 - cv)

    deviation = abs(predicted_value - avg) / (sd or 1.0)
    adjusted = base * math.exp(-deviation / 2)

    return min(0.98, max(0.3, adjusted))


def z_scores(series: Sequence[float]) -> List[float]:
    values = _as_array(series)
    if values.size == 0:
        return []
    sd = float(values.std())
    if sd == 0:
        return [0.0] * values.size
    return ((values - values.mean()) / sd).tolist()


def iqr_outliers(series: Sequence[float]) -> List[float]:
    """
    Values outside [Q1 - 1.5*IQR, Q3 + 1.5*IQR], in their original order.

    Quartiles are nearest-rank picks from the sorted series (indices
    floor(0.25*n) and floor(0.75*n)); this approximates, and does not
    interpolate like, numpy's default percentiles.
    """
    values = _as_array(series)
    n = values.size
    if n == 0:
        return []
    ordered = np.sort(values)
    q1 = ordered[int(math.floor(0.25 * n))]
    q3 = ordered[int(math.floor(0.75 * n))]
    iqr = q3 - q1
    lower, upper = q1 - 1.5 * iqr, q3 + 1.5 * iqr
    return [float(v) for v in values if v < lower or v > upper]
