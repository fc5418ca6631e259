"""
Model bank: the independently pluggable forecasting models.

Every model implements ``ForecastModel.fit_and_predict`` and returns a
``ModelResult`` with its predictions, per-step confidence and self-reported
metrics. The models are deliberately lightweight:

- ``ArimaModel`` is a weighted average of recent differences, not a
  maximum-likelihood ARIMA estimator.
- ``ExponentialSmoothingModel`` is Holt-Winters (multiplicative seasonality)
  with fixed smoothing constants.
- ``NeuralNetworkModel`` is a single linear unit trained by plain gradient
  descent for a fixed number of epochs, a toy linear fit rather than a
  production neural network.

None of them raise on short series; each degrades to a simpler method.
"""
import logging
import math
from abc import ABC, abstractmethod
from typing import List, Sequence

import numpy as np

from .context import ForecastContext
from .schemas import ModelMetrics, ModelResult

logger = logging.getLogger(__name__)

# Parameter count assumed by the simplified AIC
AIC_PARAMETERS = 3


def calculate_metrics(actual: Sequence[float], predicted: Sequence[float]) -> ModelMetrics:
    """Error and pseudo-classification scores over the overlapping length of both sequences."""
    n = min(len(actual), len(predicted))
    if n == 0:
        return ModelMetrics(
            mae=0.0, mape=0.0, rmse=0.0, r2=0.0, aic=0.0,
            accuracy=0.5, precision=0.5, recall=0.5, f1_score=0.5,
        )

    y = np.asarray(actual[:n], dtype=float)
    y_hat = np.asarray(predicted[:n], dtype=float)
    errors = y - y_hat

    mae = float(np.abs(errors).mean())
    mse = float((errors ** 2).mean())
    rmse = math.sqrt(mse)

    nonzero = y != 0
    mape = float(np.abs(errors[nonzero] / y[nonzero]).sum() / n)

    ss_tot = float(((y - y.mean()) ** 2).sum())
    ss_res = float((errors ** 2).sum())
    r2 = 1.0 if ss_tot == 0 else 1.0 - ss_res / ss_tot

    # A perfect fit has mse 0; its log term is taken as 0 to keep the score finite
    aic = (n * math.log(mse) if mse > 0 else 0.0) + 2 * AIC_PARAMETERS

    accuracy = min(1.0, max(0.0, 1.0 - mape))
    precision = max(0.3, accuracy)
    recall = max(0.3, accuracy)
    f1_score = 2 * precision * recall / (precision + recall)

    return ModelMetrics(
        mae=mae, mape=mape, rmse=rmse, r2=r2, aic=aic,
        accuracy=accuracy, precision=precision, recall=recall, f1_score=f1_score,
    )


def _tail(values: np.ndarray, length: int) -> List[float]:
    length = min(length, values.size)
    return values[values.size - length:].tolist()


def simple_exponential_smoothing(series: Sequence[float], alpha: float = 0.3) -> ModelResult:
    """One-step forecast equal to the last exponentially smoothed value."""
    values = np.asarray(series, dtype=float)
    if values.size == 0:
        smoothed = 0.0
    else:
        smoothed = float(values[0])
        for x in values[1:]:
            smoothed = alpha * float(x) + (1 - alpha) * smoothed

    predictions = [max(0.0, smoothed)]
    return ModelResult(
        name="Simple Exponential Smoothing",
        kind="exponential_smoothing",
        predictions=predictions,
        confidence=[0.7],
        metrics=calculate_metrics(_tail(values, 1), predictions),
        hyperparameters={"alpha": alpha},
    )


class ForecastModel(ABC):
    """A forecasting strategy producing a ModelResult from a quantity series."""

    @abstractmethod
    def fit_and_predict(self, series: Sequence[float], horizon: int) -> ModelResult:
        ...


class ArimaModel(ForecastModel):
    """
    ARIMA(p, d, q)-shaped heuristic.

    The series is differenced d times; the next difference is a weighted
    average of the last p differences with weights 1/(i+1), i=0 being the most
    recent, and is then integrated back onto the last observed level. q is
    carried for labelling only. Confidence values are drawn from the injected
    random source, a placeholder band rather than an estimated interval.
    """

    def __init__(self, rng: np.random.Generator, p: int = 1, d: int = 1, q: int = 1):
        self.rng = rng
        self.p = p
        self.d = d
        self.q = q

    @property
    def name(self) -> str:
        return f"ARIMA({self.p},{self.d},{self.q})"

    def _next_difference(self, differences: np.ndarray) -> float:
        if self.p <= 0 or differences.size == 0:
            return 0.0
        if differences.size < self.p + 1:
            return float(differences[-1])
        recent = differences[-self.p:][::-1]
        weights = 1.0 / (np.arange(self.p) + 1.0)
        return float((recent * weights).sum() / weights.sum())

    def fit_and_predict(self, series: Sequence[float], horizon: int = 1) -> ModelResult:
        values = np.asarray(series, dtype=float)

        if values.size == 0:
            forecast = 0.0
        elif values.size <= self.d:
            forecast = float(values[-1])
        else:
            # Last value at every differencing order below d, used to integrate back
            levels = []
            differenced = values
            for _ in range(self.d):
                levels.append(float(differenced[-1]))
                differenced = np.diff(differenced)
            forecast = self._next_difference(differenced) + sum(levels)

        predictions = [max(0.0, forecast)]
        confidence = self.rng.uniform(0.8, 0.95, size=len(predictions)).tolist()

        return ModelResult(
            name=self.name,
            kind="arima",
            predictions=predictions,
            confidence=confidence,
            metrics=calculate_metrics(_tail(values, len(predictions)), predictions),
            hyperparameters={"p": self.p, "d": self.d, "q": self.q},
        )


class ExponentialSmoothingModel(ForecastModel):
    """Holt-Winters triple exponential smoothing, falling back to simple smoothing below two seasons."""

    def __init__(self, alpha: float = 0.3, beta: float = 0.3, gamma: float = 0.3, season_length: int = 7):
        self.alpha = alpha
        self.beta = beta
        self.gamma = gamma
        self.season_length = max(1, season_length)

    def fit_and_predict(self, series: Sequence[float], horizon: int = 7) -> ModelResult:
        values = np.asarray(series, dtype=float)
        n = values.size
        s = self.season_length
        if n < 2 * s:
            return simple_exponential_smoothing(values, self.alpha)

        # Seasonal indices start as the average of each position's subgroup
        seasonal = [float(values[i::s].mean()) or 1.0 for i in range(s)]
        level = values[0] / seasonal[0]
        trend = 0.0

        for i in range(1, n):
            idx = i % s
            previous_level = level
            level = self.alpha * (values[i] / (seasonal[idx] or 1.0)) + (1 - self.alpha) * (level + trend)
            trend = self.beta * (level - previous_level) + (1 - self.beta) * trend
            seasonal[idx] = self.gamma * (values[i] / (level or 1.0)) + (1 - self.gamma) * seasonal[idx]

        steps = max(1, horizon)
        predictions = []
        confidence = []
        for h in range(1, steps + 1):
            forecast = (level + h * trend) * seasonal[(n - 1 + h) % s]
            predictions.append(max(0.0, float(forecast)))
            confidence.append(max(0.5, 0.9 - h * 0.05))

        if not all(math.isfinite(p) for p in predictions):
            logger.warning("Holt-Winters produced non-finite values, using simple exponential smoothing.")
            return simple_exponential_smoothing(values, self.alpha)

        return ModelResult(
            name="Holt-Winters",
            kind="exponential_smoothing",
            predictions=predictions,
            confidence=confidence,
            metrics=calculate_metrics(_tail(values, len(predictions)), predictions[:n]),
            hyperparameters={
                "alpha": self.alpha,
                "beta": self.beta,
                "gamma": self.gamma,
                "seasonLength": s,
            },
        )


class NeuralNetworkModel(ForecastModel):
    """
    A single linear unit over sliding windows of the series.

    Inputs are divided by the series' largest absolute value before training
    so the fixed learning rate stays stable; the prediction is scaled back.
    """

    def __init__(self, rng: np.random.Generator, window_size: int = 5, learning_rate: float = 0.01, epochs: int = 100):
        self.rng = rng
        self.window_size = max(1, window_size)
        self.learning_rate = learning_rate
        self.epochs = epochs

    def fit_and_predict(self, series: Sequence[float], horizon: int = 1) -> ModelResult:
        values = np.asarray(series, dtype=float)
        w = self.window_size
        if values.size < w + 1:
            return simple_exponential_smoothing(values)

        scale = float(np.abs(values).max()) or 1.0
        scaled = values / scale
        sequences = np.lib.stride_tricks.sliding_window_view(scaled, w)[:-1]
        targets = scaled[w:]

        weights = self.rng.random(w) - 0.5
        bias = float(self.rng.random()) - 0.5

        for _ in range(self.epochs):
            for inputs, target in zip(sequences, targets):
                error = target - (inputs @ weights + bias)
                weights += self.learning_rate * error * inputs
                bias += self.learning_rate * error

        forecast = float(scaled[-w:] @ weights + bias) * scale
        if not math.isfinite(forecast):
            logger.warning("Linear unit diverged, using simple exponential smoothing.")
            return simple_exponential_smoothing(values)

        predictions = [max(0.0, forecast)]
        return ModelResult(
            name="Neural Network",
            kind="neural_network",
            predictions=predictions,
            confidence=[0.8],
            metrics=calculate_metrics(_tail(values, 1), predictions),
            hyperparameters={
                "windowSize": w,
                "learningRate": self.learning_rate,
                "epochs": self.epochs,
            },
        )


def default_models(context: ForecastContext) -> List[ForecastModel]:
    """The standard model line-up, in evaluation order."""
    return [
        ArimaModel(context.rng),
        ExponentialSmoothingModel(season_length=context.settings.season_length),
        NeuralNetworkModel(context.rng),
    ]


def run_models(models: Sequence[ForecastModel], series: Sequence[float], horizon: int) -> List[ModelResult]:
    return [model.fit_and_predict(series, horizon) for model in models]
