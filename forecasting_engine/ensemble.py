from typing import List, Optional, Sequence

from .schemas import EnsembleForecast, ModelResult

# Weight given to a model that reports no metrics
DEFAULT_WEIGHT = 0.5


def _accuracy(model: ModelResult) -> Optional[float]:
    return model.metrics.accuracy if model.metrics is not None else None


def select_best_model(models: Sequence[ModelResult]) -> ModelResult:
    """Highest self-reported accuracy; the first model wins ties."""
    if not models:
        raise ValueError("Cannot select a best model from an empty model list.")
    best = models[0]
    for model in models[1:]:
        if (_accuracy(model) or 0.0) > (_accuracy(best) or 0.0):
            best = model
    return best


def _average_step(models: Sequence[ModelResult], i: int):
    present = [m for m in models if i < len(m.predictions)]
    if not present:
        return 0.0, 0.0
    prediction = sum(m.predictions[i] for m in present) / len(present)
    confidence = sum(m.confidence[i] for m in present) / len(present)
    return prediction, confidence


def _weighted_step(models: Sequence[ModelResult], i: int):
    prediction = confidence = total_weight = 0.0
    for model in models:
        if i < len(model.predictions):
            weight = _accuracy(model)
            if weight is None:
                weight = DEFAULT_WEIGHT
            prediction += model.predictions[i] * weight
            confidence += model.confidence[i] * weight
            total_weight += weight
    if total_weight == 0:
        return 0.0, 0.0
    return prediction / total_weight, confidence / total_weight


def combine(models: Sequence[ModelResult], method: str = "weighted") -> EnsembleForecast:
    """
    Merges model outputs step by step up to the longest prediction.

    average: plain mean of the models that have a value at the step.
    weighted: mean weighted by each model's accuracy.
    best_performer: the values of the single most accurate model, 0 past its end.
    """
    if method not in ("average", "weighted", "best_performer"):
        raise ValueError(f"Unknown ensemble method '{method}'.")
    if not models:
        return EnsembleForecast()

    best = select_best_model(models) if method == "best_performer" else None
    steps = max(len(m.predictions) for m in models)
    predictions: List[float] = []
    confidences: List[float] = []

    for i in range(steps):
        if method == "average":
            prediction, confidence = _average_step(models, i)
        elif method == "weighted":
            prediction, confidence = _weighted_step(models, i)
        elif i < len(best.predictions):
            prediction, confidence = best.predictions[i], best.confidence[i]
        else:
            prediction, confidence = 0.0, 0.0

        predictions.append(max(0.0, prediction))
        confidences.append(min(1.0, max(0.0, confidence)))

    return EnsembleForecast(predictions=predictions, confidence=confidences)
