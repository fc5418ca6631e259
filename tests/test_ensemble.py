import pytest

from forecasting_engine.ensemble import combine, select_best_model
from forecasting_engine.schemas import ModelMetrics, ModelResult


def make_result(name, predictions, confidence=None, accuracy=None, kind="arima"):
    metrics = None
    if accuracy is not None:
        metrics = ModelMetrics(
            mae=0.0, mape=0.0, rmse=0.0, r2=0.0, aic=0.0,
            accuracy=accuracy, precision=max(0.3, accuracy), recall=max(0.3, accuracy), f1_score=0.5,
        )
    return ModelResult(
        name=name,
        kind=kind,
        predictions=predictions,
        confidence=confidence if confidence is not None else [0.8] * len(predictions),
        metrics=metrics,
    )


def test_average_of_two_models():
    ensemble = combine([make_result("a", [10.0]), make_result("b", [20.0])], "average")
    assert ensemble.predictions == [15.0]
    assert ensemble.confidence == [pytest.approx(0.8)]


def test_average_uses_models_present_at_each_step():
    ensemble = combine([make_result("a", [10.0, 20.0]), make_result("b", [30.0])], "average")
    assert ensemble.predictions == [20.0, 20.0]


def test_weighted_ignores_a_zero_accuracy_model():
    models = [
        make_result("a", [10.0], [0.6], accuracy=0.0),
        make_result("b", [20.0], [0.9], accuracy=1.0),
    ]
    ensemble = combine(models, "weighted")
    assert ensemble.predictions == [20.0]
    assert ensemble.confidence == [0.9]


def test_weighted_with_all_zero_weights_is_zero():
    models = [make_result("a", [10.0], accuracy=0.0), make_result("b", [20.0], accuracy=0.0)]
    ensemble = combine(models, "weighted")
    assert ensemble.predictions == [0.0]
    assert ensemble.confidence == [0.0]


def test_weighted_gives_models_without_metrics_a_default_weight():
    models = [make_result("a", [10.0]), make_result("b", [20.0], accuracy=1.0)]
    ensemble = combine(models, "weighted")
    assert ensemble.predictions == [pytest.approx((10 * 0.5 + 20) / 1.5)]


def test_best_performer_pads_with_zero():
    models = [
        make_result("long", [1.0, 2.0, 3.0], accuracy=0.4),
        make_result("short", [5.0], [0.7], accuracy=0.9),
    ]
    ensemble = combine(models, "best_performer")
    assert ensemble.predictions == [5.0, 0.0, 0.0]
    assert ensemble.confidence == [0.7, 0.0, 0.0]


def test_output_is_floored_and_clamped():
    models = [make_result("a", [-5.0], [1.5]), make_result("b", [-1.0], [1.5])]
    ensemble = combine(models, "average")
    assert ensemble.predictions == [0.0]
    assert ensemble.confidence == [1.0]


def test_unknown_method_is_rejected():
    with pytest.raises(ValueError):
        combine([make_result("a", [1.0])], "median")


def test_empty_model_list():
    ensemble = combine([], "weighted")
    assert ensemble.predictions == []
    assert ensemble.confidence == []


def test_best_model_first_wins_ties():
    first = make_result("first", [1.0], accuracy=0.8)
    second = make_result("second", [2.0], accuracy=0.8)
    assert select_best_model([first, second]) is first


def test_best_model_prefers_higher_accuracy():
    models = [make_result("a", [1.0], accuracy=0.2), make_result("b", [2.0], accuracy=0.7)]
    assert select_best_model(models).name == "b"


def test_best_model_needs_candidates():
    with pytest.raises(ValueError):
        select_best_model([])


def test_ensemble_forecast_serializes():
    ensemble = combine([make_result("a", [10.0]), make_result("b", [20.0])], "average")
    assert ensemble.model_dump() == {"predictions": [15.0], "confidence": [pytest.approx(0.8)]}
