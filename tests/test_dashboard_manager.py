from datetime import date, datetime

import pytest

from forecasting_engine.dashboard_manager import generate_demand_trends, get_dashboard_metrics, get_top_items
from forecasting_engine.observability_manager import record_forecast_metrics
from forecasting_engine.schemas import AggregateMetrics, PredictionRecord

from .conftest import MONDAY

TUESDAY = date(2024, 3, 5)


def predict(item_name, quantity, day=datetime(2024, 3, 5)):
    return PredictionRecord(
        item_name=item_name, category="Main Dishes", predicted_quantity=quantity,
        confidence=0.9, prediction_date=day,
    )


def test_dashboard_metrics(store, make_sales):
    store.add_sales(
        make_sales("Burger", [10], start=datetime(2024, 3, 3, 12))
        + make_sales("Burger", [10], start=datetime(2024, 3, 4, 12))
        + make_sales("Salad", [5], start=datetime(2024, 3, 4, 13))
    )
    store.save_predictions([predict("Burger", 22), predict("Salad", 30)])

    metrics = get_dashboard_metrics(store, MONDAY)

    assert metrics.today_demand == 15
    assert metrics.yesterday_demand == 10
    assert metrics.demand_change == pytest.approx(50.0)
    assert metrics.today_revenue == pytest.approx(187.5)
    assert metrics.revenue_forecast == 206
    assert metrics.top_item == "Salad"
    assert metrics.top_item_prediction == 30
    assert metrics.forecast_accuracy is None


def test_dashboard_metrics_report_the_latest_model_metrics(store):
    record_forecast_metrics(
        store, AggregateMetrics(accuracy=0.91, rmse=0.1, f1_score=0.9, precision=0.9, recall=0.9), datetime(2024, 3, 4, 6)
    )
    metrics = get_dashboard_metrics(store, MONDAY)
    assert metrics.forecast_accuracy == 0.91
    assert metrics.model_metrics.model_name == "Moving Average + Trend"


def test_dashboard_metrics_on_an_empty_store(store):
    metrics = get_dashboard_metrics(store, MONDAY)
    assert metrics.today_demand == metrics.yesterday_demand == 0
    assert metrics.demand_change == 0.0
    assert metrics.revenue_forecast == 0
    assert metrics.top_item is None
    assert metrics.top_item_prediction == 0.0


def test_demand_trends(store, make_sales):
    store.add_sales(
        make_sales("Burger", [99], start=datetime(2024, 3, 1, 12))
        + make_sales("Burger", [10, 10], start=datetime(2024, 3, 3, 12))
        + make_sales("Salad", [5], start=datetime(2024, 3, 4, 18))
        + make_sales("Salad", [77], start=datetime(2024, 3, 5, 9))
    )
    store.save_predictions([predict("Burger", 8, day=datetime(2024, 3, 4))])

    trends = generate_demand_trends(store, MONDAY, days=3)

    assert trends.dates == [datetime(2024, 3, 2), datetime(2024, 3, 3), datetime(2024, 3, 4)]
    assert trends.labels == ["Sat", "Sun", "Mon"]
    assert trends.actual == [0, 10, 15]
    assert trends.predicted == [0, 0, 8]


def test_demand_trends_without_sales(store):
    trends = generate_demand_trends(store, MONDAY)
    assert trends.actual == [0] * 7
    assert trends.predicted == [0] * 7
    assert trends.labels[-1] == "Mon"


def test_top_items(store, make_sales):
    store.add_sales(make_sales("Burger", [25, 20], start=datetime(2024, 3, 3)))
    store.save_predictions([
        predict("Apple Pie", 5), predict("Burger", 30), predict("Soup", 12),
        predict("Fries", 8), predict("Salad", 20),
    ])

    top = get_top_items(store, TUESDAY)

    assert [t.item_name for t in top] == ["Burger", "Salad", "Soup", "Fries"]
    assert top[0].last_quantity == 20
    assert top[0].change == pytest.approx(50.0)
    assert top[1].last_quantity is None
    assert top[1].change == 0.0
