from datetime import date, datetime

from forecasting_engine.inventory_manager import get_inventory_recommendations
from forecasting_engine.observability_manager import (
    BASIC_MODEL_NAME,
    get_latest_metrics,
    get_metrics_history,
    record_forecast_metrics,
)
from forecasting_engine.schemas import AggregateMetrics, InventoryItem, PredictionRecord

TUESDAY = date(2024, 3, 5)


def stock(item_name, current, minimum=5, maximum=40):
    return InventoryItem(
        item_name=item_name, category="Main Dishes",
        current_stock=current, minimum_stock=minimum, max_stock=maximum,
    )


def predict(item_name, quantity, confidence=0.9):
    return PredictionRecord(
        item_name=item_name, category="Main Dishes", predicted_quantity=quantity,
        confidence=confidence, prediction_date=datetime(2024, 3, 5),
    )


def test_restock_when_demand_exceeds_stock(store):
    store.add_inventory(stock("Burger", current=10))
    store.add_inventory(stock("Salad", current=30))
    store.save_predictions([predict("Burger", 22), predict("Salad", 12, confidence=0.8)])

    recommendations = get_inventory_recommendations(store, TUESDAY)
    burger, salad = recommendations

    assert burger.item_name == "Burger"
    assert burger.needs_restock is True
    assert burger.action == "Restock"
    assert burger.suggested_order == 22 + 5 - 10
    assert salad.needs_restock is False
    assert salad.action == "Monitor"
    assert salad.suggested_order == 0
    assert salad.confidence == 0.8


def test_suggested_order_is_capped_by_max_stock(store):
    store.add_inventory(stock("Burger", current=10, minimum=5, maximum=20))
    store.save_predictions([predict("Burger", 50)])

    recommendation = get_inventory_recommendations(store, TUESDAY)[0]
    assert recommendation.suggested_order == 10


def test_restock_items_are_listed_first(store):
    store.add_inventory(stock("Apple Pie", current=50))
    store.add_inventory(stock("Burger", current=1))
    store.save_predictions([predict("Apple Pie", 10), predict("Burger", 8)])

    assert [r.item_name for r in get_inventory_recommendations(store, TUESDAY)] == ["Burger", "Apple Pie"]


def test_item_without_prediction_is_monitored(store):
    store.add_inventory(stock("Soup", current=0))

    recommendation = get_inventory_recommendations(store, TUESDAY)[0]
    assert recommendation.predicted_demand == 0.0
    assert recommendation.confidence == 0.5
    assert recommendation.needs_restock is False


def test_forecast_metrics_are_recorded(store):
    metrics = AggregateMetrics(accuracy=0.9, rmse=0.1, f1_score=0.9, precision=0.88, recall=0.9)
    record_forecast_metrics(store, metrics, datetime(2024, 3, 4, 6))

    latest = get_latest_metrics(store)
    assert latest.model_name == BASIC_MODEL_NAME
    assert latest.accuracy == 0.9
    assert len(get_metrics_history(store)) == 1
