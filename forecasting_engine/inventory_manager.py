# forecasting_engine/inventory_manager.py
from datetime import date
from typing import List

from .schemas import InventoryRecommendation
from .storage import SalesStore

# Confidence reported for items without a stored prediction
UNPREDICTED_CONFIDENCE = 0.5


def get_inventory_recommendations(store: SalesStore, day: date) -> List[InventoryRecommendation]:
    """
    Compares each inventory item with its stored prediction for `day`.

    An item needs restocking when the predicted demand exceeds its current
    stock; the suggested order covers the demand plus the minimum stock,
    capped at the item's maximum stock. Restock items are listed first.
    """
    predictions = {p.item_name: p for p in store.predictions_for_date(day)}
    recommendations = []

    for item in store.list_inventory():
        prediction = predictions.get(item.item_name)
        predicted_demand = prediction.predicted_quantity if prediction else 0.0
        needs_restock = predicted_demand > item.current_stock

        suggested_order = 0
        if needs_restock:
            target = min(item.max_stock, round(predicted_demand) + item.minimum_stock)
            suggested_order = max(0, target - item.current_stock)

        recommendations.append(InventoryRecommendation(
            **item.model_dump(),
            predicted_demand=predicted_demand,
            confidence=prediction.confidence if prediction else UNPREDICTED_CONFIDENCE,
            needs_restock=needs_restock,
            action="Restock" if needs_restock else "Monitor",
            suggested_order=suggested_order,
        ))

    return sorted(recommendations, key=lambda r: not r.needs_restock)
