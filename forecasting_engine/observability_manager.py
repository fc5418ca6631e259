from datetime import datetime
from typing import List, Optional

from .schemas import AggregateMetrics, ModelMetricsRecord
from .storage import SalesStore

BASIC_MODEL_NAME = "Moving Average + Trend"

def record_forecast_metrics(store: SalesStore, metrics: AggregateMetrics, trained_at: datetime) -> ModelMetricsRecord:
    """
    Stores the aggregate metrics of a basic forecast run.
    """
    record = ModelMetricsRecord(model_name=BASIC_MODEL_NAME, last_training=trained_at, **metrics.model_dump())
    return store.record_model_metrics(record)

def get_latest_metrics(store: SalesStore) -> Optional[ModelMetricsRecord]:
    """
    Retrieves the most recently recorded model metrics.
    """
    return store.latest_model_metrics()

def get_metrics_history(store: SalesStore, limit: Optional[int] = None) -> List[ModelMetricsRecord]:
    """
    Retrieves the recorded model metrics, newest first.
    """
    return store.model_metrics_history(limit)
