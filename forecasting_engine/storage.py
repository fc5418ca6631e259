# forecasting_engine/storage.py
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, text
from sqlalchemy.engine import Engine

from .db_utils import get_db_engine
from .schemas import InventoryItem, ModelMetricsRecord, PredictionRecord, SalesObservation

logger = logging.getLogger(__name__)

metadata = MetaData()

# Timestamps are stored as ISO-8601 strings so they sort and compare lexically
sales_table = Table(
    "sales", metadata,
    Column("id", Integer, primary_key=True),
    Column("item_name", String, nullable=False, index=True),
    Column("category", String, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("revenue", Float, nullable=False),
    Column("date", String, nullable=False, index=True),
)

inventory_table = Table(
    "inventory", metadata,
    Column("id", Integer, primary_key=True),
    Column("item_name", String, nullable=False, unique=True),
    Column("category", String, nullable=False),
    Column("current_stock", Integer, nullable=False),
    Column("minimum_stock", Integer, nullable=False),
    Column("max_stock", Integer, nullable=False),
)

predictions_table = Table(
    "predictions", metadata,
    Column("id", Integer, primary_key=True),
    Column("item_name", String, nullable=False),
    Column("category", String, nullable=False),
    Column("predicted_quantity", Float, nullable=False),
    Column("confidence", Float, nullable=False),
    Column("prediction_date", String, nullable=False, index=True),
    Column("forecast_period", String, nullable=False),
)

model_metrics_table = Table(
    "model_metrics", metadata,
    Column("id", Integer, primary_key=True),
    Column("model_name", String, nullable=False),
    Column("accuracy", Float, nullable=False),
    Column("rmse", Float, nullable=False),
    Column("f1_score", Float, nullable=False),
    Column("precision", Float, nullable=False),
    Column("recall", Float, nullable=False),
    Column("last_training", String, nullable=False),
)


class SalesStore:
    """Keyed store for sales, inventory, predictions and model metrics history."""

    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or get_db_engine()
        metadata.create_all(self.engine)

    # --- Sales ---
    def add_sales(self, observations: Iterable[SalesObservation]) -> int:
        rows = [
            {**o.model_dump(exclude={"date"}), "date": o.date.isoformat()}
            for o in observations
        ]
        if not rows:
            return 0
        insert_sql = text("""
            INSERT INTO sales (item_name, category, quantity, revenue, date)
            VALUES (:item_name, :category, :quantity, :revenue, :date)
        """)
        with self.engine.begin() as connection:
            connection.execute(insert_sql, rows)
        logger.info(f"Inserted {len(rows)} sales records.")
        return len(rows)

    def list_sales(
        self,
        item_filter: Optional[str] = None,
        date_range: Optional[Tuple[datetime, datetime]] = None,
    ) -> List[SalesObservation]:
        """Sales ordered by date, ties in insertion order."""
        clauses = []
        params = {}
        if item_filter is not None:
            clauses.append("item_name = :item_name")
            params["item_name"] = item_filter
        if date_range is not None:
            start, end = date_range
            clauses.append("date >= :start AND date <= :end")
            params["start"] = start.isoformat()
            params["end"] = end.isoformat()

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        query = text(f"""
            SELECT item_name, category, quantity, revenue, date
            FROM sales
            {where}
            ORDER BY date ASC, id ASC
        """)
        with self.engine.connect() as connection:
            results = connection.execute(query, params).mappings().all()
        return [SalesObservation.model_validate(dict(row)) for row in results]

    # --- Inventory ---
    def add_inventory(self, item: InventoryItem) -> InventoryItem:
        """Inserts an inventory item, replacing the stock levels of an existing one."""
        params = item.model_dump()
        update_sql = text("""
            UPDATE inventory
            SET category = :category, current_stock = :current_stock,
                minimum_stock = :minimum_stock, max_stock = :max_stock
            WHERE item_name = :item_name
        """)
        insert_sql = text("""
            INSERT INTO inventory (item_name, category, current_stock, minimum_stock, max_stock)
            VALUES (:item_name, :category, :current_stock, :minimum_stock, :max_stock)
        """)
        with self.engine.begin() as connection:
            if connection.execute(update_sql, params).rowcount == 0:
                connection.execute(insert_sql, params)
        return item

    def get_inventory_item(self, item_name: str) -> Optional[InventoryItem]:
        query = text("""
            SELECT item_name, category, current_stock, minimum_stock, max_stock
            FROM inventory
            WHERE item_name = :item_name
        """)
        with self.engine.connect() as connection:
            row = connection.execute(query, {"item_name": item_name}).mappings().first()
        return InventoryItem.model_validate(dict(row)) if row else None

    def update_inventory(self, item_name: str, updates: Dict[str, Any]) -> Optional[InventoryItem]:
        """Applies a partial update to an existing item. Returns None if the item is unknown."""
        existing = self.get_inventory_item(item_name)
        if existing is None:
            return None
        updated = InventoryItem.model_validate({**existing.model_dump(), **updates, "item_name": item_name})
        return self.add_inventory(updated)

    def list_inventory(self) -> List[InventoryItem]:
        query = text("""
            SELECT item_name, category, current_stock, minimum_stock, max_stock
            FROM inventory
            ORDER BY item_name ASC
        """)
        with self.engine.connect() as connection:
            results = connection.execute(query).mappings().all()
        return [InventoryItem.model_validate(dict(row)) for row in results]

    # --- Predictions ---
    def save_predictions(self, predictions: Iterable[PredictionRecord]) -> int:
        rows = [
            {**p.model_dump(exclude={"prediction_date"}), "prediction_date": p.prediction_date.isoformat()}
            for p in predictions
        ]
        if not rows:
            return 0
        insert_sql = text("""
            INSERT INTO predictions
            (item_name, category, predicted_quantity, confidence, prediction_date, forecast_period)
            VALUES (:item_name, :category, :predicted_quantity, :confidence, :prediction_date, :forecast_period)
        """)
        with self.engine.begin() as connection:
            connection.execute(insert_sql, rows)
        return len(rows)

    def predictions_for_date(self, day: date) -> List[PredictionRecord]:
        """The most recently stored prediction per item for `day`, highest confidence first."""
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        query = text("""
            SELECT item_name, category, predicted_quantity, confidence, prediction_date, forecast_period
            FROM predictions
            WHERE prediction_date >= :start AND prediction_date < :end
            ORDER BY id DESC
        """)
        with self.engine.connect() as connection:
            results = connection.execute(query, {"start": start.isoformat(), "end": end.isoformat()}).mappings().all()

        latest = {}
        for row in results:
            latest.setdefault(row["item_name"], PredictionRecord.model_validate(dict(row)))
        return sorted(latest.values(), key=lambda p: p.confidence, reverse=True)

    # --- Model metrics ---
    def record_model_metrics(self, record: ModelMetricsRecord) -> ModelMetricsRecord:
        params = {**record.model_dump(exclude={"last_training"}), "last_training": record.last_training.isoformat()}
        insert_sql = text("""
            INSERT INTO model_metrics (model_name, accuracy, rmse, f1_score, precision, recall, last_training)
            VALUES (:model_name, :accuracy, :rmse, :f1_score, :precision, :recall, :last_training)
        """)
        with self.engine.begin() as connection:
            connection.execute(insert_sql, params)
        return record

    def model_metrics_history(self, limit: Optional[int] = None) -> List[ModelMetricsRecord]:
        """Recorded metrics, newest first."""
        query = text(f"""
            SELECT model_name, accuracy, rmse, f1_score, precision, recall, last_training
            FROM model_metrics
            ORDER BY id DESC
            {"LIMIT :limit" if limit else ""}
        """)
        with self.engine.connect() as connection:
            results = connection.execute(query, {"limit": limit} if limit else {}).mappings().all()
        return [ModelMetricsRecord.model_validate(dict(row)) for row in results]

    def latest_model_metrics(self) -> Optional[ModelMetricsRecord]:
        history = self.model_metrics_history(limit=1)
        return history[0] if history else None
