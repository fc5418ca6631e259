# forecasting_engine/schemas.py
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt, field_validator, model_validator,
)

ForecastPeriod = Literal["daily", "weekly", "monthly"]
EnsembleMethod = Literal["average", "weighted", "best_performer"]
ModelKind = Literal["arima", "exponential_smoothing", "neural_network"]

# Longest forecast horizon a request may ask for, in days
MAX_HORIZON = 365

# --- Sales Schemas ---
class SalesObservation(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_name: str = Field(min_length=1)
    category: str
    quantity: NonNegativeInt
    revenue: NonNegativeFloat
    date: datetime

    @field_validator("date")
    @classmethod
    def to_naive_utc(cls, value: datetime) -> datetime:
        """Offset-aware timestamps are converted to UTC and stored without tzinfo."""
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

class SalesIngestResponse(BaseModel):
    inserted: int
    dropped_rows: int = 0

# --- Prediction Schemas ---
class PredictionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_name: str
    category: str
    predicted_quantity: NonNegativeFloat
    confidence: float = Field(ge=0.0, le=1.0)
    prediction_date: datetime
    forecast_period: ForecastPeriod = "daily"

class AggregateMetrics(BaseModel):
    """Heuristic batch scores self-reported by the basic forecaster."""
    accuracy: float
    rmse: float
    f1_score: float
    precision: float
    recall: float

class BasicForecastResult(BaseModel):
    predictions: List[PredictionRecord]
    metrics: AggregateMetrics
    errors: Dict[str, str] = Field(default_factory=dict)

class ForecastOptions(BaseModel):
    """Request options. Unset values fall back to the configured defaults."""
    period: Optional[ForecastPeriod] = None
    horizon: Optional[int] = Field(default=None, ge=1, le=MAX_HORIZON)
    ensemble_method: Optional[EnsembleMethod] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    include_seasonality: bool = True
    include_holidays: bool = False

# --- Model Bank Schemas ---
class ModelMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    mae: float
    mape: float
    rmse: float
    r2: float
    aic: float
    accuracy: float = Field(ge=0.0, le=1.0)
    precision: float = Field(ge=0.0, le=1.0)
    recall: float = Field(ge=0.0, le=1.0)
    f1_score: float = Field(ge=0.0, le=1.0)

class ModelResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: ModelKind
    predictions: List[float] = Field(min_length=1)
    confidence: List[float]
    metrics: Optional[ModelMetrics] = None
    hyperparameters: Dict[str, Union[int, float, str, bool]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_parallel_lengths(self):
        if len(self.predictions) != len(self.confidence):
            raise ValueError(
                f"{self.name}: {len(self.predictions)} predictions but {len(self.confidence)} confidence values"
            )
        return self

# --- Advanced Forecast Schemas ---
class SeasonalComponents(BaseModel):
    trend: List[float]
    seasonal: List[float]
    residual: List[float]

class Anomaly(BaseModel):
    date: datetime
    value: float
    anomaly_score: float

class ForecastBundle(BaseModel):
    item_name: str
    category: str
    models: List[ModelResult]
    best_model: ModelResult
    ensemble_prediction: List[float]
    ensemble_confidence: List[float]
    forecast_horizon: int
    external_factors_impact: Dict[str, float]
    seasonal_components: SeasonalComponents
    anomalies: List[Anomaly]

class BatchForecast(BaseModel):
    bundles: List[ForecastBundle]
    errors: Dict[str, str] = Field(default_factory=dict)

# --- Inventory Schemas ---
class InventoryItem(BaseModel):
    item_name: str = Field(min_length=1)
    category: str
    current_stock: NonNegativeInt
    minimum_stock: NonNegativeInt
    max_stock: NonNegativeInt

class InventoryRecommendation(InventoryItem):
    predicted_demand: float
    confidence: float
    needs_restock: bool
    action: Literal["Restock", "Monitor"]
    suggested_order: int

class InventoryUpdate(BaseModel):
    """Partial inventory update; only the fields sent are changed."""
    category: Optional[str] = None
    current_stock: Optional[NonNegativeInt] = None
    minimum_stock: Optional[NonNegativeInt] = None
    max_stock: Optional[NonNegativeInt] = None

# --- Observability Schemas ---
class ModelMetricsRecord(BaseModel):
    model_name: str
    accuracy: float
    rmse: float
    f1_score: float
    precision: float
    recall: float
    last_training: datetime

# --- Dashboard Schemas ---
class DashboardMetrics(BaseModel):
    today_demand: int
    yesterday_demand: int
    demand_change: float
    today_revenue: float
    revenue_forecast: int
    top_item: Optional[str] = None
    top_item_prediction: float = 0.0
    forecast_accuracy: Optional[float] = None
    model_metrics: Optional[ModelMetricsRecord] = None

class DemandTrends(BaseModel):
    dates: List[datetime]
    labels: List[str]
    actual: List[int]
    predicted: List[float]

class TopItem(PredictionRecord):
    last_quantity: Optional[int] = None
    change: float = 0.0

# --- Working Shapes ---
class LinearTrend(BaseModel):
    model_config = ConfigDict(frozen=True)

    slope: float
    intercept: float
    r2: float

    def predict(self, index: float) -> float:
        return self.slope * index + self.intercept

class EnsembleForecast(BaseModel):
    predictions: List[float] = Field(default_factory=list)
    confidence: List[float] = Field(default_factory=list)

class IngestionReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    observations: List[SalesObservation] = Field(default_factory=list)
    dropped_rows: int = 0

class ItemSeries(BaseModel):
    """One item's validated observations, oldest first."""
    model_config = ConfigDict(frozen=True)

    item_name: str
    category: str
    observations: List[SalesObservation]

    @property
    def quantities(self) -> List[int]:
        return [o.quantity for o in self.observations]

class ItemForecast(BaseModel):
    model_config = ConfigDict(frozen=True)

    prediction: PredictionRecord
    base_prediction: float
    last_actual: float
    observation_count: int
