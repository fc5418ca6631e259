# forecasting_engine/main.py
import logging
from datetime import datetime, timedelta
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse

# Import our schemas and exceptions
from .schemas import (
    Anomaly, BasicForecastResult, BatchForecast, ForecastBundle, ForecastOptions,
    InventoryItem, InventoryRecommendation, InventoryUpdate, ModelMetricsRecord, SalesIngestResponse, SalesObservation,
    DashboardMetrics, DemandTrends, TopItem,
)
from .custom_exceptions import InvalidInputError, ItemNotFoundError

from .context import ForecastContext, build_context
from .storage import SalesStore
from .ingestion import import_sales_csv
from .prediction_manager import generate_basic_forecast
from .advanced_forecast_manager import forecast_batch
from .anomaly_detection import detect_anomalies
from .inventory_manager import get_inventory_recommendations
from .observability_manager import record_forecast_metrics, get_latest_metrics, get_metrics_history
from .dashboard_manager import get_dashboard_metrics, generate_demand_trends, get_top_items

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependencies ---
def get_context(request: Request) -> ForecastContext:
    return request.app.state.context

def get_store(request: Request) -> SalesStore:
    return request.app.state.store

ContextDep = Annotated[ForecastContext, Depends(get_context)]
StoreDep = Annotated[SalesStore, Depends(get_store)]


# --- Exception Handlers ---
async def invalid_input_exception_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)},
    )

async def item_not_found_exception_handler(request: Request, exc: ItemNotFoundError):
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc)},
    )


@router.get("/health", tags=["Health"])
def health():
    return {"status": "ok"}


# --- Sales Endpoints ---
@router.get("/sales", response_model=List[SalesObservation], tags=["Sales"])
def list_sales(
    store: StoreDep,
    item: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
):
    """
    Lists stored sales, oldest first, optionally filtered by item and date range.
    """
    if (start is None) != (end is None):
        raise HTTPException(status_code=400, detail="Provide both 'start' and 'end' to filter by date.")
    date_range = (start, end) if start is not None else None
    return store.list_sales(item_filter=item, date_range=date_range)

@router.post("/sales", response_model=SalesObservation, tags=["Sales"])
def create_sale(observation: SalesObservation, store: StoreDep):
    store.add_sales([observation])
    return observation

@router.post("/sales/bulk", response_model=SalesIngestResponse, tags=["Sales"])
def create_sales_bulk(observations: List[SalesObservation], store: StoreDep):
    return SalesIngestResponse(inserted=store.add_sales(observations))

@router.post("/sales/import", response_model=SalesIngestResponse, tags=["Sales"])
def import_sales(store: StoreDep, file: UploadFile = File(...)):
    """
    Imports a CSV export of sales. Invalid rows are dropped and counted.
    """
    report = import_sales_csv(store, file.file)
    return SalesIngestResponse(inserted=len(report.observations), dropped_rows=report.dropped_rows)


# --- Inventory Endpoints ---
@router.get("/inventory", response_model=List[InventoryItem], tags=["Inventory"])
def list_inventory(store: StoreDep):
    return store.list_inventory()

@router.post("/inventory", response_model=InventoryItem, tags=["Inventory"])
def create_inventory(item: InventoryItem, store: StoreDep):
    return store.add_inventory(item)

@router.patch("/inventory/{item_name}", response_model=InventoryItem, tags=["Inventory"])
def update_inventory(item_name: str, updates: InventoryUpdate, store: StoreDep):
    """
    Changes only the fields sent in the request body.
    """
    item = store.update_inventory(item_name, updates.model_dump(exclude_unset=True, exclude_none=True))
    if item is None:
        raise ItemNotFoundError(f"Inventory item '{item_name}' not found.")
    return item

@router.get("/inventory/recommendations", response_model=List[InventoryRecommendation], tags=["Inventory"])
def inventory_recommendations(store: StoreDep, context: ContextDep):
    """
    Restock recommendations against tomorrow's stored predictions.
    """
    return get_inventory_recommendations(store, context.today() + timedelta(days=1))


# --- Forecasting Endpoints ---
@router.post("/predictions/generate", response_model=BasicForecastResult, tags=["Forecasting"])
def generate_predictions(store: StoreDep, context: ContextDep, options: Optional[ForecastOptions] = None):
    """
    Runs the basic forecaster over all stored sales, stores the predictions
    and records the run's aggregate metrics.
    """
    result = generate_basic_forecast(store.list_sales(), context, options)
    store.save_predictions(result.predictions)
    record_forecast_metrics(store, result.metrics, datetime.now())
    return result

@router.post("/forecasting/advanced", response_model=BatchForecast, tags=["Forecasting"])
def advanced_forecast(store: StoreDep, context: ContextDep, options: Optional[ForecastOptions] = None):
    return forecast_batch(store.list_sales(), context, options)

@router.get("/forecasting/ensemble/{item_name}", response_model=ForecastBundle, tags=["Forecasting"])
def ensemble_forecast(item_name: str, store: StoreDep, context: ContextDep):
    """
    Full forecast bundle for a single menu item.
    """
    batch = forecast_batch(store.list_sales(item_filter=item_name), context)
    if not batch.bundles:
        raise ItemNotFoundError(
            f"No forecast for item '{item_name}': it needs at least "
            f"{context.settings.min_observations} sales records."
        )
    return batch.bundles[0]

@router.get("/forecasting/anomalies", response_model=List[Anomaly], tags=["Forecasting"])
def anomalies(
    store: StoreDep,
    context: ContextDep,
    item: str,
    threshold: Annotated[Optional[float], Query(gt=0)] = None,
):
    sales = store.list_sales(item_filter=item)
    if not sales:
        raise ItemNotFoundError(f"No sales found for item '{item}'.")
    return detect_anomalies(sales, threshold if threshold is not None else context.settings.anomaly_threshold)


# --- Dashboard Endpoints ---
@router.get("/dashboard/metrics", response_model=DashboardMetrics, tags=["Dashboard"])
def dashboard_metrics(store: StoreDep, context: ContextDep):
    return get_dashboard_metrics(store, context.today())

@router.get("/dashboard/trends", response_model=DemandTrends, tags=["Dashboard"])
def dashboard_trends(store: StoreDep, context: ContextDep, days: Annotated[int, Query(ge=1, le=365)] = 7):
    """
    Daily actual and predicted totals for the last `days` days.
    """
    return generate_demand_trends(store, context.today(), days)

@router.get("/dashboard/top-items", response_model=List[TopItem], tags=["Dashboard"])
def dashboard_top_items(store: StoreDep, context: ContextDep):
    """
    Items with the highest predictions for tomorrow.
    """
    return get_top_items(store, context.today() + timedelta(days=1))


# --- Observability Endpoints ---
@router.get("/observability/metrics/latest", response_model=ModelMetricsRecord, tags=["Observability"])
def latest_metrics(store: StoreDep):
    record = get_latest_metrics(store)
    if record is None:
        raise HTTPException(status_code=404, detail="No model metrics recorded yet.")
    return record

@router.get("/observability/metrics/history", response_model=List[ModelMetricsRecord], tags=["Observability"])
def metrics_history(store: StoreDep, limit: Annotated[Optional[int], Query(gt=0)] = None):
    return get_metrics_history(store, limit)


def create_app(context: Optional[ForecastContext] = None, store: Optional[SalesStore] = None) -> FastAPI:
    """
    Builds the API. The forecasting context and the store are created once here
    and shared by every request. Run with `uvicorn --factory forecasting_engine.main:create_app`.
    """
    context = context or build_context()
    logging.basicConfig(level=context.settings.log_level)

    app = FastAPI(
        title="Restaurant Demand Forecasting API",
        description="Per-item demand forecasts, anomaly flags and inventory recommendations from sales history.",
        version="2.1.0",
    )
    app.state.context = context
    app.state.store = store or SalesStore()

    app.add_exception_handler(InvalidInputError, invalid_input_exception_handler)
    app.add_exception_handler(ItemNotFoundError, item_not_found_exception_handler)
    app.include_router(router)

    logger.info("Forecasting API ready.")
    return app
