# forecasting_engine/advanced_forecast_manager.py
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from . import ts_statistics as stats
from .anomaly_detection import detect_anomalies
from .context import ForecastContext
from .custom_exceptions import InvalidInputError
from .decomposition import decompose
from .ensemble import combine, select_best_model
from .ingestion import SalesRecord, build_item_series, group_sales_by_item
from .model_bank import ForecastModel, default_models, run_models
from .schemas import BatchForecast, ForecastBundle, ForecastOptions, ItemSeries, SalesObservation, SeasonalComponents

# Set up a logger for this module
logger = logging.getLogger(__name__)

# Fixed-date holidays as (month, day)
HOLIDAYS = {
    (1, 1),    # New Year
    (2, 14),   # Valentine's Day
    (7, 4),    # Independence Day
    (10, 31),  # Halloween
    (11, 24),  # Thanksgiving (approximation)
    (12, 25),  # Christmas
}


def holiday_lift(observations: Sequence[SalesObservation]) -> float:
    """Relative demand change on holidays versus all days; 0 when no holiday was observed."""
    overall = stats.mean([o.quantity for o in observations])
    on_holidays = [o.quantity for o in observations if (o.date.month, o.date.day) in HOLIDAYS]
    if not on_holidays or overall == 0:
        return 0.0
    return stats.mean(on_holidays) / overall - 1.0


def seasonal_strength(quantities: Sequence[float], components: SeasonalComponents) -> float:
    """Share of the series variance carried by the seasonal component, in [0, 1]."""
    total = stats.variance(quantities)
    if total == 0:
        return 0.0
    return min(1.0, stats.variance(components.seasonal) / total)


def external_factors_impact(
    observations: Sequence[SalesObservation],
    components: SeasonalComponents,
    options: ForecastOptions,
) -> Dict[str, float]:
    """
    Descriptive, deterministic factor scores for the dashboard.

    No weather data is ingested, so weather is always 0. Holidays and
    seasonality are only measured when requested; trend is the r-squared of
    the linear trend.
    """
    quantities = [o.quantity for o in observations]
    return {
        "weather": 0.0,
        "holidays": holiday_lift(observations) if options.include_holidays else 0.0,
        "seasonality": seasonal_strength(quantities, components) if options.include_seasonality else 0.0,
        "trend": stats.linear_trend(quantities).r2,
    }


def build_bundle(
    series: ItemSeries,
    context: ForecastContext,
    options: ForecastOptions,
    models: Sequence[ForecastModel],
) -> ForecastBundle:
    """Runs every model, the ensemble, decomposition and anomaly detection for one item."""
    config = context.settings
    horizon = options.horizon or config.forecast_horizon
    method = options.ensemble_method or config.ensemble_method
    quantities = series.quantities

    results = run_models(models, quantities, horizon)
    ensemble = combine(results, method)
    components = decompose(quantities, config.season_length)
    anomalies = detect_anomalies(series.observations, config.anomaly_threshold)

    return ForecastBundle(
        item_name=series.item_name,
        category=series.category,
        models=results,
        best_model=select_best_model(results),
        ensemble_prediction=ensemble.predictions,
        ensemble_confidence=ensemble.confidence,
        forecast_horizon=horizon,
        external_factors_impact=external_factors_impact(series.observations, components, options),
        seasonal_components=components,
        anomalies=anomalies[:config.max_anomalies],
    )


def forecast_batch(
    sales: Iterable[SalesRecord],
    context: ForecastContext,
    options: Optional[ForecastOptions] = None,
    models: Optional[Sequence[ForecastModel]] = None,
) -> BatchForecast:
    """
    Builds one ForecastBundle per item with enough history.

    Items with fewer than `min_observations` records are skipped. An item with
    a malformed record is reported in `errors`; the rest of the batch goes on.
    """
    options = options or ForecastOptions()
    models = models if models is not None else default_models(context)
    min_observations = context.settings.min_observations

    logger.info("--- Starting advanced forecast run ---")
    bundles: List[ForecastBundle] = []
    errors: Dict[str, str] = {}

    for item_name, records in group_sales_by_item(sales).items():
        try:
            series = build_item_series(item_name, records)
        except InvalidInputError as e:
            logger.error(f"Failed to prepare series for item '{item_name}': {e}")
            errors[item_name] = str(e)
            continue

        if len(series.observations) < min_observations:
            logger.info(
                f"Skipping item '{item_name}': {len(series.observations)} observations, "
                f"at least {min_observations} needed."
            )
            continue

        bundles.append(build_bundle(series, context, options, models))

    logger.info(f"--- Advanced forecast run finished: {len(bundles)} bundles, {len(errors)} failed items ---")
    return BatchForecast(bundles=bundles, errors=errors)


def generate_advanced_forecast(
    sales: Iterable[SalesRecord],
    context: ForecastContext,
    options: Optional[ForecastOptions] = None,
) -> List[ForecastBundle]:
    """Advanced forecast bundles for every eligible item, without the error report."""
    return forecast_batch(sales, context, options).bundles
