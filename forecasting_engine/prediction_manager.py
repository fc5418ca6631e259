# forecasting_engine/prediction_manager.py
import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from . import ts_statistics as stats
from .context import ForecastContext
from .custom_exceptions import InvalidInputError
from .ingestion import SalesRecord, build_item_series, group_sales_by_item
from .schemas import (
    AggregateMetrics, BasicForecastResult, ForecastOptions, ItemForecast, ItemSeries, PredictionRecord, SalesObservation,
)

# Set up a logger for this module
logger = logging.getLogger(__name__)

# Day-of-week demand multipliers, Sunday first
SEASONAL_FACTORS = [0.8, 0.9, 1.0, 1.1, 1.2, 1.4, 1.3]

MOVING_AVERAGE_WINDOW = 7
MOVING_AVERAGE_WEIGHT = 0.6
TREND_WEIGHT = 0.4


def seasonal_factor(day: date) -> float:
    """Multiplier for the weekday of `day` (isoweekday 7 is Sunday)."""
    return SEASONAL_FACTORS[day.isoweekday() % 7]


def forecast_item(
    series: ItemSeries,
    prediction_day: date,
    period: str = "daily",
) -> ItemForecast:
    """
    Next-period demand for one item: a 60/40 blend of the recent moving
    average and the one-step linear trend, scaled by the weekday factor of
    `prediction_day`. Expects a non-empty series.
    """
    quantities = series.quantities
    n = len(quantities)

    moving_avg = stats.moving_average(quantities, min(MOVING_AVERAGE_WINDOW, n))
    trend_prediction = stats.linear_trend(quantities).predict(n)
    base_prediction = MOVING_AVERAGE_WEIGHT * moving_avg + TREND_WEIGHT * trend_prediction

    predicted_quantity = round(max(0.0, base_prediction * seasonal_factor(prediction_day)))
    confidence = stats.confidence_from_variance(quantities, predicted_quantity)

    prediction = PredictionRecord(
        item_name=series.item_name,
        category=series.category,
        predicted_quantity=predicted_quantity,
        confidence=confidence,
        prediction_date=datetime.combine(prediction_day, time.min),
        forecast_period=period,
    )
    return ItemForecast(
        prediction=prediction,
        base_prediction=base_prediction,
        last_actual=float(quantities[-1]),
        observation_count=n,
    )


def aggregate_metrics(item_forecasts: List[ItemForecast], observations: List[SalesObservation]) -> AggregateMetrics:
    """
    Self-reported batch scores derived from the in-sample error of the base
    prediction against each item's last actual value. These are heuristics,
    not held-out validation accuracy.
    """
    errors = [abs(f.base_prediction - f.last_actual) for f in item_forecasts if f.observation_count > 1]
    avg_error = sum(errors) / len(errors) if errors else 0.0

    avg_quantity = stats.mean([o.quantity for o in observations])
    rmse = avg_error / (avg_quantity or 1.0)

    return AggregateMetrics(
        accuracy=max(0.3, 1 - rmse),
        rmse=rmse,
        f1_score=max(0.5, 0.95 - rmse * 0.5),
        precision=max(0.5, 0.92 - rmse * 0.3),
        recall=max(0.5, 0.94 - rmse * 0.4),
    )


def generate_basic_forecast(
    sales: Iterable[SalesRecord],
    context: ForecastContext,
    options: Optional[ForecastOptions] = None,
) -> BasicForecastResult:
    """
    Generates one next-day PredictionRecord per item plus aggregate metrics.
    An item with a malformed record is reported in `errors` and skipped.
    """
    options = options or ForecastOptions()
    period = options.period or context.settings.forecast_period
    tomorrow = context.today() + timedelta(days=1)

    item_forecasts: List[ItemForecast] = []
    valid_observations: List[SalesObservation] = []
    errors = {}

    for item_name, records in group_sales_by_item(sales).items():
        try:
            series = build_item_series(item_name, records)
        except InvalidInputError as e:
            logger.error(f"Skipping item '{item_name}' in basic forecast: {e}")
            errors[item_name] = str(e)
            continue

        item_forecasts.append(forecast_item(series, tomorrow, period))
        valid_observations.extend(series.observations)

    metrics = aggregate_metrics(item_forecasts, valid_observations)
    logger.info(f"Generated {len(item_forecasts)} basic predictions for {tomorrow.isoformat()}.")

    return BasicForecastResult(
        predictions=[f.prediction for f in item_forecasts],
        metrics=metrics,
        errors=errors,
    )
