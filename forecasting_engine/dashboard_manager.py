# forecasting_engine/dashboard_manager.py
import logging
from datetime import date, datetime, time, timedelta
from typing import List

import pandas as pd

from .schemas import DashboardMetrics, DemandTrends, TopItem
from .storage import SalesStore

# Set up a logger for this module
logger = logging.getLogger(__name__)

# Flat growth applied to today's revenue for the revenue forecast
REVENUE_GROWTH = 1.1
TOP_ITEMS_LIMIT = 4


def _day_range(day: date):
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


def get_dashboard_metrics(store: SalesStore, today: date) -> DashboardMetrics:
    """
    Headline numbers for the dashboard: today's demand against yesterday's,
    today's revenue with a flat growth projection, the item with the highest
    stored prediction for tomorrow and the latest recorded model metrics.
    """
    today_sales = store.list_sales(date_range=_day_range(today))
    yesterday_sales = store.list_sales(date_range=_day_range(today - timedelta(days=1)))

    today_demand = sum(s.quantity for s in today_sales)
    yesterday_demand = sum(s.quantity for s in yesterday_sales)
    demand_change = (today_demand - yesterday_demand) / yesterday_demand * 100 if yesterday_demand > 0 else 0.0
    today_revenue = sum(s.revenue for s in today_sales)

    predictions = store.predictions_for_date(today + timedelta(days=1))
    top = max(predictions, key=lambda p: p.predicted_quantity) if predictions else None
    latest = store.latest_model_metrics()

    return DashboardMetrics(
        today_demand=today_demand,
        yesterday_demand=yesterday_demand,
        demand_change=demand_change,
        today_revenue=today_revenue,
        revenue_forecast=round(today_revenue * REVENUE_GROWTH),
        top_item=top.item_name if top else None,
        top_item_prediction=top.predicted_quantity if top else 0.0,
        forecast_accuracy=latest.accuracy if latest else None,
        model_metrics=latest,
    )


def generate_demand_trends(store: SalesStore, today: date, days: int = 7) -> DemandTrends:
    """
    Daily totals for the `days` days ending today: actual quantities sold and
    the sum of the stored predictions for each day (0 where none were made).
    """
    start = today - timedelta(days=days - 1)
    sales = store.list_sales(date_range=(datetime.combine(start, time.min), datetime.combine(today, time.max)))

    quantities = pd.Series(
        [s.quantity for s in sales],
        index=pd.DatetimeIndex([s.date for s in sales]).normalize(),
        dtype="int64",
    )
    calendar = pd.date_range(start=start, periods=days, freq="D")
    daily = quantities.groupby(level=0).sum().reindex(calendar, fill_value=0)

    predicted = [
        sum(p.predicted_quantity for p in store.predictions_for_date(day.date()))
        for day in calendar
    ]
    logger.debug(f"Built demand trends for {days} days from {len(sales)} sales records.")

    return DemandTrends(
        dates=[day.to_pydatetime() for day in calendar],
        labels=[day.strftime("%a") for day in calendar],
        actual=[int(v) for v in daily.tolist()],
        predicted=predicted,
    )


def get_top_items(store: SalesStore, day: date, limit: int = TOP_ITEMS_LIMIT) -> List[TopItem]:
    """
    Items with the highest stored predictions for `day`. `change` is the
    percent difference between the prediction and the item's latest recorded
    sale, 0 when there is no earlier sale to compare with.
    """
    predictions = sorted(store.predictions_for_date(day), key=lambda p: p.predicted_quantity, reverse=True)
    top_items = []
    for prediction in predictions[:limit]:
        history = store.list_sales(item_filter=prediction.item_name)
        last_quantity = history[-1].quantity if history else None
        change = 0.0
        if last_quantity:
            change = round((prediction.predicted_quantity - last_quantity) / last_quantity * 100, 1)
        top_items.append(TopItem(**prediction.model_dump(), last_quantity=last_quantity, change=change))
    return top_items
