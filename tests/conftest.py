"""Pytest configuration and shared fixtures."""

from datetime import date, datetime, timedelta

import numpy as np
import pytest
from fastapi.testclient import TestClient

from forecasting_engine.context import ForecastContext
from forecasting_engine.db_utils import get_db_engine
from forecasting_engine.main import create_app
from forecasting_engine.schemas import SalesObservation
from forecasting_engine.settings import Settings
from forecasting_engine.storage import SalesStore

# A Monday, so "tomorrow" is a Tuesday with a neutral weekday factor
MONDAY = date(2024, 3, 4)


def build_sales(item_name, quantities, category="Main Dishes", start=datetime(2024, 1, 1), price=12.5):
    """Daily SalesObservations for one item, starting at `start`."""
    return [
        SalesObservation(
            item_name=item_name,
            category=category,
            quantity=quantity,
            revenue=quantity * price,
            date=start + timedelta(days=i),
        )
        for i, quantity in enumerate(quantities)
    ]


@pytest.fixture
def make_sales():
    """Factory fixture for per-item daily sales series."""
    return build_sales


@pytest.fixture
def test_settings():
    return Settings(db_connection_string="sqlite://", random_seed=42, log_level="WARNING")


@pytest.fixture
def context(test_settings):
    """Forecast context with a seeded random source and a fixed clock."""
    return ForecastContext(
        settings=test_settings,
        rng=np.random.default_rng(42),
        clock=lambda: MONDAY,
    )


@pytest.fixture
def store():
    """Sales store on a fresh in-memory database."""
    return SalesStore(get_db_engine("sqlite://"))


@pytest.fixture
def client(context, store):
    return TestClient(create_app(context=context, store=store))
