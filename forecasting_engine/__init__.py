"""Demand forecasting engine for restaurant menu items."""

__version__ = "2.1.0"
