# forecasting_engine/db_utils.py
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from .settings import settings # Import the settings instance

def get_db_engine(connection_string: Optional[str] = None) -> Engine:
    """Creates and returns a SQLAlchemy engine from application settings."""
    url = connection_string or settings.db_connection_string
    if url in ("sqlite://", "sqlite:///:memory:"):
        # An in-memory database only lives as long as its single connection
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url)
