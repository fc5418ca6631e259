import logging
from typing import Any, Dict, Iterable, List, Mapping, Union

import pandas as pd
from pydantic import ValidationError

from .custom_exceptions import InvalidInputError
from .schemas import IngestionReport, ItemSeries, SalesObservation

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["item_name", "category", "quantity", "revenue", "date"]
# Column names as exported by the dashboard's data-input page
COLUMN_ALIASES = {"itemName": "item_name", "item": "item_name", "timestamp": "date"}

SalesRecord = Union[SalesObservation, Mapping[str, Any]]


def to_observation(record: SalesRecord) -> SalesObservation:
    """Validates one raw sales record. Raises InvalidInputError when it is malformed."""
    if isinstance(record, SalesObservation):
        return record
    try:
        return SalesObservation.model_validate(dict(record))
    except (ValidationError, TypeError, ValueError) as e:
        raise InvalidInputError(f"Invalid sales record {record!r}: {e}") from e


def _item_name_of(record: SalesRecord) -> str:
    if isinstance(record, SalesObservation):
        return record.item_name
    name = record.get("item_name") if isinstance(record, Mapping) else None
    return "" if name is None else str(name)


def group_sales_by_item(sales: Iterable[SalesRecord]) -> Dict[str, List[SalesRecord]]:
    """
    Groups raw records by item name, keeping items in first-seen order and
    records in their original order within each item.
    """
    rows = list(sales)
    if not rows:
        return {}
    names = pd.Series([_item_name_of(r) for r in rows])
    positions = names.groupby(names, sort=False).indices
    return {name: [rows[i] for i in positions[name]] for name in pd.unique(names)}


def prepare_item_series(records: Iterable[SalesRecord]) -> List[SalesObservation]:
    """Validates an item's records and sorts them by date (stable, so ties keep input order)."""
    observations = [to_observation(r) for r in records]
    return sorted(observations, key=lambda o: o.date)


def build_item_series(item_name: str, records: List[SalesRecord]) -> ItemSeries:
    """
    Validated, date-sorted series for one item. The category is the one on
    the item's first record in input order.
    """
    observations = prepare_item_series(records)
    category = to_observation(records[0]).category
    return ItemSeries(item_name=item_name, category=category, observations=observations)


def load_sales_csv(source) -> IngestionReport:
    """
    Reads a sales CSV (path or file-like object) and returns the valid observations.
    Rows with missing, non-numeric or negative values are dropped and counted.
    """
    sales_df = pd.read_csv(source)
    sales_df = sales_df.rename(columns=COLUMN_ALIASES)

    missing = [c for c in REQUIRED_COLUMNS if c not in sales_df.columns]
    if missing:
        raise InvalidInputError(f"Sales file is missing required columns: {', '.join(missing)}")

    total_rows = len(sales_df)

    # Data validation and cleansing
    sales_df = sales_df.dropna(subset=REQUIRED_COLUMNS)
    sales_df['item_name'] = sales_df['item_name'].astype(str).str.strip()
    sales_df['category'] = sales_df['category'].astype(str).str.strip()
    sales_df['quantity'] = pd.to_numeric(sales_df['quantity'], errors='coerce')
    sales_df['revenue'] = pd.to_numeric(sales_df['revenue'], errors='coerce')
    # Offset-aware timestamps become naive UTC, matching SalesObservation
    sales_df['date'] = pd.to_datetime(sales_df['date'], errors='coerce', utc=True, format='mixed').dt.tz_localize(None)
    sales_df = sales_df.dropna(subset=['quantity', 'revenue', 'date'])
    sales_df = sales_df[
        (sales_df['item_name'] != '')
        & (sales_df['quantity'] >= 0)
        & (sales_df['quantity'] % 1 == 0)
        & (sales_df['revenue'] >= 0)
    ]

    observations = [
        SalesObservation(
            item_name=row.item_name,
            category=row.category,
            quantity=int(row.quantity),
            revenue=float(row.revenue),
            date=row.date.to_pydatetime(),
        )
        for row in sales_df.itertuples(index=False)
    ]
    dropped = total_rows - len(observations)
    if dropped:
        logger.warning(f"Dropped {dropped} invalid rows out of {total_rows} while reading sales file.")
    return IngestionReport(observations=observations, dropped_rows=dropped)


def import_sales_csv(store, source) -> IngestionReport:
    """Loads a sales CSV and persists its valid rows through the sales store."""
    report = load_sales_csv(source)
    store.add_sales(report.observations)
    logger.info(f"Imported {len(report.observations)} sales records ({report.dropped_rows} dropped).")
    return report
