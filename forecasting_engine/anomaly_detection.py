import logging
from typing import Iterable, List, Optional

from . import ts_statistics as stats
from .ingestion import SalesRecord, prepare_item_series
from .schemas import Anomaly

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 2.5


def detect_anomalies(sales: Iterable[SalesRecord], threshold: Optional[float] = None) -> List[Anomaly]:
    """
    Flags observations whose absolute z-score exceeds `threshold`.

    Scores use the population mean and standard deviation of the quantities.
    A series with zero variance has no anomalies. Results are sorted by score,
    highest first; equal scores keep chronological order.
    """
    threshold = DEFAULT_THRESHOLD if threshold is None else threshold
    observations = prepare_item_series(sales)
    quantities = [o.quantity for o in observations]

    if stats.std_dev(quantities) == 0:
        return []

    anomalies = [
        Anomaly(date=o.date, value=o.quantity, anomaly_score=abs(z))
        for o, z in zip(observations, stats.z_scores(quantities))
        if abs(z) > threshold
    ]
    anomalies.sort(key=lambda a: a.anomaly_score, reverse=True)
    logger.debug(f"Flagged {len(anomalies)} anomalies out of {len(observations)} observations.")
    return anomalies
