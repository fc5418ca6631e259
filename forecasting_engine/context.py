# forecasting_engine/context.py
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

import numpy as np

from .settings import Settings, settings as default_settings


@dataclass
class ForecastContext:
    """
    Everything a forecasting call needs besides the sales data itself.

    Built once at process start and passed to call sites. The random source
    only feeds the model bank's placeholder estimates (ARIMA confidence band,
    neural weight initialisation); tests pass a seeded generator or a stub.
    """
    settings: Settings
    rng: np.random.Generator
    clock: Callable[[], date] = field(default=date.today)

    def today(self) -> date:
        return self.clock()


def build_context(app_settings: Optional[Settings] = None, clock: Optional[Callable[[], date]] = None) -> ForecastContext:
    """Creates a context from settings, seeding the random source if configured."""
    app_settings = app_settings or default_settings
    rng = np.random.default_rng(app_settings.random_seed)
    return ForecastContext(settings=app_settings, rng=rng, clock=clock or date.today)
