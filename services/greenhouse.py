"""Greenhouse facade over the active parsing strategy."""

from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from logging_config import configure_logging
from models.records import TempHumidReading
from models.schemas import DateSummary, GreenhouseReport, ReadingSummary
from services.encoding import datetime_to_float, float_to_datetime, is_datetime
from services.strategies import ListScanStrategy, ParsedDataStrategy, build_strategy
from settings import get_settings

logger = logging.getLogger(__name__)


class Greenhouse:
    """Collects sensor polls through one swappable strategy.

    When constructed with a ``clock``, segments stamped earlier than the clock
    are dropped before they reach the strategy and the clock follows the
    newest accepted datetime.
    """

    def __init__(
        self,
        strategy: Optional[ParsedDataStrategy] = None,
        clock: Optional[datetime] = None,
    ) -> None:
        self.strategy = strategy if strategy is not None else ListScanStrategy()
        self.clock = clock

    def poll_sensor_data(self, values: Sequence[float]) -> None:
        """Append a ``[datetime, temp, hum, temp, hum, ..., datetime, ...]`` poll.

        The clock only moves once the strategy has accepted the poll.
        """
        data: Sequence[float] = values
        clock = self.clock
        if clock is not None:
            data, clock = self.filter_data(values)
        self.strategy.process_data(data)
        self.clock = clock

    def middle_reading(self, on_date: Optional[float] = None) -> TempHumidReading:
        return self.strategy.middle_reading(on_date)

    def percent_error(self) -> float:
        return self.strategy.percent_error()

    def set_strategy(self, strategy: ParsedDataStrategy) -> None:
        """Switch strategies, discarding everything polled so far."""
        previous = self.strategy.name
        self.strategy.reset()
        strategy.reset()
        self.strategy = strategy
        logger.info(
            "Switched parsing strategy from %s; accumulated data discarded",
            previous,
            extra={"strategy": strategy.name},
        )

    def filter_data(self, values: Sequence[float]) -> Tuple[List[float], Optional[datetime]]:
        """Keep only segments stamped at or after the clock.

        Returns the kept values and the clock as it stands after the newest
        accepted datetime. ``self.clock`` itself is left alone.
        """
        kept: List[float] = []
        dropped = 0
        accepting = False
        clock = self.clock
        for value in values:
            if is_datetime(value):
                accepting = clock is None or value >= datetime_to_float(clock)
                if accepting:
                    clock = float_to_datetime(value)
            if accepting:
                kept.append(value)
            else:
                dropped += 1
        if dropped:
            logger.debug(
                "Dropped stale sensor values",
                extra={"strategy": self.strategy.name, "dropped_count": dropped},
            )
        return kept, clock

    def clock_as_datetime(self) -> float:
        if self.clock is None:
            raise ValueError("Greenhouse has no clock set.")
        return datetime_to_float(self.clock)

    def report(self) -> GreenhouseReport:
        strategy = self.strategy
        dates = []
        for date_key in strategy.dates():
            bucket = strategy.bucket(date_key)
            if bucket is None:
                continue
            dates.append(DateSummary.from_bucket(bucket, strategy.middle_reading(date_key)))
        return GreenhouseReport(
            strategy=strategy.name,
            middle=ReadingSummary.from_reading(strategy.middle_reading()),
            percent_error=strategy.percent_error(),
            error_count=strategy.error_count,
            dates=dates,
        )


@lru_cache
def build_default_greenhouse() -> Greenhouse:
    """Factory that wires a greenhouse from environment settings."""
    configure_logging()
    settings = get_settings()
    return Greenhouse(strategy=build_strategy(settings.strategy), clock=settings.clock_start)
