"""Interchangeable storage strategies for parsed sensor data."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Type

from models.records import DateReading, TempHumidReading
from services.decoder import MalformedStreamError, StreamSegment, decode_stream
from services.encoding import ERROR_VALUE, same_date, to_date_key

logger = logging.getLogger(__name__)


def _middle(values: Sequence[float]) -> float:
    """Element at ``len // 2`` of a sorted sequence, or the error value."""
    if not values:
        return ERROR_VALUE
    return values[len(values) // 2]


class ParsedDataStrategy(ABC):
    """Owns every date bucket of a session plus the flattened, sorted views.

    Subclasses only decide how buckets are indexed; parsing, cleaning,
    flattening and the queries are shared.
    """

    name: str = ""

    def __init__(self) -> None:
        self.all_temperatures: List[float] = []
        self.all_humidities: List[float] = []
        self.error_count = 0

    @abstractmethod
    def _find(self, date_key: int) -> Optional[DateReading]:
        """Return the bucket stored for ``date_key``, if any."""

    @abstractmethod
    def _insert(self, bucket: DateReading) -> None:
        """Store a bucket whose date is not yet present."""

    @abstractmethod
    def _buckets(self) -> Iterable[DateReading]:
        """Iterate over every stored bucket."""

    @abstractmethod
    def _clear_buckets(self) -> None:
        """Forget every stored bucket."""

    def process_data(self, data: Sequence[float]) -> None:
        """Parse, clean and flatten ``data`` on top of the existing state.

        The whole stream is decoded before anything is stored, so a
        ``MalformedStreamError`` leaves the strategy unchanged.
        """
        try:
            segments = decode_stream(data)
        except MalformedStreamError as exc:
            logger.warning(
                "Rejected malformed sensor stream",
                extra={
                    "strategy": self.name,
                    "reason": exc.reason,
                    "index": exc.index,
                    "marker": exc.marker,
                },
            )
            raise
        if not segments:
            return
        touched = self._parse(segments)
        removed = self._clean(touched)
        self._flatten()
        logger.debug(
            "Processed sensor data",
            extra={
                "strategy": self.name,
                "reading_count": len(data),
                "bucket_count": len(touched),
                "error_count": removed,
            },
        )

    def middle_reading(self, on_date: Optional[float] = None) -> TempHumidReading:
        """Middle temperature and humidity, globally or for ``on_date``.

        Each field is the ``len // 2`` element of its own sorted list, so the
        two values need not come from the same original reading. A field
        without data reports the error value.
        """
        if on_date is None:
            return TempHumidReading(
                _middle(self.all_temperatures), _middle(self.all_humidities)
            )
        bucket = self.bucket(on_date)
        if bucket is None:
            return TempHumidReading()
        return TempHumidReading(_middle(bucket.temperatures), _middle(bucket.humidities))

    def percent_error(self) -> float:
        """Share of polled measurements that were sensor errors, as a percentage."""
        total = self.error_count + len(self.all_temperatures) + len(self.all_humidities)
        if total == 0:
            return 0.0
        return self.error_count / total * 100.0

    def bucket(self, on_date: float) -> Optional[DateReading]:
        date_key = to_date_key(on_date)
        if date_key is None:
            return None
        return self._find(date_key)

    def dates(self) -> list[int]:
        return sorted(bucket.date for bucket in self._buckets())

    def reset(self) -> None:
        self._clear_buckets()
        self.all_temperatures = []
        self.all_humidities = []
        self.error_count = 0

    def _parse(self, segments: Iterable[StreamSegment]) -> list[DateReading]:
        touched: Dict[int, DateReading] = {}
        for segment in segments:
            bucket = self._find(segment.date_key)
            if bucket is None:
                bucket = DateReading(date=segment.date_key)
                self._insert(bucket)
            for reading in segment.readings:
                bucket.add_reading(reading)
            touched[bucket.date] = bucket
        return list(touched.values())

    def _clean(self, buckets: Iterable[DateReading]) -> int:
        removed = 0
        for bucket in buckets:
            removed += bucket.remove_errors()
        self.error_count += removed
        return removed

    def _flatten(self) -> None:
        temperatures: list[float] = []
        humidities: list[float] = []
        for bucket in self._buckets():
            temperatures.extend(bucket.temperatures)
            humidities.extend(bucket.humidities)
        temperatures.sort()
        humidities.sort()
        self.all_temperatures = temperatures
        self.all_humidities = humidities


class ListScanStrategy(ParsedDataStrategy):
    """Keeps buckets in arrival order and finds them by linear scan."""

    name = "list"

    def __init__(self) -> None:
        super().__init__()
        self._date_readings: List[DateReading] = []

    def _find(self, date_key: int) -> Optional[DateReading]:
        for bucket in self._date_readings:
            if same_date(bucket.date, date_key):
                return bucket
        return None

    def _insert(self, bucket: DateReading) -> None:
        self._date_readings.append(bucket)

    def _buckets(self) -> Iterable[DateReading]:
        return iter(self._date_readings)

    def _clear_buckets(self) -> None:
        self._date_readings.clear()


class HashMapStrategy(ParsedDataStrategy):
    """Indexes buckets by their integer date key."""

    name = "map"

    def __init__(self) -> None:
        super().__init__()
        self._date_readings: Dict[int, DateReading] = {}

    def _find(self, date_key: int) -> Optional[DateReading]:
        return self._date_readings.get(date_key)

    def _insert(self, bucket: DateReading) -> None:
        self._date_readings[bucket.date] = bucket

    def _buckets(self) -> Iterable[DateReading]:
        return iter(self._date_readings.values())

    def _clear_buckets(self) -> None:
        self._date_readings.clear()


STRATEGIES: Dict[str, Type[ParsedDataStrategy]] = {
    ListScanStrategy.name: ListScanStrategy,
    HashMapStrategy.name: HashMapStrategy,
}


def build_strategy(name: str) -> ParsedDataStrategy:
    """Instantiate a fresh strategy by its short name."""
    try:
        strategy_cls = STRATEGIES[name.strip().lower()]
    except KeyError as exc:
        known = ", ".join(sorted(STRATEGIES))
        raise ValueError(f"Unknown strategy {name!r}; expected one of: {known}.") from exc
    return strategy_cls()
