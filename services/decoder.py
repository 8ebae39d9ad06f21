"""Decode the flat sensor stream into per-date segments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from models.records import DateMarker, Measurement, SensorDatum, TempHumidReading
from services.encoding import is_datetime, to_date

logger = logging.getLogger(__name__)


class MalformedStreamError(ValueError):
    """Raised when a sensor stream breaks the marker/pair layout."""

    def __init__(self, reason: str, index: int, marker: Optional[float] = None) -> None:
        super().__init__(f"{reason} (at index {index})")
        self.reason = reason
        self.index = index
        self.marker = marker


@dataclass
class StreamSegment:
    """Readings that followed one datetime marker, in stream order."""

    date_key: int
    marker: float
    readings: List[TempHumidReading] = field(default_factory=list)


def classify(datum: float) -> SensorDatum:
    if is_datetime(datum):
        return DateMarker(date_key=to_date(datum), raw=datum)
    return Measurement(value=datum)


def decode_stream(values: Sequence[float]) -> list[StreamSegment]:
    """Split ``values`` into segments of (temperature, humidity) pairs.

    The stream must open with a datetime marker and every marker must be
    followed by an even number of measurements. Any other datum between
    markers, however large, is a measurement.
    """
    segments: list[StreamSegment] = []
    current: Optional[StreamSegment] = None
    pending: list[float] = []
    pending_start = 0

    for index, datum in enumerate(_classify_all(values)):
        if isinstance(datum, DateMarker):
            if pending:
                raise _unpaired(current, pending_start)
            current = StreamSegment(date_key=datum.date_key, marker=datum.raw)
            segments.append(current)
            continue

        if current is None:
            raise MalformedStreamError("stream must begin with a datetime marker", index)

        if not pending:
            pending_start = index
        pending.append(datum.value)
        if len(pending) == 2:
            current.readings.append(TempHumidReading(pending[0], pending[1]))
            pending.clear()

    if pending:
        raise _unpaired(current, pending_start)

    logger.debug(
        "Decoded sensor stream",
        extra={"bucket_count": len(segments), "reading_count": len(values)},
    )
    return segments


def _unpaired(segment: Optional[StreamSegment], index: int) -> MalformedStreamError:
    marker = segment.marker if segment is not None else None
    return MalformedStreamError("unpaired trailing measurement", index, marker=marker)


def _classify_all(values: Iterable[float]) -> Iterable[SensorDatum]:
    for value in values:
        yield classify(float(value))
