"""Domain models shared across services."""

from __future__ import annotations

from bisect import insort
from dataclasses import dataclass, field
from typing import List, Union

from services.encoding import ERROR_VALUE, compare_doubles, is_error


@dataclass(frozen=True, eq=False)
class TempHumidReading:
    """A temperature (Fahrenheit) and humidity (percent) pair.

    Either field may hold ``ERROR_VALUE`` when the sensor failed to read it.
    Equality is approximate on both fields.
    """

    temperature: float = ERROR_VALUE
    humidity: float = ERROR_VALUE

    @property
    def temperature_error(self) -> bool:
        return is_error(self.temperature)

    @property
    def humidity_error(self) -> bool:
        return is_error(self.humidity)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TempHumidReading):
            return NotImplemented
        return compare_doubles(self.temperature, other.temperature) and compare_doubles(
            self.humidity, other.humidity
        )

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        temperature = "Err" if self.temperature_error else f"{self.temperature:.1f}F"
        humidity = "Err" if self.humidity_error else f"{self.humidity:.1f}%"
        return f"{{{temperature};{humidity}}}"


@dataclass
class DateReading:
    """All readings collected for one ``YYYYMMDD`` date.

    Both lists stay sorted ascending after every insertion.
    """

    date: int
    temperatures: List[float] = field(default_factory=list)
    humidities: List[float] = field(default_factory=list)

    def add_temperature(self, value: float) -> None:
        insort(self.temperatures, value)

    def add_humidity(self, value: float) -> None:
        insort(self.humidities, value)

    def add_reading(self, reading: TempHumidReading) -> None:
        self.add_temperature(reading.temperature)
        self.add_humidity(reading.humidity)

    def remove_errors(self) -> int:
        """Drop sentinel values in place and return how many were removed."""
        kept_temperatures = [value for value in self.temperatures if not is_error(value)]
        kept_humidities = [value for value in self.humidities if not is_error(value)]
        removed = (len(self.temperatures) - len(kept_temperatures)) + (
            len(self.humidities) - len(kept_humidities)
        )
        self.temperatures[:] = kept_temperatures
        self.humidities[:] = kept_humidities
        return removed


@dataclass(frozen=True, slots=True)
class DateMarker:
    """A datetime datum that opens a new date segment."""

    date_key: int
    raw: float


@dataclass(frozen=True, slots=True)
class Measurement:
    """A temperature or humidity datum; which one depends on its position."""

    value: float


SensorDatum = Union[DateMarker, Measurement]
