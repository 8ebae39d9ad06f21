"""Pydantic schemas describing a greenhouse snapshot."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from models.records import DateReading, TempHumidReading


class ReadingSummary(BaseModel):
    """A middle reading together with its display form."""

    temperature: float
    humidity: float
    display: str

    @classmethod
    def from_reading(cls, reading: TempHumidReading) -> "ReadingSummary":
        return cls(
            temperature=reading.temperature,
            humidity=reading.humidity,
            display=str(reading),
        )


class DateSummary(BaseModel):
    """Counts and middle reading for one date bucket."""

    date: int = Field(..., description="Date key in YYYYMMDD form.")
    temperature_count: int = Field(..., ge=0)
    humidity_count: int = Field(..., ge=0)
    middle: ReadingSummary

    @classmethod
    def from_bucket(cls, bucket: DateReading, middle: TempHumidReading) -> "DateSummary":
        return cls(
            date=bucket.date,
            temperature_count=len(bucket.temperatures),
            humidity_count=len(bucket.humidities),
            middle=ReadingSummary.from_reading(middle),
        )


class GreenhouseReport(BaseModel):
    """Point-in-time view of everything a greenhouse has aggregated."""

    strategy: str
    middle: ReadingSummary
    percent_error: float = Field(..., ge=0.0, le=100.0)
    error_count: int = Field(..., ge=0)
    dates: List[DateSummary] = Field(default_factory=list)
