"""Behaviour shared by both parsing strategies."""

from __future__ import annotations

import logging
from collections import Counter

import pytest

from models.records import TempHumidReading
from services.decoder import MalformedStreamError
from services.strategies import (
    HashMapStrategy,
    ListScanStrategy,
    ParsedDataStrategy,
    build_strategy,
)

SAMPLE = [
    20231106010101.0, 45.5, 34.0, 46.6, 40.0,
    20231130020202.0, 22.2, 20.0, 35.5, 30.0, -999.0, 31.0, 32.2, -999.0,
]
SINGLE_DAY = [20231106010101.0, 49.0, 32.0, 45.0, 67.0, 43.0, 57.0]


@pytest.fixture(params=[ListScanStrategy, HashMapStrategy], ids=["list", "map"])
def strategy(request) -> ParsedDataStrategy:
    return request.param()


def test_empty_strategy_reports_errors(strategy: ParsedDataStrategy) -> None:
    assert strategy.middle_reading() == TempHumidReading(-999.0, -999.0)
    assert strategy.middle_reading(20231106) == TempHumidReading(-999.0, -999.0)
    assert strategy.percent_error() == 0.0
    assert strategy.dates() == []


def test_sample_buckets_are_cleaned_and_sorted(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(SAMPLE)

    first = strategy.bucket(20231106)
    second = strategy.bucket(20231130)
    assert first is not None and second is not None
    assert first.temperatures == [45.5, 46.6]
    assert first.humidities == [34.0, 40.0]
    assert second.temperatures == [22.2, 32.2, 35.5]
    assert second.humidities == [20.0, 30.0, 31.0]
    assert strategy.dates() == [20231106, 20231130]


def test_sample_global_middle_reading(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(SAMPLE)

    assert strategy.all_temperatures == [22.2, 32.2, 35.5, 45.5, 46.6]
    assert strategy.all_humidities == [20.0, 30.0, 31.0, 34.0, 40.0]
    assert strategy.middle_reading() == TempHumidReading(35.5, 31.0)


def test_flattened_views_never_hold_sentinels(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(SAMPLE)

    assert -999.0 not in strategy.all_temperatures
    assert -999.0 not in strategy.all_humidities


def test_percent_error_uses_pre_clean_total(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(SAMPLE)

    # 12 measurements polled, 2 of them sentinels
    assert strategy.error_count == 2
    assert strategy.percent_error() == pytest.approx(2 / 12 * 100.0)


def test_percent_error_all_errors(strategy: ParsedDataStrategy) -> None:
    strategy.process_data([20231106010101.0, -999.0, -999.0])

    assert strategy.percent_error() == pytest.approx(100.0)
    assert strategy.middle_reading() == TempHumidReading(-999.0, -999.0)
    assert strategy.middle_reading(20231106) == TempHumidReading(-999.0, -999.0)


def test_middle_reading_on_date(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(SINGLE_DAY)

    assert strategy.middle_reading(20231106) == TempHumidReading(45.0, 57.0)
    assert strategy.middle_reading(20231106.0004) == TempHumidReading(45.0, 57.0)
    assert strategy.middle_reading(20231106120000.0) == TempHumidReading(45.0, 57.0)
    assert strategy.middle_reading(20231107) == TempHumidReading(-999.0, -999.0)


def test_middle_reading_on_date_is_idempotent(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(SAMPLE)

    assert strategy.middle_reading(20231130) == strategy.middle_reading(20231130)


def test_fields_default_independently(strategy: ParsedDataStrategy) -> None:
    strategy.process_data([20231106010101.0, 70.0, -999.0])

    assert strategy.middle_reading(20231106) == TempHumidReading(70.0, -999.0)
    assert strategy.middle_reading() == TempHumidReading(70.0, -999.0)


def test_repeated_polls_accumulate(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(SINGLE_DAY)
    strategy.process_data(SINGLE_DAY)

    assert strategy.dates() == [20231106]
    assert strategy.all_temperatures == [43.0, 43.0, 45.0, 45.0, 49.0, 49.0]
    assert strategy.middle_reading() == TempHumidReading(45.0, 57.0)


def test_split_polls_match_single_poll() -> None:
    first_half = SAMPLE[:5]
    second_half = SAMPLE[5:]
    for strategy_cls in (ListScanStrategy, HashMapStrategy):
        split = strategy_cls()
        split.process_data(first_half + second_half)
        split.process_data(first_half + second_half)
        combined = strategy_cls()
        combined.process_data(first_half + second_half + first_half + second_half)

        assert Counter(split.all_temperatures) == Counter(combined.all_temperatures)
        assert Counter(split.all_humidities) == Counter(combined.all_humidities)
        assert split.error_count == combined.error_count


def test_repeated_date_within_one_poll_merges(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(
        [20231106010101.0, 1.0, 2.0, 20231106020202.0, 3.0, 4.0, 20231106030303.0, 5.0, 6.0]
    )

    bucket = strategy.bucket(20231106)
    assert strategy.dates() == [20231106]
    assert bucket is not None
    assert bucket.temperatures == [1.0, 3.0, 5.0]
    assert bucket.humidities == [2.0, 4.0, 6.0]


def test_unsorted_datetimes_still_bucket_by_date(strategy: ParsedDataStrategy) -> None:
    strategy.process_data([20231130020202.0, 1.0, 2.0, 20231106010101.0, 3.0, 4.0])

    assert strategy.dates() == [20231106, 20231130]
    assert strategy.middle_reading(20231106) == TempHumidReading(3.0, 4.0)


def test_malformed_poll_leaves_state_untouched(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(SINGLE_DAY)

    with pytest.raises(MalformedStreamError):
        strategy.process_data([20231107010101.0, 1.0, 2.0, 3.0])

    assert strategy.dates() == [20231106]
    assert strategy.all_temperatures == [43.0, 45.0, 49.0]


def test_malformed_poll_logs_context(strategy: ParsedDataStrategy, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="services.strategies"):
        with pytest.raises(MalformedStreamError):
            strategy.process_data([20231107010101.0, 1.0, 2.0, 3.0])

    (record,) = [r for r in caplog.records if r.name == "services.strategies"]
    assert record.reason == "unpaired trailing measurement"
    assert record.index == 3
    assert record.marker == 20231107010101.0
    assert record.strategy == strategy.name


def test_empty_poll_is_noop(strategy: ParsedDataStrategy) -> None:
    strategy.process_data([])

    assert strategy.dates() == []
    assert strategy.percent_error() == 0.0


def test_reset_discards_everything(strategy: ParsedDataStrategy) -> None:
    strategy.process_data(SAMPLE)

    strategy.reset()

    assert strategy.dates() == []
    assert strategy.all_temperatures == []
    assert strategy.error_count == 0
    assert strategy.middle_reading() == TempHumidReading(-999.0, -999.0)


def test_large_measurements_are_paired_not_bucketed(strategy: ParsedDataStrategy) -> None:
    strategy.process_data([20231106010101.0, 20231107.0, 50.0])

    assert strategy.dates() == [20231106]
    assert strategy.middle_reading(20231106) == TempHumidReading(20231107.0, 50.0)


@pytest.mark.parametrize(
    ("name", "expected"),
    [("list", ListScanStrategy), ("map", HashMapStrategy), (" MAP ", HashMapStrategy)],
)
def test_build_strategy(name: str, expected: type) -> None:
    built = build_strategy(name)

    assert isinstance(built, expected)
    assert built.dates() == []


def test_build_strategy_rejects_unknown_name() -> None:
    with pytest.raises(ValueError, match="Unknown strategy"):
        build_strategy("tree")
