import pytest
from pydantic import ValidationError

from msgrate.config import DaysFrequency, MonthlyFrequency, RateStatsConfig, parse_report_frequency
from msgrate.errors import UsageError


def test_defaults():
    config = RateStatsConfig()
    assert config.output_time_zone == "UTC"
    assert config.merge_sources is False
    assert config.max_messages_to_keep == 1000
    assert config.report_frequency == DaysFrequency(days=10)
    assert config.slots_to_keep == 12
    assert config.sub_interval_sizes == [1, 2, 3, 6, 12]


@pytest.mark.parametrize("text", [None, "", "   "])
def test_parse_empty_frequency_defaults_to_ten_days(text):
    assert parse_report_frequency(text) == DaysFrequency(days=10)


@pytest.mark.parametrize("text", ["monthly", "MONTHLY", "Monthly"])
def test_parse_monthly_frequency(text):
    assert isinstance(parse_report_frequency(text), MonthlyFrequency)


def test_parse_days_frequency():
    assert parse_report_frequency("7") == DaysFrequency(days=7)


@pytest.mark.parametrize("text", ["weekly", "0", "-3"])
def test_parse_invalid_frequency(text):
    with pytest.raises(UsageError):
        parse_report_frequency(text)


def test_frequency_is_immutable():
    freq = DaysFrequency(days=3)
    with pytest.raises(ValidationError):
        freq.days = 5


def test_frequency_from_tagged_dict():
    config = RateStatsConfig(report_frequency={"kind": "monthly"})
    assert isinstance(config.report_frequency, MonthlyFrequency)
    assert str(config.report_frequency) == "MONTHLY"

    config = RateStatsConfig(report_frequency={"kind": "days", "days": 30})
    assert config.report_frequency.days == 30
    assert str(config.report_frequency) == "DAYS(30)"


def test_unknown_time_zone_rejected():
    with pytest.raises(ValidationError):
        RateStatsConfig(output_time_zone="Mars/Olympus_Mons")


def test_max_messages_must_be_positive():
    with pytest.raises(ValidationError):
        RateStatsConfig(max_messages_to_keep=0)
