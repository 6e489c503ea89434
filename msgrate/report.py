import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Union

# Sink menerima satu baris laporan; tidak ada nilai balik (fire-and-forget)
ReportSink = Callable[[str], None]

DATE_FORMAT = "%m/%d/%Y %H:%M:%S"
NO_DATA = "EndOfFile_No_Date"

stats_logger = logging.getLogger("msgrate.stats")


def log_sink(line: str) -> None:
    """Sink default: tulis baris laporan ke logger `msgrate.stats`."""
    stats_logger.info(line)


def to_datetime(epoch_ms: int, tz: tzinfo) -> datetime:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).astimezone(tz)


def start_of_day(epoch_ms: int, tz: tzinfo) -> datetime:
    local = to_datetime(epoch_ms, tz)
    return datetime(local.year, local.month, local.day, tzinfo=tz)


def end_of_previous_day(day: datetime) -> datetime:
    """Akhir hari sebelumnya (23:59:59.999) untuk cap waktu laporan terjadwal."""
    return day - timedelta(milliseconds=1)


def format_timestamp(value: Union[datetime, str]) -> str:
    if isinstance(value, str):
        return value
    return value.strftime(DATE_FORMAT)


def format_report_line(source: str, stamp: Union[datetime, str], stats) -> str:
    return f"{source}, {format_timestamp(stamp)}, {stats}"


def format_gap_line(
    source: str,
    stamp: datetime,
    skipped: int,
    empty_start: datetime,
    empty_end: datetime,
) -> str:
    return (
        f"{source}, {format_timestamp(stamp)}"
        f", Logger Unavailable For (10 min intervals)={skipped}"
        f", emptyIntervalStart={format_timestamp(empty_start)}"
        f", emptyIntervalEnd={format_timestamp(empty_end)}"
    )
