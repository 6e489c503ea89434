from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional, Union

from .config import DaysFrequency, MonthlyFrequency
from .report import start_of_day


@dataclass(frozen=True)
class ReportDecision:
    emit: bool
    reset: bool
    day: datetime


def _month_changed(a: datetime, b: datetime) -> bool:
    return a.month != b.month or a.year != b.year


class ReportScheduler:
    """
    Menentukan, pada setiap rollover window, apakah laporan perlu dikeluarkan
    dan apakah statistik kumulatif perlu di-reset.

    Frekuensi DAYS(n): emit + reset setelah n hari sejak laporan terakhir;
    selama n hari pertama sejak tracker mulai, emit harian tanpa reset.
    Frekuensi MONTHLY: emit + reset ketika bulan berganti; selama masih di
    bulan yang sama dengan awal pemrosesan, emit harian tanpa reset.
    """

    def __init__(self, frequency: Union[DaysFrequency, MonthlyFrequency], tz: tzinfo):
        self.frequency = frequency
        self.tz = tz
        self.last_report_day: Optional[datetime] = None
        self.processing_start_day: Optional[datetime] = None

    def start(self, window_start_ms: int) -> None:
        day = start_of_day(window_start_ms, self.tz)
        self.last_report_day = day
        self.processing_start_day = day

    def decide(self, arrival_ms: int) -> ReportDecision:
        day = start_of_day(arrival_ms, self.tz)
        days_since_report = (day.date() - self.last_report_day.date()).days
        if days_since_report < 1:
            return ReportDecision(False, False, day)

        if isinstance(self.frequency, MonthlyFrequency):
            if _month_changed(self.last_report_day, day):
                return ReportDecision(True, True, day)
            return ReportDecision(not _month_changed(self.processing_start_day, day), False, day)

        if days_since_report >= self.frequency.days:
            return ReportDecision(True, True, day)
        days_since_start = (day.date() - self.processing_start_day.date()).days
        return ReportDecision(days_since_start <= self.frequency.days, False, day)

    def mark_reported(self, day: datetime) -> None:
        self.last_report_day = day
