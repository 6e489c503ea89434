import logging
from typing import List, Optional, Sequence

from .aggregator import GranularityAggregator
from .config import RateStatsConfig
from .errors import UsageError
from .report import (
    NO_DATA,
    ReportSink,
    end_of_previous_day,
    format_gap_line,
    format_report_line,
    log_sink,
    to_datetime,
)
from .scheduler import ReportScheduler
from .window import IntervalWindow


def check_interval_layout(slots: int, sizes: Sequence[int]) -> None:
    """
    Validasi layout window: daftar sub-interval tidak kosong dan panjang
    window habis dibagi setiap ukuran sub-interval.
    """
    if len(sizes) == 0:
        msg = "sub_interval_sizes has a size of 0"
        logging.warning(msg)
        raise UsageError(msg)

    for size in sizes:
        if size < 1 or slots % size != 0:
            msg = f"slots_to_keep({slots}) is not divisible by sub_interval_sizes value: {size}"
            logging.warning(msg)
            raise UsageError(msg)


class RateTracker:
    """
    Satu instance agregasi message rate untuk satu source efektif
    (nama source atau analysis group jika source digabung).

    Diasumsikan hanya ada satu penulis per tracker, tidak ada lock di sini.
    """

    def __init__(self, source: str, config: RateStatsConfig, sink: Optional[ReportSink] = None):
        check_interval_layout(config.slots_to_keep, config.sub_interval_sizes)

        self.source = source
        self.config = config
        self.tz = config.tz
        self.sink = sink or log_sink
        self.sizes: List[int] = list(config.sub_interval_sizes)
        self.window = IntervalWindow(config.slots_to_keep, config.max_messages_to_keep)
        self.scheduler = ReportScheduler(config.report_frequency, self.tz)
        self.aggregators: List[GranularityAggregator] = []
        self.reports_emitted = 0
        self.gap_notices = 0
        self._reset_aggregators()

        logging.info(
            f"Tracking message rate for {source} for {config.slots_to_keep} ten minutes slots"
            f" reportFreq={config.report_frequency} maxMsgToKeep={config.max_messages_to_keep}"
            f" 10MinIntervals={','.join(str(s) for s in self.sizes)}"
        )

    def _reset_aggregators(self) -> None:
        self.aggregators = [GranularityAggregator(size) for size in self.sizes]

    def mark_logger_starting(self, next_ms: int) -> None:
        """Tulis notice jika ada bucket kosong sejak event terakhir (logger sempat mati)."""
        gap = self.window.gap_before(next_ms)
        if gap is None:
            return
        self.gap_notices += 1
        self.sink(format_gap_line(
            self.source,
            to_datetime(gap.previous_ms, self.tz),
            gap.skipped,
            to_datetime(gap.empty_start_ms, self.tz),
            to_datetime(gap.empty_end_ms, self.tz),
        ))

    def add_message(self, message_id: str, arrival_ms: int, secondary: bool = False) -> bool:
        """
        Mencatat satu event. Rollover window (dan keputusan laporan) hanya terjadi
        ketika waktu event melewati batas akhir window.

        Return:
            bool: True jika event masuk ke counter.
        """
        self.window.last_event_ms = arrival_ms
        self._advance_window(arrival_ms)
        return self.window.record(message_id, arrival_ms, secondary)

    def _advance_window(self, arrival_ms: int) -> None:
        window = self.window
        if not window.active:
            window.open(arrival_ms)
            self.scheduler.start(window.start_ms)
            return

        if arrival_ms < window.end_ms:
            return

        self._rollover()
        window.advance()

        # Window yang terlewati dianggap tanpa data, tidak ikut ke statistik
        while arrival_ms >= window.end_ms:
            window.advance()

        self._report_if_needed(arrival_ms)

    def _rollover(self) -> None:
        for aggregator, rollup in zip(self.aggregators, self.window.rollup(self.sizes)):
            aggregator.absorb(rollup.msg1_unique, rollup.msg1_total, rollup.msg2_unique, rollup.msg2_total)
        self.window.clear()

    def _report_if_needed(self, arrival_ms: int) -> None:
        decision = self.scheduler.decide(arrival_ms)
        if not decision.emit:
            return

        self.generate_report(end_of_previous_day(decision.day))
        self.scheduler.mark_reported(decision.day)
        if decision.reset:
            logging.info(f"Resetting rate statistics for {self.source}")
            self._reset_aggregators()

    def generate_report(self, stamp=None) -> None:
        """
        Tulis satu baris laporan per ukuran sub-interval.
        Tanpa `stamp`, dipakai waktu event terakhir (atau penanda tanpa data).
        """
        if stamp is None:
            if self.window.last_event_ms is not None:
                stamp = to_datetime(self.window.last_event_ms, self.tz)
            else:
                stamp = NO_DATA

        for aggregator in self.aggregators:
            self.sink(format_report_line(self.source, stamp, aggregator))
        self.reports_emitted += 1

    def describe(self) -> dict:
        snapshot = {"source": self.source}
        snapshot.update(self.window.describe())
        snapshot["aggregators"] = [a.to_dict() for a in self.aggregators]
        return snapshot
