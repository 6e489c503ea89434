import logging
import threading
from typing import Dict, List, Optional

from .config import RateStatsConfig
from .groups import SourceGroupRegistry
from .report import ReportSink
from .tracker import RateTracker

ALL = "all"


class RateTrackerRegistry:
    """
    Cache tracker per source efektif untuk seluruh proses.

    Dibuat sekali saat start dan diteruskan ke semua pemanggil. Hanya jalur
    pembuatan tracker yang memakai lock; lookup tracker yang sudah ada
    tidak perlu lock.
    """

    def __init__(self, config: Optional[RateStatsConfig] = None, sink: Optional[ReportSink] = None):
        self.config = config or RateStatsConfig()
        self.sink = sink
        self.groups = SourceGroupRegistry(self.config.source_groups)
        self._trackers: Dict[str, RateTracker] = {}
        self._lock = threading.Lock()

    def effective_key(self, source: str) -> str:
        if self.config.merge_sources:
            return self.groups.group_for(source)
        return source

    def get(self, source: str) -> Optional[RateTracker]:
        return self._trackers.get(self.effective_key(source))

    def get_or_create(self, source: str) -> RateTracker:
        key = self.effective_key(source)
        tracker = self._trackers.get(key)
        if tracker is not None:
            return tracker

        with self._lock:
            # Cek ulang: thread lain mungkin sudah membuatnya
            tracker = self._trackers.get(key)
            if tracker is None:
                tracker = RateTracker(key, self.config, self.sink)
                self._trackers[key] = tracker
                logging.info(f"Created rate tracker for {key} (source={source})")
        return tracker

    def add_message(self, source: str, message_id: str, arrival_ms: int, secondary: bool = False) -> bool:
        return self.get_or_create(source).add_message(message_id, arrival_ms, secondary)

    def mark_logger_starting(self, source: str, next_ms: int) -> None:
        self.get_or_create(source).mark_logger_starting(next_ms)

    def request_report(self, source: str = ALL) -> int:
        """
        Laporan di luar jadwal untuk satu source atau semua ("all").

        Return:
            int: jumlah tracker yang menulis laporan.
        """
        if source == ALL:
            trackers = self.trackers()
        else:
            tracker = self.get(source)
            if tracker is None:
                logging.warning(f"No rate tracker for source {source}, report skipped")
                return 0
            trackers = [tracker]

        for tracker in trackers:
            tracker.generate_report()
        return len(trackers)

    def trackers(self) -> List[RateTracker]:
        with self._lock:
            return list(self._trackers.values())

    def __len__(self) -> int:
        return len(self._trackers)
