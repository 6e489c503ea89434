import time
from dataclasses import dataclass, field

@dataclass
class StatsTracker:
    """
    Kelas untuk melacak statistik operasional service.
    Menghitung event diterima, tercatat ke counter, yang di-drop
    (id baru melewati batas atau waktu sebelum window), dan uptime.
    """
    received: int = 0
    recorded: int = 0
    dropped: int = 0
    start_time: float = field(default_factory=time.monotonic)

    def inc_received(self, count: int = 1):
        """Menambah jumlah event yang diterima dari publisher."""
        self.received += count

    def inc_recorded(self, count: int = 1):
        """Menambah jumlah event yang masuk ke counter."""
        self.recorded += count

    def inc_dropped(self, count: int = 1):
        """Menambah jumlah event yang tidak dihitung."""
        self.dropped += count

    def get_stats(self) -> dict:
        """Mengembalikan statistik sistem dalam bentuk dictionary."""
        uptime = time.monotonic() - self.start_time
        return {
            "received": self.received,
            "recorded": self.recorded,
            "dropped": self.dropped,
            "uptime_seconds": round(uptime, 2),
            "throughput": (
                round(self.recorded / uptime, 4)
                if uptime > 0 else 0
            ),
            "drop_rate": (
                round(self.dropped / self.received, 4)
                if self.received > 0 else 0
            ),
        }
