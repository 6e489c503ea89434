import math
from dataclasses import dataclass
from typing import Sequence

# Nilai awal min sebelum ada sub-interval yang tidak kosong
MIN_SENTINEL = 2**63 - 1


@dataclass
class GranularityAggregator:
    """
    Statistik kumulatif untuk satu ukuran sub-interval (1, 2, 3, 6, 12 bucket, ...).
    Di-reset hanya ketika laporan terjadwal meminta reset.
    """
    interval_size: int
    intervals: int = 0
    zero_intervals: int = 0
    msg1_unique_sum: int = 0
    msg2_unique_sum: int = 0
    msg1_unique_square_sum: int = 0
    msg1_unique_min: int = MIN_SENTINEL
    msg1_unique_max: int = 0
    msg1_total: int = 0
    msg2_total: int = 0

    def absorb(
        self,
        msg1_unique: Sequence[int],
        msg1_total: Sequence[int],
        msg2_unique: Sequence[int],
        msg2_total: Sequence[int],
    ) -> None:
        """Menambahkan hasil rollup satu window (satu nilai per sub-interval)."""
        self.intervals += len(msg1_unique)

        for unique1, total1, unique2, total2 in zip(msg1_unique, msg1_total, msg2_unique, msg2_total):
            if unique1 == 0:
                # Cukup cek msg1: msg2 tidak muncul tanpa msg1 di sub-interval yang sama
                self.zero_intervals += 1
            else:
                # Interval kosong (startup, shutdown) tidak ikut menentukan min
                self.msg1_unique_min = min(self.msg1_unique_min, unique1)

            self.msg1_unique_max = max(self.msg1_unique_max, unique1)

            self.msg1_unique_sum += unique1
            self.msg2_unique_sum += unique2
            self.msg1_unique_square_sum += unique1 * unique1

            self.msg1_total += total1
            self.msg2_total += total2

    @property
    def msg1_mean(self) -> float:
        if self.intervals == 0:
            return 0.0
        return self.msg1_unique_sum / self.intervals

    @property
    def msg2_mean(self) -> float:
        if self.intervals == 0:
            return 0.0
        return self.msg2_unique_sum / self.intervals

    @property
    def msg1_variance(self) -> float:
        if self.intervals == 0:
            return 0.0
        mean = self.msg1_mean
        return self.msg1_unique_square_sum / self.intervals - mean * mean

    @property
    def msg1_stddev(self) -> float:
        # Pembulatan float bisa menghasilkan variance sedikit di bawah nol
        return math.sqrt(max(self.msg1_variance, 0.0))

    def to_dict(self) -> dict:
        return {
            "interval_size": self.interval_size,
            "msg1_mean": round(self.msg1_mean, 4),
            "msg2_mean": round(self.msg2_mean, 4),
            "msg1_unique_count": self.msg1_unique_sum,
            "msg2_unique_count": self.msg2_unique_sum,
            "intervals": self.intervals,
            "msg1_stddev": round(self.msg1_stddev, 4),
            "msg1_min": self.msg1_unique_min,
            "msg1_max": self.msg1_unique_max,
            "zero_intervals": self.zero_intervals,
            "msg1_total": self.msg1_total,
            "msg2_total": self.msg2_total,
        }

    def __str__(self) -> str:
        return (
            f"IntervalSize={self.interval_size}"
            f", msg1UMIDAvgCount={self.msg1_mean:.2f}"
            f", msg2UMIDAvgCount={self.msg2_mean:.2f}"
            f", msg1UMIDCount={self.msg1_unique_sum}"
            f", msg2UMIDCount={self.msg2_unique_sum}"
            f", numOfIntervals={self.intervals}"
            f", msg1UMIDStdDev={self.msg1_stddev:.2f}"
            f", msg1UMIDMin={self.msg1_unique_min}"
            f", msg1UMIDMax={self.msg1_unique_max}"
            f", zeroCountIntervals={self.zero_intervals}"
            f", msg1TotalCount={self.msg1_total}"
            f", msg2TotalCount={self.msg2_total}"
        )
