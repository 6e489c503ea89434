from dataclasses import dataclass, field
from typing import List

# Batas atas count per bucket (int 32-bit), count berhenti di sini tanpa wraparound
MAX_COUNT = 2**31 - 1


@dataclass
class PerMessageCounter:
    """
    Riwayat kemunculan satu message id di dalam window saat ini,
    satu slot per bucket 10 menit.
    """
    message_id: str
    slots: int
    secondary: bool = False
    counts: List[int] = field(init=False)

    def __post_init__(self):
        self.counts = [0] * self.slots

    def add(self, index: int) -> None:
        """Mencatat satu kemunculan di bucket `index` (saturasi di MAX_COUNT)."""
        if self.counts[index] < MAX_COUNT:
            self.counts[index] += 1

    def rollup(self, size: int) -> List[int]:
        """
        Menjumlahkan setiap `size` bucket berurutan menjadi satu sub-interval.

        Return:
            List[int]: total kemunculan per sub-interval, panjang slots // size.
        """
        return [sum(self.counts[i:i + size]) for i in range(0, self.slots - size + 1, size)]
