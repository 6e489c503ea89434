from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .counter import PerMessageCounter

# Durasi satu bucket: 10 menit dalam milidetik
BUCKET_MS = 10 * 60 * 1000


@dataclass
class WindowRollup:
    """Hasil rollup satu window untuk satu ukuran sub-interval."""
    interval_size: int
    msg1_unique: List[int]
    msg1_total: List[int]
    msg2_unique: List[int]
    msg2_total: List[int]


@dataclass
class Gap:
    """Periode kosong di antara dua event (dalam bucket utuh)."""
    skipped: int
    previous_ms: int
    empty_start_ms: int
    empty_end_ms: int


class IntervalWindow:
    """
    Window retensi untuk satu tracker.

    Menyimpan batas window (start/end), indeks bucket tertinggi yang sudah
    terlihat, dan counter per message id. Jumlah message id dibatasi oleh
    `max_messages`: id baru diabaikan setelah batas tercapai, id lama tetap
    di-update.
    """

    def __init__(self, slots: int, max_messages: int, bucket_ms: int = BUCKET_MS):
        self.slots = slots
        self.max_messages = max_messages
        self.bucket_ms = bucket_ms
        self.length_ms = slots * bucket_ms
        self.start_ms: Optional[int] = None
        self.end_ms: Optional[int] = None
        self.current_index = 0
        self.last_event_ms: Optional[int] = None
        self.counters: Dict[str, PerMessageCounter] = {}

    @property
    def active(self) -> bool:
        return self.start_ms is not None

    def open(self, arrival_ms: int) -> None:
        """Menentukan window pertama: waktu event dibulatkan ke kelipatan panjang window."""
        self.start_ms = (arrival_ms // self.length_ms) * self.length_ms
        self.end_ms = self.start_ms + self.length_ms
        self.current_index = 0

    def advance(self) -> None:
        """Geser window satu panjang window ke depan, indeks kembali ke 0."""
        self.start_ms = self.end_ms
        self.end_ms = self.start_ms + self.length_ms
        self.current_index = 0

    def record(self, message_id: str, arrival_ms: int, secondary: bool) -> bool:
        """
        Mencatat satu kemunculan message di bucket miliknya sendiri.

        Return:
            bool: True jika tercatat, False jika event sebelum awal window
            atau message id baru ditolak karena batas jumlah id.
        """
        index = (arrival_ms - self.start_ms) // self.bucket_ms
        if index > self.current_index:
            self.current_index = index

        if arrival_ms < self.start_ms:
            return False

        counter = self.counters.get(message_id)
        if counter is None:
            if len(self.counters) >= self.max_messages:
                return False
            counter = PerMessageCounter(message_id, self.slots, secondary)
            self.counters[message_id] = counter

        counter.add(index)
        return True

    def rollup(self, sizes: Sequence[int]) -> List[WindowRollup]:
        """
        Meringkas semua counter per ukuran sub-interval: jumlah message id unik
        dan total kemunculan, dipisah menurut jenis msg1/msg2.
        """
        rollups = []
        for size in sizes:
            n = self.slots // size
            result = WindowRollup(size, [0] * n, [0] * n, [0] * n, [0] * n)
            for counter in self.counters.values():
                unique = result.msg2_unique if counter.secondary else result.msg1_unique
                total = result.msg2_total if counter.secondary else result.msg1_total
                for i, count in enumerate(counter.rollup(size)):
                    total[i] += count
                    if count > 0:
                        unique[i] += 1
            rollups.append(result)
        return rollups

    def clear(self) -> None:
        self.counters.clear()

    def gap_before(self, next_ms: int) -> Optional[Gap]:
        """
        Menghitung bucket utuh yang kosong antara event terakhir dan `next_ms`.
        Return None jika belum ada event sebelumnya atau tidak ada bucket kosong.
        """
        if self.last_event_ms is None:
            return None

        # Awal bucket berikutnya setelah event sebelumnya
        empty_start = self.last_event_ms
        if empty_start % self.bucket_ms > 0:
            empty_start = (empty_start // self.bucket_ms) * self.bucket_ms + self.bucket_ms

        # Akhir bucket sebelum event berikutnya
        empty_end = (next_ms // self.bucket_ms) * self.bucket_ms

        # Bisa negatif jika kedua event berada di bucket yang sama
        skipped = (empty_end - empty_start) // self.bucket_ms
        if skipped <= 0:
            return None
        return Gap(skipped, self.last_event_ms, empty_start, empty_end)

    def describe(self) -> dict:
        return {
            "window_start_ms": self.start_ms,
            "window_end_ms": self.end_ms,
            "current_index": self.current_index,
            "tracked_messages": len(self.counters),
        }
