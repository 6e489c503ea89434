from typing import Annotated, Dict, List, Literal, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import UsageError

# Nilai default konfigurasi
DEFAULT_MAX_MESSAGES_TO_KEEP = 1000
DEFAULT_REPORT_DAYS = 10
DEFAULT_SLOTS_TO_KEEP = 12  # 12 x 10 menit = 2 jam
DEFAULT_SUB_INTERVAL_SIZES = [1, 2, 3, 6, 12]


class DaysFrequency(BaseModel):
    """Laporan setiap N hari."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["days"] = "days"
    days: int = Field(DEFAULT_REPORT_DAYS, ge=1)

    def __str__(self) -> str:
        return f"DAYS({self.days})"


class MonthlyFrequency(BaseModel):
    """Laporan setiap kali bulan kalender berganti."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["monthly"] = "monthly"

    def __str__(self) -> str:
        return "MONTHLY"


ReportFrequency = Annotated[Union[DaysFrequency, MonthlyFrequency], Field(discriminator="kind")]


def parse_report_frequency(text: Optional[str]) -> Union[DaysFrequency, MonthlyFrequency]:
    """
    Mengubah bentuk teks frekuensi laporan menjadi varian yang sesuai.

    Kosong/None -> 10 hari, "monthly" (huruf besar/kecil bebas) -> bulanan,
    angka -> jumlah hari tersebut.
    """
    if text is None or not text.strip():
        return DaysFrequency()
    text = text.strip()
    if text.lower() == "monthly":
        return MonthlyFrequency()
    try:
        days = int(text)
    except ValueError:
        raise UsageError(f"Invalid report frequency: {text!r}") from None
    if days < 1:
        raise UsageError(f"Report frequency in days must be positive: {days}")
    return DaysFrequency(days=days)


class RateStatsConfig(BaseModel):
    """
    Konfigurasi engine statistik message rate.
    Nilai sudah di-resolve oleh pemanggil (tidak ada pembacaan file di sini).
    """
    model_config = ConfigDict(frozen=True)

    output_time_zone: str = "UTC"
    merge_sources: bool = False
    source_groups: Dict[str, str] = Field(default_factory=dict)
    max_messages_to_keep: int = Field(DEFAULT_MAX_MESSAGES_TO_KEEP, ge=1)
    report_frequency: ReportFrequency = Field(default_factory=DaysFrequency)
    slots_to_keep: int = Field(DEFAULT_SLOTS_TO_KEEP, ge=1)
    sub_interval_sizes: List[int] = Field(default_factory=lambda: list(DEFAULT_SUB_INTERVAL_SIZES))

    @field_validator("output_time_zone")
    @classmethod
    def _known_time_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown time zone: {value}") from None
        return value

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.output_time_zone)
