from pydantic import BaseModel, Field
from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Event kedatangan log message
class MessageEvent(BaseModel):
    source: str = Field(..., min_length=1)
    message_id: str = Field(..., min_length=1)
    timestamp: datetime
    secondary: bool = False
    # True jika event ini menandai logger baru mulai (cek periode kosong)
    logger_starting: bool = False

    @property
    def arrival_ms(self) -> int:
        """Waktu kedatangan dalam epoch milidetik; timestamp tanpa zona dianggap UTC."""
        ts = self.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return (ts - EPOCH) // timedelta(milliseconds=1)
