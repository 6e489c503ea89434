# main.py

import asyncio
import logging
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import List, Optional, Union

import uvicorn
from fastapi import FastAPI, HTTPException, Query, Request

from .config import RateStatsConfig
from .models import MessageEvent
from .registry import ALL, RateTrackerRegistry
from .report import ReportSink, log_sink
from .stats import StatsTracker
from .tracker import check_interval_layout

# Konfigurasi logging dasar
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

# --- Konfigurasi Consumer ---
CONSUMER_BATCH_SIZE = 100
CONSUMER_WORKERS = 2
RECENT_REPORT_LINES = 1000


def consume_event(registry: RateTrackerRegistry, event: MessageEvent) -> bool:
    """Teruskan satu event ke tracker source efektifnya."""
    if event.logger_starting:
        registry.mark_logger_starting(event.source, event.arrival_ms)
    return registry.add_message(event.source, event.message_id, event.arrival_ms, event.secondary)


# Fungsi factory untuk testing
def create_app(config: Optional[RateStatsConfig] = None, sink: Optional[ReportSink] = None) -> FastAPI:
    config = config or RateStatsConfig()
    # Layout window yang salah harus gagal sebelum event pertama diterima
    check_interval_layout(config.slots_to_keep, config.sub_interval_sizes)

    downstream = sink or log_sink
    recent_lines = deque(maxlen=RECENT_REPORT_LINES)

    def app_sink(line: str) -> None:
        recent_lines.append(line)
        downstream(line)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Saat startup: jalankan consumer; saat shutdown: laporan akhir lalu hentikan consumer."""
        app.state.consumer_tasks = [
            asyncio.create_task(
                consumer(f"consumer-{i}", queue, app.state.registry, app.state.stats_tracker)
            )
            for i, queue in enumerate(app.state.event_queues)
        ]
        logging.info(f"Application startup complete with {CONSUMER_WORKERS} consumer(s).")

        yield

        for queue in app.state.event_queues:
            await queue.join()
        # Akhir stream: keluarkan laporan untuk semua tracker
        app.state.registry.request_report(ALL)

        logging.info(f"Shutting down {len(app.state.consumer_tasks)} consumer task(s)...")
        for task in app.state.consumer_tasks:
            task.cancel()
        await asyncio.gather(*app.state.consumer_tasks, return_exceptions=True)
        logging.info("Application shutdown complete.")

    app = FastAPI(title="Message Rate Statistics", lifespan=lifespan)

    # Satu queue per consumer; satu source efektif selalu ke queue yang sama
    app.state.event_queues = [asyncio.Queue() for _ in range(CONSUMER_WORKERS)]
    app.state.stats_tracker = StatsTracker()
    app.state.registry = RateTrackerRegistry(config, app_sink)
    app.state.report_lines = recent_lines

    # ===================================================================
    # CONSUMER
    # ===================================================================
    async def consumer(worker_id: str, queue: asyncio.Queue, registry: RateTrackerRegistry, stats: StatsTracker):
        """Background task yang memproses event dari queue DALAM BATCH."""
        logging.info(f"[{worker_id}] Batch consumer task started...")

        while True:
            batch = []
            try:
                # 1. Tunggu event pertama
                event = await queue.get()
                batch.append(event)

                # 2. Kumpulkan event lain (jika ada) tanpa menunggu
                while len(batch) < CONSUMER_BATCH_SIZE and not queue.empty():
                    batch.append(queue.get_nowait())

            except asyncio.QueueEmpty:
                pass
            except asyncio.CancelledError:
                logging.info(f"[{worker_id}] Consumer task stopping.")
                break

            # 3. Proses batch secara berurutan (urutan kedatangan per source dijaga)
            start_batch_time = time.monotonic()
            recorded = 0
            for event in batch:
                try:
                    if consume_event(registry, event):
                        recorded += 1
                except Exception as e:
                    logging.error(f"[{worker_id}] Error processing event {event.message_id}: {e}", exc_info=True)
                finally:
                    queue.task_done()
            end_batch_time = time.monotonic()

            stats.inc_recorded(recorded)
            stats.inc_dropped(len(batch) - recorded)

            logging.debug(
                f"[{worker_id}] Processed batch of {len(batch)}. "
                f"Recorded: {recorded}, Dropped: {len(batch) - recorded}. "
                f"Time: {(end_batch_time - start_batch_time)*1000:.2f}ms"
            )

        logging.info(f"[{worker_id}] Consumer task finished.")
    # ===================================================================

    # --- API Endpoints ---

    @app.post("/publish")
    async def publish_events(
        events: Union[MessageEvent, List[MessageEvent]],
        request: Request
    ):
        """
        Menerima satu atau batch event dan menambahkannya ke queue
        milik source efektifnya.
        """
        queues = request.app.state.event_queues
        registry = request.app.state.registry
        stats = request.app.state.stats_tracker

        event_list = [events] if isinstance(events, MessageEvent) else events

        for event in event_list:
            key = registry.effective_key(event.source)
            await queues[hash(key) % len(queues)].put(event)

        stats.inc_received(len(event_list))
        return {"status": "queued", "received_count": len(event_list)}

    @app.post("/report")
    async def request_report(request: Request, source: str = Query(ALL, min_length=1)):
        """Memaksa laporan di luar jadwal untuk satu source atau semua source."""
        registry = request.app.state.registry

        # Pastikan event yang sudah diterima ikut terhitung
        for queue in request.app.state.event_queues:
            await queue.join()

        if source != ALL and registry.get(source) is None:
            raise HTTPException(status_code=404, detail=f"No rate tracker for source {source}")

        count = registry.request_report(source)
        return {"status": "reported", "trackers": count}

    @app.get("/reports")
    async def get_report_lines(request: Request, limit: int = Query(100, ge=1, le=RECENT_REPORT_LINES)):
        """Mengembalikan baris laporan terbaru (tidak dipersistensi)."""
        lines = list(request.app.state.report_lines)
        return {"lines": lines[-limit:]}

    @app.get("/stats")
    async def get_rate_stats(request: Request):
        """Menampilkan statistik operasional dan snapshot setiap tracker."""
        registry = request.app.state.registry
        current_stats = request.app.state.stats_tracker.get_stats()

        trackers = registry.trackers()
        current_stats["gap_notices"] = sum(t.gap_notices for t in trackers)
        current_stats["reports_emitted"] = sum(t.reports_emitted for t in trackers)
        current_stats["trackers"] = [t.describe() for t in trackers]

        return current_stats

    return app

# Buat aplikasi
app = create_app()

if __name__ == "__main__":
    uvicorn.run("msgrate.main:app", host="0.0.0.0", port=8080)
