import requests
import time
import random
from datetime import datetime, timedelta, timezone
from requests.exceptions import RequestException
import logging

# ===========================
# Konfigurasi Publisher
# ===========================
SERVICE_URL = "http://msgrate:8080"
PUBLISH_URL = f"{SERVICE_URL}/publish"
STATS_URL = f"{SERVICE_URL}/stats"
REPORT_URL = f"{SERVICE_URL}/report"
SOURCES = ["host-a", "host-b", "host-c"]
MESSAGE_IDS = [f"MSG{n:04d}" for n in range(200)]
SIMULATED_HOURS = 48
EVENTS_PER_BUCKET = 20
SECONDARY_PERCENT = 0.10
OUTAGE_PERCENT = 0.02
BATCH_SIZE = 100
RETRY_LIMIT = 3
RETRY_DELAY = 1
POLL_INTERVAL = 2

# Setup basic logging
logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')

# ===========================
# Fungsi Pembantu
# ===========================

def generate_event(source, timestamp, logger_starting=False):
    """Membuat satu event kedatangan message."""
    return {
        "source": source,
        "message_id": random.choice(MESSAGE_IDS),
        "timestamp": timestamp.isoformat(),
        "secondary": random.random() < SECONDARY_PERCENT,
        "logger_starting": logger_starting,
    }

def generate_stream(start):
    """
    Membuat event berurutan waktu untuk setiap source selama SIMULATED_HOURS.
    Sesekali source "mati" satu jam untuk memicu notice logger unavailable.
    """
    events = []
    for source in SOURCES:
        t = start
        end = start + timedelta(hours=SIMULATED_HOURS)
        restarting = False
        while t < end:
            if random.random() < OUTAGE_PERCENT:
                t += timedelta(hours=1)
                restarting = True
                continue
            for _ in range(EVENTS_PER_BUCKET):
                t += timedelta(seconds=600 / EVENTS_PER_BUCKET)
                events.append(generate_event(source, t, logger_starting=restarting))
                restarting = False
    return events

def safe_post(url, json, retries=RETRY_LIMIT, delay=RETRY_DELAY, params=None):
    """Melakukan POST dengan mekanisme retry untuk keandalan."""
    for attempt in range(1, retries + 1):
        try:
            r = requests.post(url, json=json, params=params, timeout=10)
            if r.status_code == 200:
                return True, r.elapsed.total_seconds() * 1000
            else:
                logging.warning(f"Attempt {attempt}: status {r.status_code} - {r.text}")
        except RequestException as e:
            logging.error(f"Attempt {attempt}: {e}")
        time.sleep(delay)
    return False, 0

def wait_for_processing(total_events):
    """Polling /stats sampai semua event terproses (tercatat + di-drop)."""
    logging.info("Menunggu semua event diproses oleh consumer...")
    while True:
        try:
            response = requests.get(STATS_URL, timeout=5)
            response.raise_for_status()
            stats = response.json()

            processed_count = stats.get("recorded", 0) + stats.get("dropped", 0)
            if processed_count >= total_events:
                logging.info("Semua event telah diproses ✅")
                return stats

            logging.info(f"Progress: {processed_count}/{total_events} ...")

        except RequestException as e:
            logging.warning(f"Gagal ambil stats: {e}")

        time.sleep(POLL_INTERVAL)

# ===========================
# Main Function
# ===========================

def run_test():
    logging.info(f"Menunggu service siap di {SERVICE_URL}...")
    while True:
        try:
            requests.get(STATS_URL, timeout=3)
            logging.info("Service siap ✅")
            break
        except requests.ConnectionError:
            time.sleep(2)

    start = datetime.now(timezone.utc) - timedelta(hours=SIMULATED_HOURS)
    events_to_send = generate_stream(start)
    # Urutan per source dijaga oleh service, antar source boleh campur
    events_to_send.sort(key=lambda e: e["timestamp"])
    logging.info(f"Mengirim total {len(events_to_send)} event dari {len(SOURCES)} source...")

    total_ingestion_start = time.perf_counter()
    total_batches = (len(events_to_send) + BATCH_SIZE - 1) // BATCH_SIZE

    for i in range(0, len(events_to_send), BATCH_SIZE):
        batch = events_to_send[i : i + BATCH_SIZE]
        batch_num = (i // BATCH_SIZE) + 1

        success, latency_ms = safe_post(PUBLISH_URL, batch)
        status = "✅ OK" if success else "❌ Gagal"
        logging.debug(f"Batch {batch_num}/{total_batches} dikirim... {status} (Latency: {latency_ms:.2f}ms)")

    total_ingestion_time_sec = time.perf_counter() - total_ingestion_start
    print(f"\nSelesai mengirim {len(events_to_send)} event dalam {total_ingestion_time_sec:.2f} detik.")

    stats = wait_for_processing(len(events_to_send))
    safe_post(REPORT_URL, None, params={"source": "all"})

    print("\n--- STATISTIK AKHIR ---")
    print(f"  Total Received:  {stats.get('received', 'N/A')}")
    print(f"  Recorded:        {stats.get('recorded', 'N/A')}")
    print(f"  Dropped:         {stats.get('dropped', 'N/A')}")
    print(f"  Gap Notices:     {stats.get('gap_notices', 'N/A')}")
    print(f"  Reports Emitted: {stats.get('reports_emitted', 'N/A')}")
    for tracker in stats.get("trackers", []):
        print(f"\n  [{tracker['source']}] tracked messages: {tracker['tracked_messages']}")
        for agg in tracker["aggregators"]:
            print(
                f"    size={agg['interval_size']:>2} intervals={agg['intervals']:>4} "
                f"mean={agg['msg1_mean']:.2f} stddev={agg['msg1_stddev']:.2f} zero={agg['zero_intervals']}"
            )

    assert stats.get("received") == len(events_to_send)
    print("\nVerifikasi statistik berhasil! ✅")

# ===========================
# Entry Point
# ===========================
if __name__ == "__main__":
    run_test()
