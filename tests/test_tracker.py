import pytest

from msgrate.config import DaysFrequency, RateStatsConfig
from msgrate.errors import UsageError
from msgrate.tracker import RateTracker

# 2024-01-01 00:00:00 UTC, sejajar dengan window 2 jam
BASE = 1704067200000
MINUTE = 60 * 1000
BUCKET = 10 * MINUTE
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def aggregator(tracker, size):
    return next(a for a in tracker.aggregators if a.interval_size == size)


# --- Konfigurasi ---

@pytest.mark.parametrize("slots, size", [(12, 5), (12, 7), (10, 3), (6, 4)])
def test_indivisible_layout_rejected(slots, size):
    config = RateStatsConfig(slots_to_keep=slots, sub_interval_sizes=[1, size])
    with pytest.raises(UsageError, match=f"value: {size}"):
        RateTracker("S", config)


def test_empty_sub_interval_list_rejected():
    config = RateStatsConfig(sub_interval_sizes=[])
    with pytest.raises(UsageError, match="size of 0"):
        RateTracker("S", config)


def test_one_aggregator_per_granularity(config):
    tracker = RateTracker("S", config)
    assert [a.interval_size for a in tracker.aggregators] == [1, 2, 3, 6, 12]


# --- Window ---

def test_first_event_opens_aligned_window(config):
    tracker = RateTracker("S", config)
    tracker.add_message("M1", BASE + 45 * MINUTE)

    assert tracker.window.start_ms == BASE
    assert tracker.window.end_ms == BASE + 2 * HOUR
    assert tracker.window.current_index == 4
    assert all(a.intervals == 0 for a in tracker.aggregators)


def test_window_bounds_follow_increasing_events(config):
    tracker = RateTracker("S", config)
    previous_start = None
    t = BASE + 3 * MINUTE
    for step in [1, 7, 13, 41, 90, 5, 170, 260, 33, 600, 2]:
        t += step * MINUTE
        tracker.add_message("M1", t)
        window = tracker.window
        assert window.start_ms <= t < window.end_ms
        if previous_start is not None:
            assert window.start_ms >= previous_start
        previous_start = window.start_ms


def test_scenario_full_window_one_message_per_bucket(config, lines):
    tracker = RateTracker("S", config, lines.append)
    for i in range(12):
        tracker.add_message("M1", BASE + i * BUCKET + MINUTE)
    tracker.add_message("M1", BASE + 2 * HOUR)

    agg = aggregator(tracker, 1)
    assert agg.intervals == 12
    assert agg.msg1_mean == 1.0
    assert agg.msg1_stddev == 0.0
    assert agg.zero_intervals == 0
    assert lines == []


def test_scenario_half_window(config):
    tracker = RateTracker("S", config)
    for i in range(6):
        tracker.add_message("M1", BASE + i * BUCKET)
    tracker.add_message("M1", BASE + 2 * HOUR)

    whole = aggregator(tracker, 12)
    assert whole.intervals == 1
    assert whole.msg1_unique_sum == 1
    assert whole.msg1_total == 6

    assert aggregator(tracker, 1).zero_intervals == 6
    assert aggregator(tracker, 6).zero_intervals == 1


def test_unique_count_counts_each_message_once_per_sub_interval(config):
    tracker = RateTracker("S", config)
    for _ in range(5):
        tracker.add_message("M1", BASE)
    tracker.add_message("M2", BASE + BUCKET)
    tracker.add_message("M1", BASE + 2 * HOUR)

    two = aggregator(tracker, 2)
    assert two.msg1_unique_max == 2
    assert two.msg1_unique_sum == 2
    assert two.msg1_total == 6


def test_secondary_messages_counted_separately(config):
    tracker = RateTracker("S", config)
    tracker.add_message("M1", BASE)
    tracker.add_message("W1", BASE, secondary=True)
    tracker.add_message("W1", BASE + MINUTE, secondary=True)
    tracker.add_message("M1", BASE + 2 * HOUR)

    whole = aggregator(tracker, 12)
    assert whole.msg1_unique_sum == 1
    assert whole.msg2_unique_sum == 1
    assert whole.msg1_total == 1
    assert whole.msg2_total == 2


def test_counters_dropped_at_rollover(config):
    tracker = RateTracker("S", config)
    tracker.add_message("M1", BASE)
    tracker.add_message("M2", BASE)
    tracker.add_message("M3", BASE + 2 * HOUR + MINUTE)

    assert list(tracker.window.counters) == ["M3"]
    assert tracker.window.current_index == 0


def test_skipped_windows_not_fed(config):
    tracker = RateTracker("S", config)
    for i in range(12):
        tracker.add_message("M1", BASE + i * BUCKET)
    tracker.add_message("M1", BASE + 10 * HOUR + MINUTE)

    assert tracker.window.start_ms == BASE + 10 * HOUR
    assert aggregator(tracker, 12).intervals == 1
    assert aggregator(tracker, 1).intervals == 12
    assert aggregator(tracker, 1).zero_intervals == 0


def test_backdated_event_recorded_in_own_bucket(config):
    tracker = RateTracker("S", config)
    tracker.add_message("M1", BASE + 35 * MINUTE)
    assert tracker.add_message("M1", BASE + 5 * MINUTE) is True

    counts = tracker.window.counters["M1"].counts
    assert counts[0] == 1
    assert counts[3] == 1
    # Indeks tertinggi tidak mundur
    assert tracker.window.current_index == 3


def test_event_before_window_start_not_counted(config):
    tracker = RateTracker("S", config)
    tracker.add_message("M1", BASE)
    tracker.add_message("M1", BASE + 2 * HOUR + MINUTE)

    assert tracker.add_message("M2", BASE + HOUR) is False
    assert "M2" not in tracker.window.counters
    assert tracker.window.start_ms == BASE + 2 * HOUR


def test_distinct_message_cap():
    tracker = RateTracker("S", RateStatsConfig(max_messages_to_keep=2))
    assert tracker.add_message("M1", BASE)
    assert tracker.add_message("M2", BASE)
    assert tracker.add_message("M3", BASE) is False
    # Id yang sudah dikenal tetap di-update
    assert tracker.add_message("M1", BASE + MINUTE)

    assert sorted(tracker.window.counters) == ["M1", "M2"]
    assert tracker.window.counters["M1"].counts[0] == 2


# --- Gap detection ---

def test_gap_notice_for_skipped_buckets(config, lines):
    tracker = RateTracker("S", config, lines.append)
    tracker.add_message("M1", BASE)
    tracker.mark_logger_starting(BASE + 25 * MINUTE)

    assert lines == [
        "S, 01/01/2024 00:00:00, Logger Unavailable For (10 min intervals)=2"
        ", emptyIntervalStart=01/01/2024 00:00:00, emptyIntervalEnd=01/01/2024 00:20:00"
    ]
    assert tracker.gap_notices == 1


def test_gap_start_rounded_up_to_next_bucket(config, lines):
    tracker = RateTracker("S", config, lines.append)
    tracker.add_message("M1", BASE + 3 * MINUTE)
    tracker.mark_logger_starting(BASE + 47 * MINUTE)

    assert lines == [
        "S, 01/01/2024 00:03:00, Logger Unavailable For (10 min intervals)=3"
        ", emptyIntervalStart=01/01/2024 00:10:00, emptyIntervalEnd=01/01/2024 00:40:00"
    ]


def test_no_gap_notice_on_first_event(config, lines):
    tracker = RateTracker("S", config, lines.append)
    tracker.mark_logger_starting(BASE)
    assert lines == []


def test_no_gap_notice_within_adjacent_buckets(config, lines):
    tracker = RateTracker("S", config, lines.append)
    tracker.add_message("M1", BASE + MINUTE)
    tracker.mark_logger_starting(BASE + 9 * MINUTE)
    tracker.mark_logger_starting(BASE + 19 * MINUTE)
    assert lines == []


# --- Laporan ---

def test_scheduled_report_after_day_change_without_reset(config, lines):
    tracker = RateTracker("S", config, lines.append)
    for i in range(12):
        tracker.add_message("M1", BASE + i * BUCKET)
    tracker.add_message("M1", BASE + DAY + MINUTE)

    assert len(lines) == 5
    assert lines[0].startswith("S, 01/01/2024 23:59:59, IntervalSize=1, msg1UMIDAvgCount=1.00")
    assert lines[4].startswith("S, 01/01/2024 23:59:59, IntervalSize=12,")
    assert aggregator(tracker, 1).intervals == 12
    assert tracker.reports_emitted == 1


def test_scheduled_report_resets_when_frequency_reached(lines):
    config = RateStatsConfig(report_frequency=DaysFrequency(days=1))
    tracker = RateTracker("S", config, lines.append)
    tracker.add_message("M1", BASE)
    tracker.add_message("M1", BASE + DAY)

    assert len(lines) == 5
    assert "numOfIntervals=12" in lines[0]
    assert all(a.intervals == 0 for a in tracker.aggregators)


def test_forced_report_without_data(config, lines):
    tracker = RateTracker("S", config, lines.append)
    tracker.generate_report()

    assert len(lines) == 5
    assert lines[0].startswith("S, EndOfFile_No_Date, IntervalSize=1, msg1UMIDAvgCount=0.00")
    assert "msg1UMIDMin=9223372036854775807" in lines[0]


def test_forced_report_uses_last_event_time(config, lines):
    tracker = RateTracker("S", config, lines.append)
    tracker.add_message("M1", BASE + 15 * MINUTE)
    tracker.generate_report()

    assert lines[2].startswith("S, 01/01/2024 00:15:00, IntervalSize=3,")


def test_report_timestamps_in_output_time_zone(lines):
    config = RateStatsConfig(output_time_zone="Asia/Jakarta")
    tracker = RateTracker("S", config, lines.append)
    tracker.add_message("M1", BASE)
    tracker.generate_report()

    assert lines[0].startswith("S, 01/01/2024 07:00:00,")


def test_describe_snapshot(config):
    tracker = RateTracker("S", config)
    tracker.add_message("M1", BASE + BUCKET)

    snapshot = tracker.describe()
    assert snapshot["source"] == "S"
    assert snapshot["window_start_ms"] == BASE
    assert snapshot["tracked_messages"] == 1
    assert len(snapshot["aggregators"]) == 5
