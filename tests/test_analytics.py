import csv
import os

os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pytest

import analytics
from analytics import AnalyticsLog, collect_stats, count_mine_clusters, mines_in_local_region


@pytest.fixture
def event_log(tmp_path):
    path = str(tmp_path / "events.csv")
    analytics.set_event_log(path)
    yield path
    analytics.set_event_log(None)


def test_clusters_use_eight_connectivity():
    mask = np.array([
        [1, 0, 0, 1],
        [0, 1, 0, 0],
        [0, 0, 0, 1],
    ], dtype=bool)
    assert count_mine_clusters(mask) == 3


def test_local_region_counts_the_full_block():
    mask = np.zeros((3, 3), dtype=bool)
    mask[1, 1] = True
    assert (mines_in_local_region(mask) == 1).all()

    corner = np.zeros((3, 3), dtype=bool)
    corner[0, 0] = True
    heat = mines_in_local_region(corner)
    assert heat[1, 1] == 1
    assert heat[2, 2] == 0


def test_stats_respect_the_safe_centre():
    stats = collect_stats(9, 9, 10, boards=20, seed=3)

    assert len(stats["zero_cells"]) == 20
    assert stats["value_counts"].sum() == 20 * (81 - 10)
    assert (stats["mine_frequency"][3:6, 3:6] == 0).all()
    assert stats["mine_frequency"].sum() == pytest.approx(10)


def test_generate_report_writes_pdf(tmp_path):
    out = tmp_path / "report.pdf"
    analytics.generate_report(6, 6, 5, 3, str(out))
    assert out.exists() and out.stat().st_size > 0


def test_generate_report_needs_boards(tmp_path):
    with pytest.raises(ValueError):
        analytics.generate_report(6, 6, 5, 0, str(tmp_path / "r.pdf"))


def test_track_appends_events(event_log):
    analytics.track("game_start", rows=9, cols=9)
    analytics.track("win", seconds=42)

    with open(event_log, newline="", encoding="utf-8") as fh:
        rows = list(csv.DictReader(fh))
    assert [r["event"] for r in rows] == ["game_start", "win"]
    assert rows[0]["params"] == "cols=9;rows=9"


def test_track_without_log_only_logs(caplog):
    analytics.set_event_log(None)
    with caplog.at_level("INFO", logger="analytics"):
        analytics.track("open_ranking")
    assert "open_ranking" in caplog.text


def test_analytics_log_round_trip(tmp_path):
    log = AnalyticsLog(str(tmp_path / "analytic.csv"))
    log.append({"created_at": "2024-01-01 10:00:00", "boards": 5, "rows": 9, "cols": 9, "mines": 10, "pdf_path": "a.pdf"})
    log.append({"created_at": "2024-02-01 10:00:00", "boards": 7, "rows": 9, "cols": 9, "mines": 10, "pdf_path": "b.pdf"})

    records = log.read_all()
    assert [r["boards"] for r in records] == [7, 5]
    assert records[0]["pdf_path"] == "b.pdf"


def test_analytics_log_writes_header_once(tmp_path):
    path = tmp_path / "analytic.csv"
    log = AnalyticsLog(str(path))
    assert not path.exists()

    log.append({"created_at": "2024-01-01 10:00:00", "boards": 5, "rows": 9, "cols": 9, "mines": 10, "pdf_path": "a.pdf"})
    log.append({"created_at": "2024-01-02 10:00:00", "boards": 6, "rows": 9, "cols": 9, "mines": 10, "pdf_path": "b.pdf"})

    with open(path, newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[0] == list(analytics.REPORT_FIELDNAMES)
    assert len(rows) == 3


def test_analytics_log_in_missing_directory(tmp_path):
    log = AnalyticsLog(str(tmp_path / "missing_dir" / "analytic.csv"))
    assert log.read_all() == []
    with pytest.raises(OSError):
        log.append({"created_at": "2024-01-01 10:00:00", "boards": 1, "rows": 9, "cols": 9, "mines": 10, "pdf_path": "a.pdf"})
