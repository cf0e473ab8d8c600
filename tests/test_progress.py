"""Tests for ProgressTracker."""
import pytest

from guestupload.models import Asset, TransferStatus
from guestupload.orchestrator.progress import ProgressTracker


@pytest.fixture
def tracked():
    snapshots = []
    assets = [Asset.from_bytes("a.jpg", b"x" * 10), Asset.from_bytes("b.jpg", b"y" * 20)]
    return ProgressTracker(assets, snapshots.append), snapshots


def test_starts_pending(tracked):
    tracker, _ = tracked
    snapshot = tracker.snapshot()
    assert list(snapshot) == ["a.jpg", "b.jpg"]
    assert all(r.status is TransferStatus.PENDING for r in snapshot.values())
    assert snapshot["b.jpg"].bytes_total == 20


def test_every_change_publishes(tracked):
    tracker, snapshots = tracked
    tracker.start("a.jpg")
    tracker.advance("a.jpg", 40)
    tracker.complete("a.jpg")
    assert [s["a.jpg"].status for s in snapshots] == [
        TransferStatus.UPLOADING,
        TransferStatus.UPLOADING,
        TransferStatus.COMPLETED,
    ]


def test_advance_never_regresses(tracked):
    tracker, _ = tracked
    tracker.start("a.jpg")
    tracker.advance("a.jpg", 60)
    record = tracker.advance("a.jpg", 30)
    assert record.progress_percent == 60


def test_advance_is_capped_until_complete(tracked):
    tracker, _ = tracked
    tracker.start("a.jpg")
    assert tracker.advance("a.jpg", 100).progress_percent == 99.0
    assert tracker.complete("a.jpg").progress_percent == 100.0


def test_advance_ignored_unless_uploading(tracked):
    tracker, snapshots = tracked
    record = tracker.advance("a.jpg", 50)
    assert record.status is TransferStatus.PENDING
    assert record.progress_percent == 0
    assert snapshots == []


def test_fail_resets_percent(tracked):
    tracker, _ = tracked
    tracker.start("b.jpg")
    tracker.advance("b.jpg", 70)
    record = tracker.fail("b.jpg", "Upload failed: HTTP 500")
    assert record.status is TransferStatus.ERROR
    assert record.progress_percent == 0.0
    assert record.error_detail == "Upload failed: HTTP 500"


def test_terminal_records_are_final(tracked):
    tracker, _ = tracked
    tracker.start("a.jpg")
    tracker.complete("a.jpg")
    with pytest.raises(RuntimeError):
        tracker.fail("a.jpg", "late")
    assert tracker.advance("a.jpg", 10).status is TransferStatus.COMPLETED


def test_published_snapshots_do_not_change(tracked):
    tracker, snapshots = tracked
    tracker.start("a.jpg")
    first = snapshots[0]
    tracker.complete("a.jpg")
    assert first["a.jpg"].status is TransferStatus.UPLOADING
    with pytest.raises(TypeError):
        first["c.jpg"] = None
