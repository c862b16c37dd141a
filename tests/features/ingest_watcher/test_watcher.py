import json
import threading
import time

import pytest

from highlighter.core.errors import InitializationError
from highlighter.features.ingest_watcher.domain.models import WatchRequest
from highlighter.features.ingest_watcher.service.api import build_watcher
from highlighter.features.ingest_watcher.service.watcher import IngestWatcher
from highlighter.features.markers.data.marker_file import MarkerFile
from highlighter.features.storage.domain.models import StorageLocator


class NeverStable:
    def wait_until_stable(self, path) -> bool:
        return False


@pytest.fixture
def watch_dir(settings):
    return settings.WATCH_FOLDER


@pytest.fixture
def watcher(ctx):
    return build_watcher(ctx)


def write_recording(folder, name="recording.mkv", size=2048):
    path = folder / name
    path.write_bytes(b"\0" * size)
    return path


def test_missing_watch_folder_is_fatal(ctx, tmp_path):
    ctx.settings.WATCH_FOLDER = tmp_path / "nope"
    with pytest.raises(InitializationError):
        build_watcher(ctx)


def test_existing_files_are_baselined(watcher, watch_dir):
    write_recording(watch_dir, "old.mkv")
    assert watcher.baseline() == 1
    assert watcher.scan_once() == []

    new = write_recording(watch_dir, "new.mp4")
    assert watcher.scan_once() == [new]


def test_scan_filters_extensions_and_junk(watcher, watch_dir):
    watcher.baseline()
    write_recording(watch_dir, "notes.txt")
    write_recording(watch_dir, ".hidden.mkv")
    write_recording(watch_dir, ".DS_Store")
    write_recording(watch_dir, "partial.mkv.part")
    wanted = write_recording(watch_dir, "UPPER.MKV")

    assert watcher.scan_once() == [wanted]


def test_process_file_uploads_and_registers(ctx, watcher, watch_dir):
    marker_file = MarkerFile(ctx.settings.MARKER_FILE)
    marker_file.append(10.0)
    marker_file.append(50.5)
    path = write_recording(watch_dir, "session.mkv", size=4096)

    record = watcher.process_file(path)

    assert record is not None
    assert record.file_name == "session.mkv"
    assert record.file_size == 4096
    assert record.markers == (10.0, 50.5)
    assert record.has_markers
    assert record.gcs_path == "local://test-bucket/videos/session.mkv"
    # Markers are consumed by this recording
    assert marker_file.peek() == []

    stored = ctx.store.object_file(StorageLocator.parse(record.gcs_path))
    assert stored.read_bytes() == path.read_bytes()
    sidecar = json.loads(stored.with_name(stored.name + ".meta.json").read_text())
    assert sidecar["contentType"] == "video/mp4"
    assert sidecar["metadata"]["uploadedBy"] == "obs-watcher"
    assert "uploadedAt" in sidecar["metadata"]

    assert watcher.summary.files_uploaded == 1
    assert ctx.videos.repo.get(record.video_id) is not None


def test_upload_without_markers(watcher, watch_dir):
    record = watcher.process_file(write_recording(watch_dir))
    assert record.has_markers is False
    assert record.markers == ()


def test_small_files_are_skipped(ctx, watch_dir):
    request = WatchRequest(root_path=watch_dir, extensions=[".mkv"], min_file_size_mb=1)
    watcher = IngestWatcher(ctx, request, MarkerFile(ctx.settings.MARKER_FILE))

    assert watcher.process_file(write_recording(watch_dir, size=1024)) is None
    assert watcher.summary.files_skipped == 1
    assert watcher.summary.files_uploaded == 0


def test_unstable_files_are_skipped(ctx, watch_dir):
    marker_file = MarkerFile(ctx.settings.MARKER_FILE)
    marker_file.append(3.0)
    request = WatchRequest(root_path=watch_dir, extensions=[".mkv"], min_file_size_mb=0)
    watcher = IngestWatcher(ctx, request, marker_file, detector=NeverStable())

    assert watcher.process_file(write_recording(watch_dir)) is None
    assert watcher.summary.files_skipped == 1
    # Markers stay pending for the next recording
    assert marker_file.peek() == [3.0]


def test_repeated_trigger_is_ignored(watcher, watch_dir):
    path = write_recording(watch_dir)
    with watcher.in_flight.claim(path):
        assert watcher.process_file(path) is None
    assert watcher.summary.files_seen == 0


def test_uploaded_file_is_not_retriggered(watcher, watch_dir):
    watcher.baseline()
    path = write_recording(watch_dir)
    assert watcher.scan_once() == [path]
    watcher.process_file(path)

    assert watcher.scan_once() == []


def test_upload_errors_are_collected(ctx, watcher, watch_dir, monkeypatch):
    def broken_upload(*args, **kwargs):
        raise OSError("bucket unreachable")

    monkeypatch.setattr(ctx.store, "upload", broken_upload)

    assert watcher.process_file(write_recording(watch_dir)) is None
    assert len(watcher.summary.errors) == 1
    assert "bucket unreachable" in watcher.summary.errors[0]
    assert len(watcher.in_flight) == 0


def test_run_uploads_new_recordings_until_stopped(watcher, watch_dir):
    write_recording(watch_dir, "before-start.mkv")
    stop_event = threading.Event()
    worker = threading.Thread(target=watcher.run, args=(stop_event,))
    worker.start()
    try:
        time.sleep(0.2)
        write_recording(watch_dir, "after-start.mkv")

        deadline = time.monotonic() + 10
        while watcher.summary.files_uploaded < 1 and time.monotonic() < deadline:
            time.sleep(0.05)
    finally:
        stop_event.set()
        worker.join(timeout=10)

    assert not worker.is_alive()
    assert watcher.summary.files_uploaded == 1
    assert watcher.summary.files_seen == 1


class AlwaysStable:
    def wait_until_stable(self, path) -> bool:
        return True


def test_unstable_file_triggers_again(watcher, watch_dir):
    watcher.baseline()
    watcher.detector = NeverStable()
    path = write_recording(watch_dir)

    assert watcher.scan_once() == [path]
    assert watcher.process_file(path) is None
    # Same size as last scan, but it never settled
    assert watcher.scan_once() == [path]

    watcher.detector = AlwaysStable()
    assert watcher.process_file(path) is not None
    assert watcher.scan_once() == []


def test_final_size_seen_while_in_flight_triggers_again(watcher, watch_dir):
    watcher.baseline()
    path = write_recording(watch_dir, "live.mkv", size=1000)
    assert watcher.scan_once() == [path]

    with watcher.in_flight.claim(path):
        write_recording(watch_dir, "live.mkv", size=5000)
        # The run loop skips paths that are in flight
        assert watcher.scan_once() == [path]

    assert watcher.scan_once() == [path]
    assert watcher.process_file(path).file_size == 5000
    assert watcher.scan_once() == []


def test_failed_upload_keeps_markers_and_retries(ctx, watcher, watch_dir, monkeypatch):
    marker_file = watcher.marker_file
    marker_file.append(12.5)
    watcher.baseline()
    path = write_recording(watch_dir)
    assert watcher.scan_once() == [path]

    real_upload = ctx.store.upload

    def broken_upload(*args, **kwargs):
        raise ConnectionError("bucket unreachable")

    monkeypatch.setattr(ctx.store, "upload", broken_upload)
    assert watcher.process_file(path) is None
    assert marker_file.peek() == [12.5]
    assert watcher.scan_once() == [path]

    monkeypatch.setattr(ctx.store, "upload", real_upload)
    record = watcher.process_file(path)
    assert record.markers == (12.5,)
    assert marker_file.peek() == []


def test_failed_registration_keeps_markers(ctx, watcher, watch_dir, monkeypatch):
    watcher.marker_file.append(7.0)

    def broken_register(*args, **kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(ctx.videos, "register_upload", broken_register)

    assert watcher.process_file(write_recording(watch_dir)) is None
    assert watcher.marker_file.peek() == [7.0]


def test_small_file_is_not_retriggered(ctx, watch_dir):
    request = WatchRequest(root_path=watch_dir, extensions=[".mkv"], min_file_size_mb=1)
    watcher = IngestWatcher(ctx, request, MarkerFile(ctx.settings.MARKER_FILE))
    watcher.baseline()
    path = write_recording(watch_dir, size=1024)

    assert watcher.scan_once() == [path]
    assert watcher.process_file(path) is None
    assert watcher.scan_once() == []

    # Growing past the floor makes it eligible again
    write_recording(watch_dir, size=2 * 1024 * 1024)
    assert watcher.scan_once() == [path]
