import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Set

from highlighter.core.context import PipelineContext
from highlighter.core.videos.domain.models import VideoRecord
from highlighter.features.markers.data.marker_file import MarkerFile
from highlighter.features.storage.domain.models import source_object_path

from ..data.file_walker import LocalFileWalker
from ..data.stability import StabilityDetector
from ..domain.models import StabilityPolicy, WatchRequest, WatchSummary
from .inflight import InFlightRegistry, normalize_path

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


class IngestWatcher:
    """
    Watches the recording folder and turns every finished recording into an
    uploaded VideoRecord (Stage 0).

    Only files that appear or change after run() starts are considered; whatever
    is already in the folder is baselined and left alone.
    """

    def __init__(self,
                 ctx: PipelineContext,
                 request: WatchRequest,
                 marker_file: MarkerFile,
                 detector: Optional[StabilityDetector] = None,
                 poll_interval: Optional[float] = None):
        self.ctx = ctx
        self.request = request
        self.marker_file = marker_file
        self.detector = detector or StabilityDetector(StabilityPolicy(
            debounce_window_seconds=ctx.settings.STABILITY_WAIT_MS / 1000,
            poll_interval_seconds=ctx.settings.STABILITY_POLL_MS / 1000,
            required_stable_samples=ctx.settings.STABILITY_REQUIRED_SAMPLES,
        ))
        self.poll_interval = poll_interval if poll_interval is not None else ctx.settings.WATCH_POLL_SECONDS
        self.walker = LocalFileWalker()
        self.in_flight = InFlightRegistry()
        self.summary = WatchSummary()

        self._lock = threading.Lock()
        self._handoff = threading.Lock()
        # Size observed on the previous scan, per normalized path
        self._last_seen: Dict[str, int] = {}
        # Size at which a path was uploaded, or rejected as too small
        self._settled: Dict[str, int] = {}
        # Triggered paths not yet settled; they trigger again on every scan
        self._pending: Set[str] = set()

    # --- Scanning ---

    def baseline(self) -> int:
        """Records the current folder contents so they never trigger."""
        for path, size in self.walker.walk(self.request.root_path, self.request.recursive):
            self._last_seen[normalize_path(path)] = size
        return len(self._last_seen)

    def scan_once(self) -> List[Path]:
        """
        Returns files that are new or whose size changed since the previous
        scan, plus earlier triggers that were skipped while in flight or
        failed. A file already settled at its current size never triggers.
        """
        triggered = []
        current: Dict[str, int] = {}

        for path, size in self.walker.walk(self.request.root_path, self.request.recursive):
            if not self.request.accepts(path):
                continue
            key = normalize_path(path)
            current[key] = size

            changed = self._last_seen.get(key) != size
            with self._lock:
                if self._settled.get(key) == size:
                    self._pending.discard(key)
                    continue
                if changed or key in self._pending:
                    self._pending.add(key)
                    triggered.append(path)

        with self._lock:
            self._pending.intersection_update(current)
        self._last_seen = current
        return triggered

    # --- Processing ---

    def process_file(self, file_path: Path) -> Optional[VideoRecord]:
        """
        Size floor -> stability -> markers -> upload -> record.
        Returns the created record, or None if the file was skipped or failed.
        """
        if not self.request.accepts(file_path):
            return None

        with self.in_flight.claim(file_path) as acquired:
            if not acquired:
                logger.debug(f"Already processing {file_path.name}; ignoring repeated trigger")
                return None
            if self._already_settled(file_path):
                return None

            self._count("files_seen")
            file_name = file_path.name
            logger.info(f"New file detected: {file_name}")

            try:
                # 1. Size floor
                size_bytes = file_path.stat().st_size
                size_mb = size_bytes / BYTES_PER_MB
                if size_mb < self.request.min_file_size_mb:
                    logger.info(f"Skipping {file_name}: file too small ({size_mb:.2f}MB)")
                    self._settle(file_path, size_bytes)
                    self._count("files_skipped")
                    return None

                # 2. Wait for the recorder to finish writing
                logger.info(f"Waiting for {file_name} to stabilize...")
                if not self.detector.wait_until_stable(file_path):
                    logger.warning(f"{file_name} did not stabilize, skipping")
                    self._count("files_skipped")
                    return None
                size_bytes = file_path.stat().st_size

                # 3-5 hold the hand-off lock so two recordings never claim
                # the same pending markers
                with self._handoff:
                    record = self._upload_and_register(file_path, size_bytes)

                self._settle(file_path, size_bytes)
                self._count("files_uploaded")
                logger.info(f"Successfully processed: {file_name} -> {record.video_id}")
                return record

            except Exception as e:
                error_msg = f"Error processing {file_name}: {e}"
                logger.exception(error_msg)
                with self._lock:
                    self.summary.errors.append(error_msg)
                return None

    def _upload_and_register(self, file_path: Path, size_bytes: int) -> VideoRecord:
        file_name = file_path.name

        # 3. Pending markers belong to the recording that just finished.
        # They are only consumed once the record exists.
        markers = self.marker_file.peek()
        if markers:
            logger.info(f"Found {len(markers)} marker(s): {', '.join(f'{m:.2f}' for m in markers)}")

        # 4. Upload
        locator = self.ctx.store.upload(
            file_path,
            source_object_path(file_name),
            content_type="video/mp4",
            metadata={
                "uploadedBy": "obs-watcher",
                "uploadedAt": datetime.now(timezone.utc).isoformat(),
            },
        )
        logger.info(f"Upload complete: {locator}")

        # 5. Stage 0 record
        record = self.ctx.videos.register_upload(
            file_name=file_name,
            gcs_path=str(locator),
            file_size=size_bytes,
            markers=markers,
        )

        try:
            self.marker_file.consume(len(markers))
        except OSError as e:
            error_msg = f"Could not clear {len(markers)} marker(s) now owned by {record.video_id}: {e}"
            logger.error(error_msg)
            with self._lock:
                self.summary.errors.append(error_msg)
        return record

    def _settle(self, file_path: Path, size_bytes: int) -> None:
        with self._lock:
            self._settled[normalize_path(file_path)] = size_bytes

    def _already_settled(self, file_path: Path) -> bool:
        try:
            size = file_path.stat().st_size
        except OSError:
            return False
        with self._lock:
            return self._settled.get(normalize_path(file_path)) == size

    def _count(self, field: str) -> None:
        with self._lock:
            setattr(self.summary, field, getattr(self.summary, field) + 1)

    # --- Loop ---

    def run(self, stop_event: threading.Event, executor: Optional[Executor] = None) -> WatchSummary:
        """
        Scans every poll_interval until stop_event is set, handing triggered
        files to a worker pool.
        """
        own_executor = executor is None
        executor = executor or ThreadPoolExecutor(
            max_workers=self.ctx.settings.WATCH_MAX_WORKERS,
            thread_name_prefix="ingest",
        )

        known = self.baseline()
        logger.info(f"Watching: {self.request.root_path} ({known} existing file(s) ignored)")
        logger.info(f"Extensions: {', '.join(self.request.extensions)}")

        try:
            while not stop_event.is_set():
                for path in self.scan_once():
                    if path in self.in_flight:
                        continue
                    executor.submit(self.process_file, path)
                stop_event.wait(self.poll_interval)
        finally:
            if own_executor:
                executor.shutdown(wait=True)

        logger.info(
            f"Watcher stopped. Uploaded {self.summary.files_uploaded}/{self.summary.files_seen} file(s)"
        )
        return self.summary
