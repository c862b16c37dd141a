import argparse
import logging
import threading
from typing import List, Optional

from highlighter.core.common.enums import BatchOutcome
from highlighter.core.config.settings import Settings, settings as default_settings
from highlighter.core.context import build_context
from highlighter.core.errors import InitializationError

logger = logging.getLogger("highlighter")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="highlighter",
        description="OBS recording ingestion and highlight derivation pipeline",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("watch", help="Upload finished recordings from the watch folder")
    commands.add_parser("markers", help="Serve the marker capture HTTP endpoint")

    extract = commands.add_parser("extract", help="Extract highlight clips for one video")
    extract.add_argument("video_id", nargs="?", help="Video to process (default: oldest pending)")

    combine = commands.add_parser("combine", help="Combine extracted clips into one video")
    combine.add_argument("video_id", nargs="?", help="Video to process (default: most recent pending)")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


# --- Commands ---

def _cmd_watch(settings: Settings, _args) -> int:
    from highlighter.features.ingest_watcher.service.api import build_watcher

    with build_context(settings, require_ffmpeg=False) as ctx:
        watcher = build_watcher(ctx)
        stop_event = threading.Event()
        try:
            watcher.run(stop_event)
        except KeyboardInterrupt:
            logger.info("Stopping watcher...")
            stop_event.set()
    return 0


def _cmd_markers(settings: Settings, _args) -> int:
    from highlighter.features.markers.service.server import run_marker_server

    try:
        settings.ensure_dirs()
    except OSError as e:
        raise InitializationError(f"Failed to create working directories: {e}") from e
    run_marker_server(settings)
    return 0


def _cmd_extract(settings: Settings, args) -> int:
    from highlighter.features.video_clipping.service.api import extract_clips

    with build_context(settings) as ctx:
        result = extract_clips(ctx, args.video_id)
    return _report("Clip extraction", args.video_id, result)


def _cmd_combine(settings: Settings, args) -> int:
    from highlighter.features.compilation.service.api import combine_clips

    with build_context(settings) as ctx:
        result = combine_clips(ctx, args.video_id)
    return _report("Compilation", args.video_id, result)


def _report(action: str, video_id: Optional[str], result) -> int:
    if result is None:
        if video_id:
            logger.info(f"Video {video_id} not found or not eligible")
        else:
            logger.info("Nothing to do")
        return 0

    if result.outcome == BatchOutcome.FAILED:
        # The record stays eligible; the next run picks it up again
        logger.error(f"{action} failed: {result.message}")
    elif result.outcome == BatchOutcome.CONFLICT:
        logger.warning(f"{action} discarded: {result.message}")
    else:
        done = len(result.values)
        logger.info(f"{action} {result.outcome.value}: {done}/{len(result.items)} item(s)")
        if result.artifact:
            logger.info(f"Output: {result.artifact}")
    return 0


COMMANDS = {
    "watch": _cmd_watch,
    "markers": _cmd_markers,
    "extract": _cmd_extract,
    "combine": _cmd_combine,
}


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    try:
        return COMMANDS[args.command](settings, args)
    except InitializationError as e:
        logger.error(f"Initialization failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0
    except Exception:
        logger.exception(f"Unhandled error in '{args.command}'")
        return 1
