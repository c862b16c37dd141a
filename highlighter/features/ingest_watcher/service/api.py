from highlighter.core.context import PipelineContext
from highlighter.core.errors import InitializationError
from highlighter.features.markers.data.marker_file import MarkerFile

from ..domain.models import WatchRequest
from .watcher import IngestWatcher


def build_watcher(ctx: PipelineContext) -> IngestWatcher:
    """
    Raises:
        InitializationError: the watch folder is missing or not a directory.
    """
    settings = ctx.settings
    try:
        request = WatchRequest(
            root_path=settings.WATCH_FOLDER,
            extensions=list(settings.WATCH_EXTENSIONS),
            min_file_size_mb=settings.MIN_FILE_SIZE_MB,
        )
    except (FileNotFoundError, NotADirectoryError) as e:
        raise InitializationError(str(e)) from e

    return IngestWatcher(ctx, request, MarkerFile(settings.MARKER_FILE))
