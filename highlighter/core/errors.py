class HighlighterError(Exception):
    """Base class for errors raised by the pipeline itself."""


class InitializationError(HighlighterError):
    """
    A process could not start: credentials, storage handle, ffmpeg or the
    watch folder is missing. Fatal, nothing has been written yet.
    """


class StageConflictError(HighlighterError):
    """
    The conditional stage update matched no row: another run advanced the
    record between selection and transition.
    """

    def __init__(self, video_id: str, stage: str):
        super().__init__(f"Video {video_id} already advanced past stage '{stage}' by another run")
        self.video_id = video_id
        self.stage = stage


class RecorderUnavailableError(HighlighterError):
    """No live connection to the recorder right now; reconnection is pending."""


class InvalidLocatorError(HighlighterError, ValueError):
    """A storage locator does not have the <scheme>://<bucket>/<path> form."""
