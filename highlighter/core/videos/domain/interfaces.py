from abc import ABC, abstractmethod
from typing import List, Optional

from highlighter.core.common.enums import Stage
from .models import StageResult, VideoRecord


class IVideoRepository(ABC):
    """
    Contract for VideoRecord persistence.
    Abstracts the candidate listing and the conditional stage update.
    """

    @abstractmethod
    def create(self, record: VideoRecord) -> VideoRecord:
        """Inserts a new record and returns it with server-assigned fields filled in."""
        pass

    @abstractmethod
    def get(self, video_id: str) -> Optional[VideoRecord]:
        pass

    @abstractmethod
    def list_candidates(self, stage: Stage, limit: int) -> List[VideoRecord]:
        """
        Bounded window of records that meet the stage precondition and have
        not completed it yet.
        EXTRACTION: oldest first. COMPILATION: newest first.
        """
        pass

    @abstractmethod
    def mark_stage_complete(self, video_id: str, result: StageResult) -> bool:
        """
        Sets the flag, completion timestamp and payload in one update, only if
        the flag is still unset. Returns False if no row matched.
        """
        pass
