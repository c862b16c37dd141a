from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class MarkerResult:
    """
    Outcome of one POST /marker.
    """
    success: bool
    timestamp: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def saved(cls, seconds: float) -> "MarkerResult":
        return cls(success=True, timestamp=f"{seconds:.2f}")

    @classmethod
    def rejected(cls, message: str) -> "MarkerResult":
        return cls(success=False, message=message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success}
        if self.timestamp is not None:
            body["timestamp"] = self.timestamp
        if self.message is not None:
            body["message"] = self.message
        return body
