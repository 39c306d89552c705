from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..errors import QualificationPredictionError


@dataclass
class UpdateResult:
    """Outcome of a group positions update, as returned to callers."""

    success: bool
    message: str = ""
    error: Optional[Dict[str, str]] = None

    @property
    def error_code(self) -> Optional[str]:
        return self.error["code"] if self.error else None

    def as_dict(self) -> Dict[str, Any]:
        data = {"success": self.success, "message": self.message}
        if self.error:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdateResult":
        return cls(
            success=bool(data.get("success")),
            message=data.get("message") or "",
            error=data.get("error"),
        )

    @classmethod
    def from_error(cls, error: QualificationPredictionError) -> "UpdateResult":
        return cls(success=False, message=error.message, error=error.as_dict())
