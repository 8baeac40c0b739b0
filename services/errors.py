"""Error kinds and the structured result every engine operation returns."""
from dataclasses import dataclass
from typing import Any, Optional


class EngineError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(EngineError):
    """Malformed input: unknown kind, self-target, bad ids or periods."""
    kind = "validation_error"
    status_code = 400


class ConflictError(EngineError):
    """An active swipe already exists for the pair."""
    kind = "conflict"
    status_code = 409


class NotFoundError(EngineError):
    kind = "not_found"
    status_code = 404


class StorageError(EngineError):
    """Unexpected persistence fault. The message is deliberately opaque."""
    kind = "storage_error"
    status_code = 503

    def __init__(self, message: str = "The request could not be completed, please retry"):
        super().__init__(message)


@dataclass
class Result:
    ok: bool
    value: Any = None
    error: Optional[EngineError] = None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: EngineError) -> "Result":
        return cls(ok=False, error=error)
