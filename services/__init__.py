from .engine import SwipeMatchEngine, get_engine
from .errors import (
    EngineError,
    ValidationError,
    ConflictError,
    NotFoundError,
    StorageError,
    Result,
)

__all__ = [
    'SwipeMatchEngine',
    'get_engine',
    'EngineError',
    'ValidationError',
    'ConflictError',
    'NotFoundError',
    'StorageError',
    'Result',
]
