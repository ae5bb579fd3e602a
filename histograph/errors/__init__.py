"""Error handling module for the graph engine."""

from .handlers import (
    ErrorHandler,
    ErrorContext,
    ErrorSeverity,
    ErrorCategory,
    BaseGraphError,
    EmbeddingError,
    ExpansionError,
    SnapshotError,
    GraphValidationError,
    ConfigurationError,
)

__all__ = [
    "ErrorHandler",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "BaseGraphError",
    "EmbeddingError",
    "ExpansionError",
    "SnapshotError",
    "GraphValidationError",
    "ConfigurationError",
]
