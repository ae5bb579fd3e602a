"""Error handlers with context preservation for better debugging."""

import traceback
from typing import Any, Dict, Optional, List
from datetime import datetime
from contextlib import contextmanager
import threading
from dataclasses import dataclass, field
from enum import Enum
import logging

from ..audit import AuditLogger


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""
    EMBEDDING = "embedding"
    EXPANSION = "expansion"
    STORAGE = "storage"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Context information for an error."""
    operation: str
    node_id: Optional[str] = None
    edge_id: Optional[str] = None
    request_data: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)
    correlation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "operation": self.operation,
            "node_id": self.node_id,
            "edge_id": self.edge_id,
            "request_data": self.request_data,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
            "correlation_id": self.correlation_id,
        }


class BaseGraphError(Exception):
    """Base exception for all graph engine errors."""

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
    ):
        super().__init__(message)
        self.message = message
        self.context = context
        self.cause = cause
        self.severity = severity
        self.category = category
        self.timestamp = datetime.utcnow()

        # Capture stack trace
        self.stack_trace = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_message": self.message,
            "context": self.context.to_dict() if self.context else None,
            "cause": str(self.cause) if self.cause else None,
            "severity": self.severity.value,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
            "stack_trace": self.stack_trace,
        }


class EmbeddingError(BaseGraphError):
    """Embedding collaborator failed or returned unusable data."""

    def __init__(
        self,
        message: str,
        text: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            context=context,
            cause=cause,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.EMBEDDING,
        )
        self.text = text


class ExpansionError(BaseGraphError):
    """Expansion collaborator failed or proposed invalid records."""

    def __init__(
        self,
        message: str = "expansion failed",
        query: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            context=context,
            cause=cause,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.EXPANSION,
        )
        self.query = query


class SnapshotError(BaseGraphError):
    """Snapshot could not be read or written."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            context=context,
            cause=cause,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.STORAGE,
        )
        self.path = path


class GraphValidationError(BaseGraphError):
    """Caller supplied a request that does not fit the graph."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
        )
        self.field = field
        self.value = value


class ConfigurationError(BaseGraphError):
    """Invalid configuration value."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.CONFIGURATION,
        )
        self.key = key


class ErrorHandler:
    """Centralized error handler with context preservation."""

    def __init__(self, audit_logger: Optional[AuditLogger] = None):
        """Initialize error handler.

        Args:
            audit_logger: Optional audit logger instance
        """
        self.audit_logger = audit_logger or AuditLogger()
        self._context_stack = threading.local()
        self.logger = logging.getLogger(__name__)

        # Error statistics
        self._error_counts: Dict[str, int] = {}
        self._error_history: List[BaseGraphError] = []
        self._max_history_size = 1000

    @contextmanager
    def error_context(self, **kwargs):
        """Context manager for error context.

        Usage:
            with error_handler.error_context(operation="merge_nodes", node_id="dmowski_roman"):
                # Operations that might raise errors
                pass
        """
        if not hasattr(self._context_stack, 'contexts'):
            self._context_stack.contexts = []

        context = ErrorContext(**kwargs)
        self._context_stack.contexts.append(context)

        try:
            yield context
        finally:
            if self._context_stack.contexts:
                self._context_stack.contexts.pop()

    def get_current_context(self) -> Optional[ErrorContext]:
        """Get current error context."""
        if hasattr(self._context_stack, 'contexts') and self._context_stack.contexts:
            return self._context_stack.contexts[-1]
        return None

    def handle_error(
        self,
        error: Exception,
        operation: Optional[str] = None,
        reraise: bool = True,
    ) -> Optional[BaseGraphError]:
        """Handle an error with context preservation.

        Args:
            error: The error to handle
            operation: Operation being performed
            reraise: Whether to re-raise the error

        Returns:
            Wrapped error if applicable
        """
        context = self.get_current_context()
        if operation and context:
            context.operation = operation

        if isinstance(error, BaseGraphError):
            wrapped_error = error
            if not wrapped_error.context and context:
                wrapped_error.context = context
        else:
            wrapped_error = self._wrap_error(error, context)

        self._log_error(wrapped_error)
        self._update_error_stats(wrapped_error)

        if reraise:
            raise wrapped_error

        return wrapped_error

    def _wrap_error(self, error: Exception, context: Optional[ErrorContext]) -> BaseGraphError:
        """Wrap a generic exception in appropriate error type."""
        error_str = str(error)
        operation = (context.operation if context else "").lower()

        if "embed" in operation:
            return EmbeddingError(error_str, context=context, cause=error)
        elif "expan" in operation:
            return ExpansionError(error_str, context=context, cause=error)
        elif isinstance(error, (OSError, ValueError)) and "snapshot" in operation:
            return SnapshotError(error_str, context=context, cause=error)
        elif isinstance(error, (KeyError, ValueError)):
            return GraphValidationError(error_str, context=context)
        else:
            return BaseGraphError(
                error_str,
                context=context,
                cause=error,
            )

    def _log_error(self, error: BaseGraphError) -> None:
        """Log error with appropriate severity."""
        error_dict = error.to_dict()

        self.audit_logger.log_error(
            error_type=error.__class__.__name__,
            error_message=error.message,
            context=error_dict.get("context"),
        )

        if error.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(f"Critical error: {error.message}", extra=error_dict)
        elif error.severity == ErrorSeverity.HIGH:
            self.logger.error(f"Error: {error.message}", extra=error_dict)
        elif error.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(f"Warning: {error.message}", extra=error_dict)
        else:
            self.logger.info(f"Info: {error.message}", extra=error_dict)

    def _update_error_stats(self, error: BaseGraphError) -> None:
        """Update error statistics."""
        error_type = error.__class__.__name__

        if error_type not in self._error_counts:
            self._error_counts[error_type] = 0
        self._error_counts[error_type] += 1

        self._error_history.append(error)

        if len(self._error_history) > self._max_history_size:
            self._error_history = self._error_history[-self._max_history_size:]

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        recent_errors = self._error_history[-100:]

        severity_dist = {
            severity.value: 0 for severity in ErrorSeverity
        }
        category_dist = {
            category.value: 0 for category in ErrorCategory
        }
        for error in recent_errors:
            severity_dist[error.severity.value] += 1
            category_dist[error.category.value] += 1

        return {
            "total_errors": sum(self._error_counts.values()),
            "error_counts": self._error_counts.copy(),
            "severity_distribution": severity_dist,
            "category_distribution": category_dist,
        }

    def create_user_friendly_message(self, error: BaseGraphError) -> str:
        """Create user-friendly error message."""
        if isinstance(error, ExpansionError):
            return "Graph expansion failed. The proposal was discarded."
        elif isinstance(error, EmbeddingError):
            return "Embedding lookup failed. Semantic matching skipped the affected entity."
        elif isinstance(error, SnapshotError):
            if error.path:
                return f"Could not access graph snapshot at '{error.path}'."
            return "Could not access the graph snapshot."
        elif isinstance(error, GraphValidationError):
            if error.field:
                return f"Invalid value for '{error.field}': {error.message}"
            return f"Validation error: {error.message}"
        elif isinstance(error, ConfigurationError):
            if error.key:
                return f"Invalid configuration for '{error.key}': {error.message}"
            return f"Configuration error: {error.message}"

        return f"An error occurred: {error.message}"
