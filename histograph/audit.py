"""Audit logging for graph mutations."""

import json
import logging
import structlog
from datetime import datetime
from typing import Any, Dict, Optional, List
from pathlib import Path
import hashlib
import threading
from contextlib import contextmanager


class AuditLogger:
    """Records every change made to the knowledge graph."""

    def __init__(self, log_file: Optional[Path] = None):
        """Initialize audit logger.

        Args:
            log_file: Optional path to an audit log file read by get_audit_trail
        """
        self.log_file = Path(log_file) if log_file else None
        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            self._attach_file_handler()

        # Configure structured logging
        self.logger = structlog.get_logger("audit")
        self._configure_logger()

        # Thread-local storage for context
        self._context = threading.local()

    def _configure_logger(self):
        """Configure structured logger with proper processors."""
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                self._add_audit_context,
                structlog.processors.JSONRenderer(),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

    def _attach_file_handler(self):
        """Write rendered audit entries, one JSON object per line."""
        audit_logger = logging.getLogger("audit")
        audit_logger.setLevel(logging.INFO)

        target = str(self.log_file.resolve())
        for handler in audit_logger.handlers:
            if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
                return

        handler = logging.FileHandler(target, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(message)s"))
        audit_logger.addHandler(handler)

    def _add_audit_context(self, logger, method_name, event_dict):
        """Add audit context to log entries."""
        event_dict["audit_timestamp"] = datetime.utcnow().isoformat()
        event_dict["audit_version"] = "1.0"

        for key in ("session_id", "request_id", "actor"):
            if hasattr(self._context, key):
                event_dict[key] = getattr(self._context, key)

        return event_dict

    @contextmanager
    def audit_context(self, **kwargs):
        """Context manager to set audit context.

        Usage:
            with audit_logger.audit_context(session_id="abc"):
                # All logs within this context will include session_id
                audit_logger.log_graph_mutation(...)
        """
        previous_context = {}
        for key, value in kwargs.items():
            if hasattr(self._context, key):
                previous_context[key] = getattr(self._context, key)
            setattr(self._context, key, value)

        try:
            yield
        finally:
            for key in kwargs:
                if key in previous_context:
                    setattr(self._context, key, previous_context[key])
                else:
                    delattr(self._context, key)

    def log_graph_mutation(
        self,
        operation: str,
        node_ids: List[str],
        node_count: Optional[int] = None,
        edge_count: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a change to the graph.

        Args:
            operation: Mutation kind (add, update, delete, bulk_delete, merge)
            node_ids: Ids of the nodes touched by the mutation
            node_count: Node count after the mutation
            edge_count: Edge count after the mutation
            details: Additional mutation details
        """
        log_data = {
            "event_type": "graph_mutation",
            "operation": operation,
            "node_ids": node_ids,
        }

        if node_count is not None:
            log_data["node_count"] = node_count
        if edge_count is not None:
            log_data["edge_count"] = edge_count
        if details:
            log_data["details"] = details

        # Hash for integrity
        mutation_string = f"{operation}:{','.join(sorted(node_ids))}"
        log_data["mutation_hash"] = hashlib.sha256(mutation_string.encode()).hexdigest()[
            :16
        ]

        self.logger.info("graph_mutation", **log_data)

    def log_snapshot(
        self,
        action: str,
        location: str,
        node_count: int,
        edge_count: int,
        error: Optional[str] = None,
    ) -> None:
        """Log a snapshot save or load.

        Args:
            action: "save" or "load"
            location: Where the snapshot lives
            node_count: Nodes in the snapshot
            edge_count: Edges in the snapshot
            error: Error message if the action failed
        """
        log_data = {
            "event_type": "snapshot",
            "action": action,
            "location": location,
            "node_count": node_count,
            "edge_count": edge_count,
            "success": error is None,
        }

        if error:
            log_data["error"] = error
            self.logger.warning("snapshot_failed", **log_data)
        else:
            self.logger.info("snapshot", **log_data)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        stack_trace: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log application errors for debugging.

        Args:
            error_type: Type/class of error
            error_message: Error message
            stack_trace: Optional stack trace
            context: Additional error context
        """
        log_data = {
            "event_type": "error",
            "error_type": error_type,
            "error_message": error_message,
        }

        if stack_trace:
            log_data["stack_trace"] = stack_trace
        if context:
            log_data["error_context"] = context

        self.logger.error("application_error", **log_data)

    def get_audit_trail(
        self,
        start_date: datetime,
        end_date: datetime,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Retrieve audit trail for specified period.

        Args:
            start_date: Start of period
            end_date: End of period
            filters: Optional filters to apply

        Returns:
            List of audit log entries
        """
        entries = []

        if self.log_file and self.log_file.exists():
            with open(self.log_file, "r") as f:
                for line in f:
                    try:
                        entry = json.loads(line)
                        entry_time = datetime.fromisoformat(
                            entry.get("audit_timestamp", "")
                        )

                        if start_date <= entry_time <= end_date:
                            if self._matches_filters(entry, filters):
                                entries.append(entry)

                    except (json.JSONDecodeError, ValueError):
                        continue

        return entries

    def _matches_filters(
        self, entry: Dict[str, Any], filters: Optional[Dict[str, Any]]
    ) -> bool:
        """Check if entry matches filters."""
        if not filters:
            return True

        for key, value in filters.items():
            if key not in entry:
                return False
            if entry[key] != value:
                return False

        return True
