# Core - Audit Logging
#
# Append-only structured audit log for every vault security event.
# Unlocks, failed unlocks, locks and record changes are logged with
# timestamps and user context. Passphrases, passwords, keys and
# ciphertext are never written to the log.

import json
import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "vaultkeeper.audit"


class EventType(str, Enum):
    """Types of security events that can be logged."""
    # Vault Events
    VAULT_CREATED = "vault.created"
    VAULT_UNLOCKED = "vault.unlocked"
    VAULT_LOCKED = "vault.locked"
    VAULT_UNLOCK_FAILED = "vault.unlock.failed"
    VAULT_SEALED = "vault.sealed"
    VAULT_RELOADED = "vault.reloaded"
    VAULT_RECORD_ADDED = "vault.record.added"
    VAULT_RECORD_UPDATED = "vault.record.updated"
    VAULT_RECORD_REMOVED = "vault.record.removed"
    VAULT_ERROR = "vault.error"

    # System Events
    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"


class EventSeverity(str, Enum):
    """
    Severity levels for security events.

    - INFO: Normal activity, logged only
    - INVESTIGATE: Something unusual worth a look
    - ALERT: Possible attack or data problem (failed unlock, corrupted vault)
    - CRITICAL: Vault could not be persisted or read
    """
    INFO = "info"
    INVESTIGATE = "investigate"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for security events.

    Features:
    - Structured JSON logging (one event per line)
    - Automatic timestamp and event ID
    - User and system context capture
    - Daily log files
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        # Setup structured logging
        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._file_handler: Optional[logging.FileHandler] = None
        self._setup_file_handler()

        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    @property
    def log_file(self) -> Path:
        today = datetime.now().strftime("%Y-%m-%d")
        return self.log_dir / f"audit_{today}.log"

    def _setup_file_handler(self):
        """Attach a daily file handler to the audit logger, replacing any earlier one."""
        stdlib_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        for handler in list(stdlib_logger.handlers):
            if getattr(handler, "_vaultkeeper_audit", False):
                stdlib_logger.removeHandler(handler)
                handler.close()

        file_handler = logging.FileHandler(self.log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog handles formatting
        file_handler._vaultkeeper_audit = True

        stdlib_logger.addHandler(file_handler)
        stdlib_logger.setLevel(logging.INFO)
        self._file_handler = file_handler

    def close(self):
        """Detach and close the file handler."""
        if self._file_handler is not None:
            logging.getLogger(AUDIT_LOGGER_NAME).removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log a security event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secrets)
            user_context: User context (username, session_id, etc.)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "timestamp": datetime.utcnow().isoformat(),
            "details": details or {},
            "user_context": user_context or self._get_default_user_context(),
        }

        self.logger.info(
            "security_event",
            **event_data
        )

        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: EventSeverity = EventSeverity.INFO,
    ) -> str:
        """
        Log a Vault security event.

        Args:
            event_type: Type of Vault event
            message: Event description
            details: Additional details (never log actual passwords!)
            severity: Event severity

        Returns:
            str: Event ID
        """
        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Vault: {message}",
            details=details
        )

    def _get_default_user_context(self) -> Dict[str, Any]:
        """Get default user context (OS user, hostname, etc.)."""
        import socket
        import os

        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }

    def query_events(
        self,
        event_types: Optional[List[EventType]] = None,
        severity: Optional[EventSeverity] = None,
        limit: int = 100
    ) -> List[Dict[str, Any]]:
        """
        Read events back from the audit log files, oldest first.

        Args:
            event_types: Filter by event types
            severity: Filter by severity level
            limit: Maximum number of events to return (most recent kept)

        Returns:
            list: Matching events
        """
        if self._file_handler is not None:
            self._file_handler.flush()

        wanted = {t.value for t in event_types} if event_types else None
        events = []
        for path in sorted(self.log_dir.glob("audit_*.log")):
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        event = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if event.get("event") != "security_event":
                        continue
                    if wanted is not None and event.get("event_type") not in wanted:
                        continue
                    if severity is not None and event.get("severity") != severity.value:
                        continue
                    events.append(event)
        return events[-limit:]


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(log_dir: Path) -> AuditLogger:
    """Replace the global audit logger with one writing to log_dir."""
    global _audit_logger
    if _audit_logger is not None:
        _audit_logger.close()
    _audit_logger = AuditLogger(log_dir=log_dir)
    return _audit_logger


def log_security_event(
    event_type: EventType,
    severity: EventSeverity,
    message: str,
    **kwargs
) -> str:
    """
    Convenience function for logging security events.

    Usage:
        log_security_event(
            EventType.SYSTEM_START,
            EventSeverity.INFO,
            "Vaultkeeper starting",
            details={"version": "0.1.0"}
        )
    """
    return get_audit_logger().log_event(event_type, severity, message, **kwargs)
