# Core Module - Shared Utilities
#
# Core module provides shared functionality across Vaultkeeper modules:
# - Audit logging
# - Configuration (core.config)
# - SQLite connection helper (core.db)

from .audit_log import (
    AuditLogger,
    EventSeverity,
    EventType,
    configure_audit_logger,
    get_audit_logger,
    log_security_event,
)

__all__ = [
    # Audit Logging
    "AuditLogger",
    "EventType",
    "EventSeverity",
    "configure_audit_logger",
    "get_audit_logger",
    "log_security_event",
]
