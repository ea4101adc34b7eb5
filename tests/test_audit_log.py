"""Tests for the structured audit logger."""

import json

from vaultkeeper.core import (
    AuditLogger,
    EventSeverity,
    EventType,
    configure_audit_logger,
    get_audit_logger,
    log_security_event,
)


class TestAuditLogger:

    def test_creates_log_dir(self, tmp_path):
        logger = AuditLogger(log_dir=tmp_path / "nested" / "audit")
        try:
            assert (tmp_path / "nested" / "audit").is_dir()
        finally:
            logger.close()

    def test_event_written_as_json_line(self, audit_logger):
        event_id = audit_logger.log_event(
            EventType.SYSTEM_START,
            EventSeverity.INFO,
            "starting",
            details={"version": "test"},
        )
        audit_logger.query_events()  # flush

        lines = audit_logger.log_file.read_text(encoding="utf-8").splitlines()
        event = json.loads(lines[-1])
        assert event["event"] == "security_event"
        assert event["event_id"] == event_id
        assert event["event_type"] == "system.start"
        assert event["severity"] == "info"
        assert event["details"] == {"version": "test"}
        assert "hostname" in event["user_context"]

    def test_vault_event_prefix(self, audit_logger):
        audit_logger.log_vault_event(EventType.VAULT_LOCKED, "locked")
        events = audit_logger.query_events(event_types=[EventType.VAULT_LOCKED])
        assert events[-1]["message"] == "Vault: locked"
        assert events[-1]["severity"] == "info"

    def test_query_filters(self, audit_logger):
        audit_logger.log_event(EventType.VAULT_UNLOCKED, EventSeverity.INFO, "a")
        audit_logger.log_event(EventType.VAULT_UNLOCK_FAILED, EventSeverity.ALERT, "b")
        audit_logger.log_event(EventType.VAULT_ERROR, EventSeverity.CRITICAL, "c")

        by_type = audit_logger.query_events(
            event_types=[EventType.VAULT_UNLOCKED, EventType.VAULT_ERROR]
        )
        assert [e["message"] for e in by_type] == ["a", "c"]

        by_severity = audit_logger.query_events(severity=EventSeverity.ALERT)
        assert [e["message"] for e in by_severity] == ["b"]

    def test_query_limit_keeps_most_recent(self, audit_logger):
        for i in range(5):
            audit_logger.log_event(EventType.VAULT_LOCKED, EventSeverity.INFO, f"e{i}")
        events = audit_logger.query_events(limit=2)
        assert [e["message"] for e in events] == ["e3", "e4"]

    def test_module_helper_uses_singleton(self, audit_logger):
        assert get_audit_logger() is audit_logger
        log_security_event(EventType.SYSTEM_STOP, EventSeverity.INFO, "bye")
        events = audit_logger.query_events(event_types=[EventType.SYSTEM_STOP])
        assert events[-1]["message"] == "bye"

    def test_configure_replaces_singleton(self, tmp_path, audit_logger):
        replaced = configure_audit_logger(tmp_path / "elsewhere")
        assert get_audit_logger() is replaced
        assert replaced is not audit_logger

        log_security_event(EventType.SYSTEM_START, EventSeverity.INFO, "moved")
        assert len(replaced.query_events()) == 1
        assert (tmp_path / "elsewhere" / replaced.log_file.name).exists()
