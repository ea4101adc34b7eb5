"""
Shared pytest fixtures for the Vaultkeeper test suite.

Autouse fixtures below isolate tests from the live application data:
  - Audit logger -> temp directory (prevents test events in ./audit_logs)
  - Vault API    -> no store singleton, no session token between tests
"""

import pytest


@pytest.fixture(autouse=True)
def audit_logger(tmp_path):
    """Redirect the global AuditLogger to a temp directory for every test.

    Without this, any test that (directly or indirectly) calls
    ``get_audit_logger().log_event(...)`` writes into the real
    ``./audit_logs/`` directory.
    """
    import vaultkeeper.core.audit_log as audit_mod

    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = audit_mod.AuditLogger(log_dir=tmp_path / "audit_logs")

    yield audit_mod._audit_logger

    audit_mod._audit_logger.close()
    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _isolate_vault_api():
    """Reset the vault store singleton and session token for every test."""
    import vaultkeeper.api.vault_routes as routes_mod
    from vaultkeeper.api.security import reset_session_token

    old_store = routes_mod._vault_store
    routes_mod._vault_store = None
    reset_session_token()

    yield

    routes_mod._vault_store = old_store
    reset_session_token()


@pytest.fixture
def fast_kdf(monkeypatch):
    """Lower the PBKDF2 work factor for tests that derive many keys.

    Tests that check the production iteration count must not use this.
    """
    from vaultkeeper.vault.encryption import EncryptionService

    monkeypatch.setattr(EncryptionService, "PBKDF2_ITERATIONS", 1_000)
    return EncryptionService


@pytest.fixture
def memory_store():
    from vaultkeeper.storage import MemoryBlobStore

    return MemoryBlobStore()


@pytest.fixture
def vault(memory_store, fast_kdf):
    """Locked VaultStore over an empty in-memory backend."""
    from vaultkeeper.vault import VaultStore

    return VaultStore(memory_store)
