"""
Vaultkeeper Configuration - environment-driven settings.

Reads settings from the process environment, after loading a ``.env``
file from the working directory if one exists:

    VAULTKEEPER_DATA_DIR         = ./data
    VAULTKEEPER_STORAGE_BACKEND  = file | sqlite | memory
    VAULTKEEPER_STORAGE_KEY      = personal_vault_v1
    VAULTKEEPER_AUDIT_LOG_DIR    = ./audit_logs
    VAULTKEEPER_HOST             = 127.0.0.1
    VAULTKEEPER_PORT             = 8000

Passphrases are never read from configuration.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from ..storage.blob_store import validate_key

STORAGE_BACKENDS = ("file", "sqlite", "memory")

DEFAULT_STORAGE_KEY = "personal_vault_v1"


@dataclass
class VaultConfig:
    """Validated vault configuration."""

    data_dir: Path = field(default_factory=lambda: Path("./data"))
    storage_backend: str = "file"
    storage_key: str = DEFAULT_STORAGE_KEY
    audit_log_dir: Path = field(default_factory=lambda: Path("./audit_logs"))
    host: str = "127.0.0.1"
    port: int = 8000

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        self.audit_log_dir = Path(self.audit_log_dir)
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"Unsupported storage backend: {self.storage_backend} "
                f"(expected one of {', '.join(STORAGE_BACKENDS)})"
            )
        validate_key(self.storage_key)
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Port out of range: {self.port}")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "VaultConfig":
        """Create VaultConfig from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (tests).
            dotenv: Load a .env file into os.environ first.

        Raises:
            ValueError: If a value is not valid.
        """
        if dotenv and environ is None:
            load_dotenv()
        env = os.environ if environ is None else environ

        raw_port = env.get("VAULTKEEPER_PORT", "8000")
        try:
            port = int(raw_port)
        except ValueError:
            raise ValueError(f"VAULTKEEPER_PORT must be an integer, got {raw_port!r}") from None

        return cls(
            data_dir=Path(env.get("VAULTKEEPER_DATA_DIR", "./data")),
            storage_backend=env.get("VAULTKEEPER_STORAGE_BACKEND", "file").lower(),
            storage_key=env.get("VAULTKEEPER_STORAGE_KEY", DEFAULT_STORAGE_KEY),
            audit_log_dir=Path(env.get("VAULTKEEPER_AUDIT_LOG_DIR", "./audit_logs")),
            host=env.get("VAULTKEEPER_HOST", "127.0.0.1"),
            port=port,
        )
