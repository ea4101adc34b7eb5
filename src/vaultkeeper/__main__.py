# Main Entry Point - Local vault backend
#
# Starts the FastAPI vault API on localhost and prints the session
# token the UI layer must send in X-Session-Token.

import sys
import argparse
from dataclasses import replace
from pathlib import Path

from . import __version__
from .core import EventSeverity, EventType, configure_audit_logger, get_audit_logger
from .core.config import STORAGE_BACKENDS, VaultConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultkeeper",
        description="Vaultkeeper - local passphrase-protected credential store",
    )

    parser.add_argument(
        "--host",
        default=None,
        help="Backend host (default: VAULTKEEPER_HOST or 127.0.0.1)"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Backend port (default: VAULTKEEPER_PORT or 8000)"
    )

    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the encrypted vault (default: VAULTKEEPER_DATA_DIR or ./data)"
    )

    parser.add_argument(
        "--backend",
        choices=STORAGE_BACKENDS,
        default=None,
        help="Storage backend for the vault envelope"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Vaultkeeper v{__version__}"
    )

    return parser


def load_config(args: argparse.Namespace) -> VaultConfig:
    """Environment config with command-line overrides applied."""
    config = VaultConfig.from_env()
    overrides = {
        "host": args.host,
        "port": args.port,
        "data_dir": args.data_dir,
        "storage_backend": args.backend,
    }
    return replace(config, **{k: v for k, v in overrides.items() if v is not None})


def main(argv=None):
    """Main entry point for Vaultkeeper."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    configure_audit_logger(config.audit_log_dir)

    # Imported late so configuration errors surface before FastAPI loads
    from .api.main import start_api_server
    from .api.security import initialize_session_token
    from .api.vault_routes import set_vault_store
    from .storage import create_blob_store
    from .vault import VaultStore

    set_vault_store(VaultStore(create_blob_store(config), config.storage_key))
    token = initialize_session_token()

    get_audit_logger().log_event(
        event_type=EventType.SYSTEM_START,
        severity=EventSeverity.INFO,
        message="Vaultkeeper starting",
        details={
            "version": __version__,
            "storage_backend": config.storage_backend,
        }
    )

    print("=" * 60)
    print(f"  Vaultkeeper v{__version__}")
    print(f"  API:           http://{config.host}:{config.port}/api/vault")
    print(f"  Storage:       {config.storage_backend} ({config.data_dir})")
    print(f"  Session token: {token}")
    print("  Press Ctrl+C to stop")
    print("=" * 60)

    try:
        start_api_server(host=config.host, port=config.port)
    except KeyboardInterrupt:
        print("\n\nShutting down backend...")
    except Exception as e:
        print(f"\n\nError: {str(e)}")
        get_audit_logger().log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.CRITICAL,
            message=f"Vaultkeeper backend crashed: {type(e).__name__}"
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
