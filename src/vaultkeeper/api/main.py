# Vault API - FastAPI Backend
#
# Local REST API that exposes the vault lock/unlock/mutate contract to
# a UI layer. Bound to localhost; every route needs the session token.

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core import EventSeverity, EventType, log_security_event
from .security import get_session_token, initialize_session_token
from .vault_routes import router as vault_router

logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Vaultkeeper API",
    description="Local passphrase-protected credential store",
    version=__version__
)

_allowed_origins = [
    "http://localhost:3000", "http://127.0.0.1:3000",
    "http://localhost:8000", "http://127.0.0.1:8000",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(vault_router)


@app.on_event("startup")
async def startup_event():
    """Make sure a session token exists before requests arrive."""
    try:
        get_session_token()
    except RuntimeError:
        initialize_session_token()
    logger.info("Vault API ready")


@app.on_event("shutdown")
async def shutdown_event():
    """Lock the vault so plaintext does not outlive the server."""
    from .vault_routes import peek_vault_store

    store = peek_vault_store()
    if store is not None and store.is_unlocked:
        store.lock()
    log_security_event(EventType.SYSTEM_STOP, EventSeverity.INFO, "Vault API stopped")


def start_api_server(host: str = "127.0.0.1", port: int = 8000):
    """
    Start FastAPI server.

    Args:
        host: Host to bind to (default: localhost only for security)
        port: Port to listen on
    """
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    start_api_server()
