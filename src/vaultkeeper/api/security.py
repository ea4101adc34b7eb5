# API Security - Session token for the local vault API
#
# Generates a random session token on startup.
# Every vault endpoint requires this token, so other local processes
# cannot drive the vault API without it.

import secrets
from typing import Optional
from fastapi import Header, HTTPException, status

# Global session token (generated once per backend instance)
_SESSION_TOKEN: Optional[str] = None


def initialize_session_token() -> str:
    """
    Generate a new session token for this backend instance.

    Creates a random 256-bit token that must be sent in the
    X-Session-Token header on every protected API call.

    Returns:
        The generated session token (handed to the UI layer)
    """
    global _SESSION_TOKEN
    _SESSION_TOKEN = secrets.token_urlsafe(32)
    return _SESSION_TOKEN


def get_session_token() -> str:
    """
    Get the current session token.

    Raises:
        RuntimeError: If session token hasn't been initialized
    """
    if _SESSION_TOKEN is None:
        raise RuntimeError("Session token not initialized. Call initialize_session_token() first.")
    return _SESSION_TOKEN


def reset_session_token() -> None:
    """Forget the current token (for testing)."""
    global _SESSION_TOKEN
    _SESSION_TOKEN = None


async def verify_session_token(x_session_token: Optional[str] = Header(None)) -> str:
    """
    FastAPI dependency to verify session token.

    Usage in routes:
        @router.get("/protected")
        async def handler(token: str = Depends(verify_session_token)): ...

    Returns:
        The verified session token

    Raises:
        HTTPException: 503 if no token was generated, 401 if the token
            is missing or invalid
    """
    if _SESSION_TOKEN is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session token not initialized"
        )

    if x_session_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Session-Token header"
        )

    # Constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(x_session_token, _SESSION_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token"
        )

    return x_session_token
