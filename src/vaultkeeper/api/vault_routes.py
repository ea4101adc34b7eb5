# Vault API - RESTful endpoints for the credential vault
#
# API endpoints for vault operations:
# - Unlock/lock vault, status
# - Record CRUD (all require vault to be unlocked)
#
# Vault calls derive keys with PBKDF2 and hold the store lock for a
# noticeable time, so every vault call runs in a worker thread instead
# of on the event loop.

import asyncio
import threading
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ..core.config import VaultConfig
from ..storage import create_blob_store
from ..vault import (
    AuthenticationError,
    MalformedEnvelopeError,
    PreconditionError,
    VaultConflictError,
    VaultRecord,
    VaultStore,
)
from .security import verify_session_token

router = APIRouter(prefix="/api/vault", tags=["vault"])


# ── Singleton ────────────────────────────────────────────────────────

_vault_store: Optional[VaultStore] = None
_init_lock = threading.Lock()


def get_vault_store() -> VaultStore:
    """Get or create the process-wide VaultStore from environment config."""
    global _vault_store
    with _init_lock:
        if _vault_store is None:
            config = VaultConfig.from_env()
            _vault_store = VaultStore(create_blob_store(config), config.storage_key)
        return _vault_store


def peek_vault_store() -> Optional[VaultStore]:
    """Return the singleton if one exists, without building it."""
    return _vault_store


def set_vault_store(store: Optional[VaultStore]) -> None:
    """Replace the singleton (startup wiring and tests)."""
    global _vault_store
    with _init_lock:
        _vault_store = store


# Request/Response Models
class UnlockVaultRequest(BaseModel):
    passphrase: str


class AddRecordRequest(BaseModel):
    label: str = Field(..., min_length=1, max_length=200)
    username: str = ""
    password: str = Field(..., min_length=1)


class UpdateRecordRequest(BaseModel):
    label: Optional[str] = Field(None, min_length=1, max_length=200)
    username: Optional[str] = None
    password: Optional[str] = Field(None, min_length=1)


class VaultStatusResponse(BaseModel):
    state: str
    is_unlocked: bool
    vault_exists: bool


class RecordSummary(BaseModel):
    id: str
    label: str
    username: str


class RecordResponse(RecordSummary):
    password: str


def _summary(record: VaultRecord) -> RecordSummary:
    return RecordSummary(**record.summary())


def _locked() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Vault is locked. Unlock vault first."
    )


def _conflict(error: VaultConflictError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=str(error)
    )


# Endpoints

@router.get("/status", response_model=VaultStatusResponse)
async def get_vault_status(token: str = Depends(verify_session_token)):
    """
    Get current vault status.

    Returns the lifecycle state and whether an envelope has been saved.
    """
    store = get_vault_store()
    return VaultStatusResponse(
        state=store.state.value,
        is_unlocked=store.is_unlocked,
        vault_exists=await asyncio.to_thread(store.vault_exists),
    )


@router.post("/unlock")
async def unlock_vault(
    request: UnlockVaultRequest,
    token: str = Depends(verify_session_token)
):
    """
    Unlock vault with passphrase.

    First use (no saved vault) unlocks an empty vault; the passphrase
    used then protects everything saved afterwards.
    """
    store = get_vault_store()
    try:
        records = await asyncio.to_thread(store.unlock, request.passphrase)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )
    except MalformedEnvelopeError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Vault data is corrupted. Restore it from a backup."
        )
    except PreconditionError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )

    return {"success": True, "message": "Vault unlocked", "record_count": len(records)}


@router.post("/lock")
async def lock_vault(token: str = Depends(verify_session_token)):
    """Lock vault (discard passphrase and decrypted records)."""
    store = get_vault_store()
    try:
        await asyncio.to_thread(store.lock)
    except PreconditionError:
        raise _locked()
    return {"success": True, "message": "Vault locked"}


@router.get("/records")
async def list_records(token: str = Depends(verify_session_token)):
    """
    List all records in vault.

    Does not return passwords. Use GET /records/{id} for a single
    record with its password.
    """
    store = get_vault_store()
    try:
        records = await asyncio.to_thread(lambda: store.records)
    except PreconditionError:
        raise _locked()
    return {"records": [_summary(r) for r in records]}


@router.get("/records/{record_id}", response_model=RecordResponse)
async def get_record(
    record_id: str,
    token: str = Depends(verify_session_token)
):
    """Get record by ID (with password)."""
    store = get_vault_store()
    try:
        record = await asyncio.to_thread(store.get_record, record_id)
    except PreconditionError:
        raise _locked()

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Record not found"
        )
    return RecordResponse(**record.to_dict())


@router.post("/records", response_model=RecordSummary)
async def add_record(
    request: AddRecordRequest,
    token: str = Depends(verify_session_token)
):
    """Add a new record. The vault is re-sealed before this returns."""
    store = get_vault_store()
    try:
        records = await asyncio.to_thread(
            store.add_record, request.label, request.username, request.password
        )
    except PreconditionError:
        raise _locked()
    except VaultConflictError as e:
        raise _conflict(e)
    return _summary(records[-1])


@router.patch("/records/{record_id}", response_model=RecordSummary)
async def update_record(
    record_id: str,
    request: UpdateRecordRequest,
    token: str = Depends(verify_session_token)
):
    """Change label, username and/or password of a record."""
    store = get_vault_store()
    try:
        record = await asyncio.to_thread(
            store.update_record,
            record_id,
            request.label,
            request.username,
            request.password,
        )
    except PreconditionError:
        raise _locked()
    except VaultConflictError as e:
        raise _conflict(e)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Record not found"
        )
    return _summary(record)


@router.delete("/records/{record_id}")
async def delete_record(
    record_id: str,
    token: str = Depends(verify_session_token)
):
    """Delete record from vault. Deleting a missing id succeeds."""
    store = get_vault_store()
    try:
        records = await asyncio.to_thread(store.remove_record, record_id)
    except PreconditionError:
        raise _locked()
    except VaultConflictError as e:
        raise _conflict(e)
    return {"success": True, "record_count": len(records)}
