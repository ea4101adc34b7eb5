"""
Vault Data Models
"""

import json
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from .exceptions import MalformedEnvelopeError

RECORD_FIELDS = ("id", "label", "username", "password")


def new_record_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class VaultRecord:
    """A labelled username/password entry. Identity is ``id``.

    Frozen: edits go through VaultStore.update_record so every change is
    re-sealed and persisted.
    """
    label: str
    username: str
    password: str
    id: str = field(default_factory=new_record_id)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def summary(self) -> Dict[str, str]:
        """Record without the password, for listings."""
        return {"id": self.id, "label": self.label, "username": self.username}


def encode_collection(records: List[VaultRecord]) -> bytes:
    """Serialize the ordered collection to UTF-8 JSON."""
    payload = [{name: getattr(r, name) for name in RECORD_FIELDS} for r in records]
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _decode_record(item: Any) -> VaultRecord:
    if not isinstance(item, dict):
        raise MalformedEnvelopeError("Vault record is not an object")
    values = {}
    for name in RECORD_FIELDS:
        value = item.get(name)
        if not isinstance(value, str):
            raise MalformedEnvelopeError(f"Vault record field '{name}' missing or not text")
        values[name] = value
    return VaultRecord(**values)


def decode_collection(data: bytes) -> List[VaultRecord]:
    """Parse decrypted plaintext back into records.

    Raises:
        MalformedEnvelopeError: Not a JSON array of well-formed records,
            or two records share an id.
    """
    try:
        parsed = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedEnvelopeError(f"Vault payload is not valid JSON: {e}") from e

    if not isinstance(parsed, list):
        raise MalformedEnvelopeError("Vault payload is not a list of records")

    records = [_decode_record(item) for item in parsed]

    seen = set()
    for record in records:
        if record.id in seen:
            raise MalformedEnvelopeError("Duplicate record id in vault payload")
        seen.add(record.id)

    return records
