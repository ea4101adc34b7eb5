"""Tests for the envelope wire format and the record collection codec."""

import json

import pytest

from vaultkeeper.vault.envelope import FORMAT_VERSION, MIN_ENVELOPE_SIZE, Envelope
from vaultkeeper.vault.exceptions import AuthenticationError, MalformedEnvelopeError
from vaultkeeper.vault.models import VaultRecord, decode_collection, encode_collection


# ── Envelope ────────────────────────────────────────────────────────


class TestEnvelope:
    """version(1) + salt(16) + nonce(12) + ciphertext+tag."""

    def test_roundtrip(self, fast_kdf):
        plaintext = encode_collection([VaultRecord("github", "alice", "s3cr3t")])
        envelope = Envelope.seal("correct-horse", plaintext)
        assert envelope.open("correct-horse") == plaintext

    def test_roundtrip_through_bytes(self, fast_kdf):
        envelope = Envelope.seal("pw", b"[]")
        parsed = Envelope.from_bytes(envelope.to_bytes())
        assert parsed == envelope
        assert parsed.open("pw") == b"[]"

    def test_output_format(self, fast_kdf):
        envelope = Envelope.seal("pw", b"payload")
        blob = envelope.to_bytes()
        assert blob[0] == FORMAT_VERSION == 1
        assert blob[1:17] == envelope.salt
        assert blob[17:29] == envelope.nonce
        assert blob[29:] == envelope.ciphertext
        assert len(blob) == 29 + len(b"payload") + 16

    def test_blob_carries_no_plaintext(self, fast_kdf):
        blob = Envelope.seal("correct-horse", b"s3cr3t-password").to_bytes()
        assert b"s3cr3t-password" not in blob
        assert b"correct-horse" not in blob

    def test_wrong_passphrase_rejected(self, fast_kdf):
        envelope = Envelope.seal("correct-horse", b"[]")
        for wrong in ["wrong-pass", "", "correct-hors", "Correct-horse", "correct-horse "]:
            with pytest.raises(AuthenticationError):
                envelope.open(wrong)

    def test_salt_and_nonce_fresh_on_every_seal(self, fast_kdf):
        seen = set()
        for _ in range(20):
            envelope = Envelope.seal("same-pass", b"same plaintext")
            seen.add((envelope.salt, envelope.nonce))
        assert len(seen) == 20

    def test_every_bit_flip_after_version_byte_fails_authentication(self, fast_kdf):
        blob = Envelope.seal("pw", b"[]").to_bytes()
        for byte_index in range(1, len(blob)):
            for bit in range(8):
                tampered = bytearray(blob)
                tampered[byte_index] ^= 1 << bit
                envelope = Envelope.from_bytes(bytes(tampered))
                with pytest.raises(AuthenticationError):
                    envelope.open("pw")

    def test_version_byte_flip_is_malformed(self, fast_kdf):
        blob = Envelope.seal("pw", b"[]").to_bytes()
        for bit in range(8):
            tampered = bytearray(blob)
            tampered[0] ^= 1 << bit
            with pytest.raises(MalformedEnvelopeError):
                Envelope.from_bytes(bytes(tampered))

    def test_version_is_authenticated(self, fast_kdf):
        envelope = Envelope.seal("pw", b"[]")
        relabelled = Envelope(
            salt=envelope.salt, nonce=envelope.nonce,
            ciphertext=envelope.ciphertext, version=2,
        )
        with pytest.raises(AuthenticationError):
            relabelled.open("pw")

    @pytest.mark.parametrize("size", [0, 1, 17, 29, MIN_ENVELOPE_SIZE - 1])
    def test_too_short_is_malformed(self, size):
        blob = bytes([FORMAT_VERSION]) + b"\x00" * max(size - 1, 0)
        with pytest.raises(MalformedEnvelopeError):
            Envelope.from_bytes(blob[:size])

    def test_minimum_size_parses(self):
        blob = bytes([FORMAT_VERSION]) + b"\x00" * (MIN_ENVELOPE_SIZE - 1)
        envelope = Envelope.from_bytes(blob)
        assert len(envelope.ciphertext) == 16

    def test_truncated_ciphertext_fails_authentication(self, fast_kdf):
        blob = Envelope.seal("pw", b'[{"x": 1}]').to_bytes()
        envelope = Envelope.from_bytes(blob[:-1])
        with pytest.raises(AuthenticationError):
            envelope.open("pw")


# ── Collection codec ────────────────────────────────────────────────


class TestCollectionCodec:
    """Explicit JSON encode/decode of the ordered record list."""

    def test_roundtrip_preserves_order_and_ids(self):
        records = [
            VaultRecord("github", "alice", "s3cr3t"),
            VaultRecord("mail", "alice@example.com", "hunter2"),
            VaultRecord("bank", "", "pässwörd ✓"),
        ]
        decoded = decode_collection(encode_collection(records))
        assert decoded == records
        assert [r.id for r in decoded] == [r.id for r in records]

    def test_empty_collection(self):
        assert encode_collection([]) == b"[]"
        assert decode_collection(b"[]") == []

    def test_encoded_fields(self):
        record = VaultRecord("github", "alice", "s3cr3t", id="fixed-id")
        payload = json.loads(encode_collection([record]))
        assert payload == [
            {"id": "fixed-id", "label": "github", "username": "alice", "password": "s3cr3t"}
        ]

    def test_ids_are_unique(self):
        ids = {VaultRecord("l", "u", "p").id for _ in range(100)}
        assert len(ids) == 100

    @pytest.mark.parametrize("payload", [
        b"not json",
        b"\xff\xfe",
        b'{"id": "a"}',
        b'"text"',
        b"[1, 2]",
        b'[{"id": "a", "label": "l", "username": "u"}]',
        b'[{"id": "a", "label": "l", "username": "u", "password": 5}]',
        b'[{"id": null, "label": "l", "username": "u", "password": "p"}]',
    ])
    def test_malformed_payload(self, payload):
        with pytest.raises(MalformedEnvelopeError):
            decode_collection(payload)

    def test_duplicate_ids_rejected(self):
        record = VaultRecord("github", "alice", "s3cr3t", id="dup")
        payload = encode_collection([record, record])
        with pytest.raises(MalformedEnvelopeError):
            decode_collection(payload)

    def test_extra_fields_ignored(self):
        payload = b'[{"id": "a", "label": "l", "username": "u", "password": "p", "note": "x"}]'
        assert decode_collection(payload) == [VaultRecord("l", "u", "p", id="a")]

    def test_records_are_immutable(self):
        record = VaultRecord("github", "alice", "s3cr3t")
        with pytest.raises(AttributeError):
            record.password = "changed"

    def test_summary_hides_password(self):
        record = VaultRecord("github", "alice", "s3cr3t")
        assert "password" not in record.summary()
        assert record.to_dict()["password"] == "s3cr3t"
