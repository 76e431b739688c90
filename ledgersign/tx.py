"""
Unsigned transaction model.

A transaction document is an opaque ``body`` plus an ordered list of
signature slots. The signing tool never interprets the body; it only
stamps the account number and sequence, computes the canonical sign
bytes, and manages signature slots.

Document shape (one JSON object per input line):

    {
        "body": {...},                  # required, opaque
        "signatures": [...],            # optional, SignatureRecord dicts
        "account_number": 12,           # optional, overwritten on stamp
        "sequence": 7,                  # optional, overwritten on stamp
        "chain_id": "..."               # optional
    }

Sign bytes:
    canonical_json({account_number, body, chain_id, sequence})

    Signatures are excluded, so every signer of the same transaction
    signs the same bytes regardless of how many slots are filled.

Slots are keyed by public key. ``overwrite=True`` replaces the slot of
the same key in place; ``overwrite=False`` always appends.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ledgersign.canonical_json import canonical_json_bytes, sha256_digest
from ledgersign.signer import SignatureRecord

_KNOWN_FIELDS = {"body", "signatures", "account_number", "sequence", "chain_id"}


def _optional_uint(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"{key} must be a non-negative integer, got: {value!r}")
    return value


@dataclass
class UnsignedTransaction:
    """A transaction under signing.

    Mutable on purpose: the orchestrator stamps it and fills its slots
    during one iteration, then hands it to the encoder.
    """

    body: dict[str, Any]
    signatures: list[SignatureRecord] = field(default_factory=list)
    account_number: int | None = None
    sequence: int | None = None
    chain_id: str | None = None

    # --- Stamping and signing ---

    def stamp(self, account_number: int, sequence: int) -> None:
        self.account_number = account_number
        self.sequence = sequence

    def sign_bytes(self, chain_id: str | None = None) -> bytes:
        """Canonical payload every signer signs.

        Args:
            chain_id: Overrides the document's own chain_id when given.

        Raises:
            ValueError: If the transaction has not been stamped.
        """
        if self.account_number is None or self.sequence is None:
            raise ValueError("transaction must be stamped before computing sign bytes")
        return canonical_json_bytes(
            {
                "account_number": self.account_number,
                "body": self.body,
                "chain_id": chain_id if chain_id is not None else (self.chain_id or ""),
                "sequence": self.sequence,
            }
        )

    def set_signature(self, record: SignatureRecord, *, overwrite: bool) -> None:
        """Attach a signature slot.

        With overwrite, the first slot held by the same public key is
        replaced in place and any later duplicates of that key are
        dropped. If the key holds no slot yet, the record is appended.
        """
        if not overwrite:
            self.signatures.append(record)
            return

        replaced = False
        slots: list[SignatureRecord] = []
        for existing in self.signatures:
            if existing.public_key == record.public_key:
                if not replaced:
                    slots.append(record)
                    replaced = True
                continue
            slots.append(existing)
        if not replaced:
            slots.append(record)
        self.signatures = slots

    def signatures_for(self, public_key: bytes) -> list[SignatureRecord]:
        return [s for s in self.signatures if s.public_key == public_key]

    def tx_hash(self) -> str:
        """SHA256 hex of the canonical full document (diagnostics only)."""
        return sha256_digest(canonical_json_bytes(self.to_dict()))

    # --- Serialization ---

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "body": self.body,
            "signatures": [s.to_dict() for s in self.signatures],
        }
        if self.account_number is not None:
            result["account_number"] = self.account_number
        if self.sequence is not None:
            result["sequence"] = self.sequence
        if self.chain_id is not None:
            result["chain_id"] = self.chain_id
        return result

    @classmethod
    def from_dict(cls, data: Any) -> UnsignedTransaction:
        """Build from a decoded JSON document.

        Raises:
            ValueError: If the document shape is invalid.
        """
        if not isinstance(data, dict):
            raise ValueError(
                f"transaction must be a JSON object, got {type(data).__name__}"
            )
        unknown = set(data) - _KNOWN_FIELDS
        if unknown:
            raise ValueError(f"unknown transaction fields: {sorted(unknown)}")
        body = data.get("body")
        if not isinstance(body, dict):
            raise ValueError("transaction body must be a JSON object")

        raw_sigs = data.get("signatures", [])
        if not isinstance(raw_sigs, list):
            raise ValueError("signatures must be a list")
        signatures: list[SignatureRecord] = []
        for entry in raw_sigs:
            if not isinstance(entry, dict):
                raise ValueError("signature entries must be JSON objects")
            try:
                signatures.append(SignatureRecord.from_dict(entry))
            except KeyError as exc:
                raise ValueError(f"signature entry missing field {exc}") from exc

        chain_id = data.get("chain_id")
        if chain_id is not None and not isinstance(chain_id, str):
            raise ValueError("chain_id must be a string")

        return cls(
            body=body,
            signatures=signatures,
            account_number=_optional_uint(data, "account_number"),
            sequence=_optional_uint(data, "sequence"),
            chain_id=chain_id,
        )
