"""
Signer protocol: the secrets boundary.

The orchestrator never sees private keys. It hands the signer the
canonical sign bytes of a transaction and gets raw signature bytes
back, plus the public key needed to attribute the signature.

Concrete implementations:
    - Ed25519Signer (local key held in memory, via ``cryptography``)
    - FakeSigner (tests)

A SignatureRecord is the minimal artifact of one signing: which key
signed, the signature, and the sequence it was produced for. Records
created on behalf of a multisig key also carry the member's slot index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PublicFormat,
    load_pem_private_key,
)

from ledgersign.canonical_json import b64decode, b64encode
from ledgersign.keys import derive_address

# =========================================================================
# SignatureRecord
# =========================================================================


@dataclass(frozen=True)
class SignatureRecord:
    """One signature slot.

    Attributes:
        public_key: Raw public key bytes of the signing key.
        signature: Raw signature bytes.
        sequence: Account sequence the signature was produced for.
        member_index: Slot in the multisig member ordering, or None for
            a single-signer signature.
    """

    public_key: bytes
    signature: bytes
    sequence: int
    member_index: int | None = None

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {
            "public_key": b64encode(self.public_key),
            "signature": b64encode(self.signature),
            "sequence": self.sequence,
        }
        if self.member_index is not None:
            result["member_index"] = self.member_index
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SignatureRecord:
        sequence = data["sequence"]
        if not isinstance(sequence, int) or isinstance(sequence, bool) or sequence < 0:
            raise ValueError(f"sequence must be a non-negative integer, got: {sequence!r}")
        member = data.get("member_index")
        if member is not None and (
            not isinstance(member, int) or isinstance(member, bool) or member < 0
        ):
            raise ValueError(f"member_index must be a non-negative integer, got: {member!r}")
        return cls(
            public_key=b64decode(data["public_key"]),
            signature=b64decode(data["signature"]),
            sequence=sequence,
            member_index=member,
        )


# =========================================================================
# Protocol
# =========================================================================


@runtime_checkable
class Signer(Protocol):
    """Interface for signing capabilities.

    Implementations manage key material internally (memory, hardware,
    remote custody). Only the public key and signatures leave.

    Properties:
        name: Keyring name of the key (safe for logging).
        address: Ledger address derived from the public key.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def address(self) -> str:
        ...

    def public_key(self) -> bytes:
        """Raw public key bytes."""
        ...

    def sign(self, payload: bytes) -> bytes:
        """Sign the canonical payload and return raw signature bytes.

        Raises:
            Exception: Any failure (denied access, device error). The
                orchestrator wraps it in SigningError.
        """
        ...


# =========================================================================
# Ed25519Signer
# =========================================================================


class Ed25519Signer:
    """Local Ed25519 signer backed by ``cryptography``."""

    def __init__(self, name: str, private_key: Ed25519PrivateKey) -> None:
        self._name = name
        self._private_key = private_key
        self._public_key = private_key.public_key().public_bytes(
            encoding=Encoding.Raw,
            format=PublicFormat.Raw,
        )

    @classmethod
    def generate(cls, name: str) -> Ed25519Signer:
        return cls(name, Ed25519PrivateKey.generate())

    @classmethod
    def from_private_bytes(cls, name: str, raw: bytes) -> Ed25519Signer:
        """Build from a 32-byte raw Ed25519 seed."""
        return cls(name, Ed25519PrivateKey.from_private_bytes(raw))

    @classmethod
    def from_pem(cls, name: str, data: bytes) -> Ed25519Signer:
        """Build from an unencrypted PKCS8 PEM private key.

        Raises:
            ValueError: If the PEM is not an Ed25519 private key.
        """
        key = load_pem_private_key(data, password=None)
        if not isinstance(key, Ed25519PrivateKey):
            raise ValueError(f"key {name!r} is not an Ed25519 private key")
        return cls(name, key)

    @property
    def name(self) -> str:
        return self._name

    @property
    def address(self) -> str:
        return derive_address(self._public_key)

    def public_key(self) -> bytes:
        return self._public_key

    def sign(self, payload: bytes) -> bytes:
        return self._private_key.sign(payload)

    def __repr__(self) -> str:
        return f"Ed25519Signer(name={self._name!r}, address={self.address!r})"
