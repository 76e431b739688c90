"""
Public keys and multisig membership.

A public key is one of two explicit variants:

    - ``SimplePublicKey``: a single signer's raw public key bytes.
    - ``MultisigPublicKey``: a threshold group: ``threshold`` signatures
      out of an ordered tuple of member keys.

Callers check ``is_multisig`` rather than inspecting types at runtime.

Addresses are derived, never stored:
    - simple: "ls1" + hex(sha256(key)[:20])
    - multisig: "ls1" + hex(sha256(canonical_json({threshold, members}))[:20])

Invariants (MultisigPublicKey):
    - members is non-empty and free of duplicates.
    - 1 <= threshold <= len(members).
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Literal

from ledgersign.canonical_json import b64decode, b64encode, canonical_json_bytes
from ledgersign.errors import MultisigMembershipError

ADDRESS_PREFIX = "ls1"
_ADDRESS_BYTES = 20


def derive_address(material: bytes) -> str:
    """Derive a ledger address from key material."""
    return ADDRESS_PREFIX + hashlib.sha256(material).digest()[:_ADDRESS_BYTES].hex()


# =========================================================================
# Variants
# =========================================================================


@dataclass(frozen=True)
class SimplePublicKey:
    """A single signer's public key."""

    key: bytes

    kind: Literal["simple"] = field(default="simple", init=False)

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("public key must be non-empty")

    @property
    def is_multisig(self) -> bool:
        return False

    @property
    def address(self) -> str:
        return derive_address(self.key)

    def to_dict(self) -> dict[str, object]:
        return {"type": self.kind, "key": b64encode(self.key)}


@dataclass(frozen=True)
class MultisigPublicKey:
    """A threshold group of member public keys.

    Member order is significant for slot assignment (a member signs into
    the slot at its index) but not for membership.
    """

    threshold: int
    members: tuple[bytes, ...]

    kind: Literal["multisig"] = field(default="multisig", init=False)

    def __post_init__(self) -> None:
        if not self.members:
            raise ValueError("multisig key must have at least one member")
        if len(set(self.members)) != len(self.members):
            raise ValueError("multisig key has duplicate members")
        if not 1 <= self.threshold <= len(self.members):
            raise ValueError(
                f"threshold must be in [1, {len(self.members)}], got: {self.threshold}"
            )

    @property
    def is_multisig(self) -> bool:
        return True

    @property
    def address(self) -> str:
        return derive_address(canonical_json_bytes(self.to_dict()))

    def to_dict(self) -> dict[str, object]:
        return {
            "type": self.kind,
            "threshold": self.threshold,
            "members": [b64encode(m) for m in self.members],
        }


PublicKey = SimplePublicKey | MultisigPublicKey


def public_key_from_dict(data: dict[str, Any]) -> PublicKey:
    """Rebuild a public key from its tagged dict form.

    Raises:
        ValueError: On unknown ``type`` or malformed fields.
    """
    kind = data.get("type")
    if kind == "simple":
        return SimplePublicKey(key=b64decode(data["key"]))
    if kind == "multisig":
        return multisig_key_from_dict(data)
    raise ValueError(f"unknown public key type: {kind!r}")


def multisig_key_from_dict(data: Any) -> MultisigPublicKey:
    """Build a multisig key from ``{"threshold": n, "members": [b64, ...]}``.

    A ``type`` field, if present, is ignored.

    Raises:
        ValueError: If data is not an object or its fields are malformed.
    """
    if not isinstance(data, dict):
        raise ValueError("multisig key must be a JSON object")
    members = data.get("members")
    if not isinstance(members, list):
        raise ValueError("multisig members must be a list")
    threshold = data.get("threshold")
    if not isinstance(threshold, int) or isinstance(threshold, bool):
        raise ValueError("multisig threshold must be an integer")
    return MultisigPublicKey(
        threshold=threshold,
        members=tuple(b64decode(m) for m in members),
    )


# =========================================================================
# Membership
# =========================================================================


def is_member(multisig_key: MultisigPublicKey, candidate: bytes) -> bool:
    """Exact byte comparison of candidate against every member."""
    return any(member == candidate for member in multisig_key.members)


def member_index(multisig_key: MultisigPublicKey, candidate: bytes) -> int:
    """Return the candidate's slot in the member ordering.

    Raises:
        MultisigMembershipError: If the candidate is not a member.
    """
    for index, member in enumerate(multisig_key.members):
        if member == candidate:
            return index
    raise _not_a_member(multisig_key, candidate)


def require_member(multisig_key: MultisigPublicKey, candidate: bytes) -> None:
    """Raise MultisigMembershipError unless candidate is a member."""
    if not is_member(multisig_key, candidate):
        raise _not_a_member(multisig_key, candidate)


def _not_a_member(
    multisig_key: MultisigPublicKey, candidate: bytes
) -> MultisigMembershipError:
    return MultisigMembershipError(
        f"signing key {candidate.hex()} is not a part of multisig key "
        f"{multisig_key.address}"
    )
