"""
Keyring: resolves identity references to signers and multisig keys.

A reference is either a keyring name or a ledger address. Lookup by
name is tried first, then by address.

MemoryKeyring is the in-process implementation. ``from_directory``
loads a flat directory:

    <name>.pem            Ed25519 PKCS8 PEM private key (unencrypted)
    <name>.multisig.json  {"threshold": 2, "members": ["<b64>", ...]}

Creating, importing, or deleting keys is not handled here.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from ledgersign.errors import KeyNotFoundError
from ledgersign.keys import MultisigPublicKey, multisig_key_from_dict
from ledgersign.signer import Ed25519Signer, Signer

logger = logging.getLogger(__name__)

_MULTISIG_SUFFIX = ".multisig.json"


@runtime_checkable
class Keyring(Protocol):
    """Interface for resolving identity references."""

    def signer(self, ref: str) -> Signer:
        """Resolve a signing key.

        Raises:
            KeyNotFoundError: If ref names no signing key.
        """
        ...

    def multisig(self, ref: str) -> tuple[str, MultisigPublicKey]:
        """Resolve a multisig key to (address, key).

        Raises:
            KeyNotFoundError: If ref names no multisig key.
        """
        ...


class MemoryKeyring:
    """Keyring held in memory."""

    def __init__(self) -> None:
        self._signers: dict[str, Signer] = {}
        self._multisigs: dict[str, MultisigPublicKey] = {}

    def add_signer(self, signer: Signer) -> None:
        self._signers[signer.name] = signer

    def add_multisig(self, name: str, key: MultisigPublicKey) -> None:
        self._multisigs[name] = key

    def signer(self, ref: str) -> Signer:
        found = self._signers.get(ref)
        if found is not None:
            return found
        for candidate in self._signers.values():
            if candidate.address == ref:
                return candidate
        raise KeyNotFoundError(f"error getting account from keybase: {ref!r} not found")

    def multisig(self, ref: str) -> tuple[str, MultisigPublicKey]:
        found = self._multisigs.get(ref)
        if found is not None:
            return found.address, found
        for key in self._multisigs.values():
            if key.address == ref:
                return key.address, key
        raise KeyNotFoundError(
            f"error getting account from keybase: multisig {ref!r} not found"
        )

    @classmethod
    def from_directory(cls, path: str | Path) -> MemoryKeyring:
        """Load every key file in a directory.

        Raises:
            KeyNotFoundError: If the directory does not exist.
            ValueError: If a key file is malformed.
        """
        root = Path(path)
        if not root.is_dir():
            raise KeyNotFoundError(f"keyring directory not found: {root}")

        keyring = cls()
        for entry in sorted(root.iterdir()):
            if entry.name.endswith(_MULTISIG_SUFFIX):
                name = entry.name[: -len(_MULTISIG_SUFFIX)]
                data = json.loads(entry.read_text(encoding="utf-8"))
                key = multisig_key_from_dict(data)
                keyring.add_multisig(name, key)
            elif entry.suffix == ".pem":
                keyring.add_signer(Ed25519Signer.from_pem(entry.stem, entry.read_bytes()))
        logger.debug(
            "Loaded keyring from %s: %d signers, %d multisig keys",
            root,
            len(keyring._signers),
            len(keyring._multisigs),
        )
        return keyring
