"""
Tests for keyring resolution and directory loading.

Test plan:
- MemoryKeyring: signer and multisig lookup by name and by address,
  unknown references raise KeyNotFoundError
- from_directory: PEM signers and multisig JSON files loaded, missing
  directory rejected, non-Ed25519 PEM rejected, malformed or non-object
  multisig files rejected, other files ignored
"""

import json
from pathlib import Path

import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)

from ledgersign.canonical_json import b64encode
from ledgersign.errors import KeyNotFoundError
from ledgersign.keyring import Keyring, MemoryKeyring
from ledgersign.keys import MultisigPublicKey
from ledgersign.signer import Ed25519Signer


def _pem(key: Ed25519PrivateKey | ec.EllipticCurvePrivateKey) -> bytes:
    return key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption())


@pytest.fixture()
def ring() -> MemoryKeyring:
    keyring = MemoryKeyring()
    alice = Ed25519Signer.from_private_bytes("alice", bytes(range(32)))
    bob = Ed25519Signer.from_private_bytes("bob", bytes(range(1, 33)))
    keyring.add_signer(alice)
    keyring.add_signer(bob)
    keyring.add_multisig(
        "team", MultisigPublicKey(threshold=1, members=(alice.public_key(), bob.public_key()))
    )
    return keyring


class TestMemoryKeyring:
    def test_is_keyring(self, ring: MemoryKeyring) -> None:
        assert isinstance(ring, Keyring)

    def test_signer_by_name(self, ring: MemoryKeyring) -> None:
        assert ring.signer("alice").name == "alice"

    def test_signer_by_address(self, ring: MemoryKeyring) -> None:
        address = ring.signer("bob").address
        assert ring.signer(address).name == "bob"

    def test_unknown_signer(self, ring: MemoryKeyring) -> None:
        with pytest.raises(KeyNotFoundError, match="keybase"):
            ring.signer("mallory")

    def test_multisig_by_name_and_address(self, ring: MemoryKeyring) -> None:
        address, key = ring.multisig("team")
        assert address == key.address
        assert ring.multisig(address) == (address, key)

    def test_unknown_multisig(self, ring: MemoryKeyring) -> None:
        with pytest.raises(KeyNotFoundError, match="multisig"):
            ring.multisig("alice")


class TestFromDirectory:
    def test_loads_signers_and_multisig(self, tmp_path: Path) -> None:
        alice_key = Ed25519PrivateKey.generate()
        bob_key = Ed25519PrivateKey.generate()
        (tmp_path / "alice.pem").write_bytes(_pem(alice_key))
        (tmp_path / "bob.pem").write_bytes(_pem(bob_key))
        alice = Ed25519Signer("alice", alice_key)
        bob = Ed25519Signer("bob", bob_key)
        (tmp_path / "team.multisig.json").write_text(
            json.dumps(
                {
                    "threshold": 2,
                    "members": [b64encode(alice.public_key()), b64encode(bob.public_key())],
                }
            )
        )
        (tmp_path / "notes.txt").write_text("ignored")

        keyring = MemoryKeyring.from_directory(tmp_path)
        assert keyring.signer("alice").public_key() == alice.public_key()
        assert keyring.signer(bob.address).name == "bob"
        _, team = keyring.multisig("team")
        assert team.threshold == 2
        assert team.members == (alice.public_key(), bob.public_key())

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(KeyNotFoundError, match="not found"):
            MemoryKeyring.from_directory(tmp_path / "absent")

    def test_non_ed25519_pem_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "weird.pem").write_bytes(_pem(ec.generate_private_key(ec.SECP256R1())))
        with pytest.raises(ValueError, match="Ed25519"):
            MemoryKeyring.from_directory(tmp_path)

    def test_bad_multisig_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "team.multisig.json").write_text('{"threshold": 3, "members": []}')
        with pytest.raises(ValueError):
            MemoryKeyring.from_directory(tmp_path)

    def test_non_object_multisig_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "team.multisig.json").write_text('[2, ["AQ=="]]')
        with pytest.raises(ValueError, match="JSON object"):
            MemoryKeyring.from_directory(tmp_path)
