"""
ledgersign: offline signing of unsigned ledger transactions.

Public API:

    Pure layer (no I/O):
        - ``UnsignedTransaction``: document model, stamping, sign bytes,
          signature slots.
        - ``TransactionDecoder``: lazy newline-delimited JSON decoder.
        - ``SequenceTracker``: per-run account number and sequence.
        - Keys: ``SimplePublicKey``, ``MultisigPublicKey``,
          ``is_member``, ``member_index``, ``require_member``.
        - Encoding: ``encode_outcome``, ``decode_signature_document``.

    Impure layer:
        - ``sign_batch()``: sign a batch, writing one record per line.
        - ``sign_single()``: sign one document.
        - ``open_output()``: scoped output file / stdout sink.

    Protocols (for dependency injection):
        - ``Signer``: secrets boundary (sign bytes, expose public key).
        - ``Keyring``: identity resolution (name or address).
        - ``AccountClient``: online account number / sequence lookup.
        - ``JsonRpcTransport``: HTTP seam of the account client.

    Concrete implementations:
        - ``Ed25519Signer``, ``MemoryKeyring``, ``JsonRpcAccountClient``,
          ``HttpxTransport``.
"""

from ledgersign.account import (
    AccountClient,
    AccountInfo,
    HttpxTransport,
    JsonRpcAccountClient,
    JsonRpcTransport,
)
from ledgersign.config import CONFIG_SCHEMA, SignConfig
from ledgersign.decoder import TransactionDecoder
from ledgersign.encoder import (
    OutputSink,
    SignOutcome,
    decode_signature_document,
    encode_outcome,
    open_output,
)
from ledgersign.errors import (
    AccountLookupError,
    ConfigError,
    DecodeError,
    KeyNotFoundError,
    LedgerSignError,
    MultisigMembershipError,
    OutputError,
    SigningError,
)
from ledgersign.keyring import Keyring, MemoryKeyring
from ledgersign.keys import (
    MultisigPublicKey,
    PublicKey,
    SimplePublicKey,
    is_member,
    member_index,
    multisig_key_from_dict,
    public_key_from_dict,
    require_member,
)
from ledgersign.orchestrator import (
    BatchResult,
    BatchState,
    BatchStatus,
    SigningOrchestrator,
    prepare_orchestrator,
    sign_batch,
    sign_single,
)
from ledgersign.sequence import SequenceTracker, resolve_tracker
from ledgersign.signer import Ed25519Signer, SignatureRecord, Signer
from ledgersign.tx import UnsignedTransaction

__version__ = "0.1.0"

__all__ = [
    "AccountClient",
    "AccountInfo",
    "AccountLookupError",
    "BatchResult",
    "BatchState",
    "BatchStatus",
    "CONFIG_SCHEMA",
    "ConfigError",
    "DecodeError",
    "Ed25519Signer",
    "HttpxTransport",
    "JsonRpcAccountClient",
    "JsonRpcTransport",
    "KeyNotFoundError",
    "Keyring",
    "LedgerSignError",
    "MemoryKeyring",
    "MultisigMembershipError",
    "MultisigPublicKey",
    "OutputError",
    "OutputSink",
    "PublicKey",
    "SequenceTracker",
    "SignConfig",
    "SignOutcome",
    "SignatureRecord",
    "Signer",
    "SigningError",
    "SigningOrchestrator",
    "SimplePublicKey",
    "TransactionDecoder",
    "UnsignedTransaction",
    "decode_signature_document",
    "encode_outcome",
    "is_member",
    "member_index",
    "multisig_key_from_dict",
    "open_output",
    "prepare_orchestrator",
    "public_key_from_dict",
    "require_member",
    "resolve_tracker",
    "sign_batch",
    "sign_single",
]
