"""
Batch signing orchestrator.

Composes the pure layers (decoder, tx, encoder) with the impure
boundaries (keyring, signer, account client, output sink).

Per transaction (``SigningOrchestrator.process``):
    1. Stamp the tracker's (account_number, sequence).
    2. Single signer: sign the canonical sign bytes and attach the
       signature (append, or replace the same key's slot on overwrite).
    3. Multisig: check the signer is a member of the multisig key
       first; a non-member never reaches the signer. The signature is
       attributed to the member's slot and output is signature-only.
    4. Signer failure: SigningError; the tracker is not advanced.
    5. Success: advance the tracker.

Batch state machine:

    INIT -> RESOLVING_ACCOUNT -> STREAMING -> COMPLETE
                                          \\-> FAILED

Any DecodeError, MultisigMembershipError, SigningError, or OutputError
moves the run to FAILED and propagates. Records written before the
failure stay written. The batch is not resumable; callers re-run with
the remaining input.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import IO, Any

from ledgersign.account import AccountClient, JsonRpcAccountClient
from ledgersign.config import SignConfig
from ledgersign.decoder import TransactionDecoder
from ledgersign.encoder import SignOutcome, encode_outcome, open_output
from ledgersign.errors import DecodeError, LedgerSignError, SigningError
from ledgersign.keyring import Keyring
from ledgersign.keys import MultisigPublicKey, member_index
from ledgersign.sequence import SequenceTracker, resolve_tracker
from ledgersign.signer import SignatureRecord, Signer
from ledgersign.tx import UnsignedTransaction

logger = logging.getLogger(__name__)


class BatchStatus(StrEnum):
    """Lifecycle of one signing run."""

    INIT = "INIT"
    RESOLVING_ACCOUNT = "RESOLVING_ACCOUNT"
    STREAMING = "STREAMING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


@dataclass
class BatchState:
    """Per-run state shared by every iteration.

    Only ``tracker`` changes during a run.
    """

    tracker: SequenceTracker
    offline: bool = False
    multisig_target: tuple[str, MultisigPublicKey] | None = None
    signature_only: bool = False
    overwrite: bool = False
    chain_id: str | None = None

    @property
    def effective_signature_only(self) -> bool:
        return self.signature_only or self.multisig_target is not None


@dataclass(frozen=True)
class BatchResult:
    """Summary of a completed run."""

    status: BatchStatus
    records: int
    account_number: int
    next_sequence: int


# =========================================================================
# Orchestrator
# =========================================================================


class SigningOrchestrator:
    """Signs transactions one at a time against a BatchState.

    Constructed with a state, the orchestrator is ready to stream.
    Constructed without one, ``resolve`` must run first to resolve the
    account and build the state.
    """

    def __init__(self, signer: Signer, state: BatchState | None = None) -> None:
        self._signer = signer
        self._state = state
        self._status = BatchStatus.INIT
        self._emitted = 0

    @property
    def signer(self) -> Signer:
        return self._signer

    @property
    def state(self) -> BatchState:
        if self._state is None:
            raise RuntimeError("batch state not resolved; call resolve() first")
        return self._state

    @property
    def status(self) -> BatchStatus:
        return self._status

    @property
    def emitted(self) -> int:
        return self._emitted

    async def resolve(
        self,
        config: SignConfig,
        *,
        multisig_target: tuple[str, MultisigPublicKey] | None = None,
        account_client: AccountClient | None = None,
    ) -> BatchState:
        """Resolve the account and build the batch state.

        Offline runs never consult ``account_client``.

        Raises:
            ConfigError: Missing offline values or node endpoint.
            AccountLookupError: Online lookup failed.
        """
        self._status = BatchStatus.RESOLVING_ACCOUNT
        try:
            tracker = await resolve_tracker(
                config,
                self._signer.address,
                None if config.offline else account_client,
            )
        except LedgerSignError:
            self._status = BatchStatus.FAILED
            raise
        self._state = BatchState(
            tracker=tracker,
            offline=config.offline,
            multisig_target=multisig_target,
            signature_only=config.signature_only,
            overwrite=config.overwrite,
            chain_id=config.chain_id,
        )
        return self._state

    def process(self, tx: UnsignedTransaction) -> SignOutcome:
        """Sign one transaction.

        Raises:
            MultisigMembershipError: Signer is not a multisig member.
            SigningError: The signer failed.
        """
        state = self.state
        account_number, sequence = state.tracker.current()
        tx.stamp(account_number, sequence)
        if state.chain_id is not None:
            tx.chain_id = state.chain_id
        payload = tx.sign_bytes()

        try:
            public_key = self._signer.public_key()
        except Exception as exc:
            raise SigningError(
                f"reading public key of {self._signer.name!r} failed: {exc}"
            ) from exc

        slot: int | None = None
        multisig_address: str | None = None
        if state.multisig_target is not None:
            multisig_address, multisig_key = state.multisig_target
            slot = member_index(multisig_key, public_key)

        try:
            signature = self._signer.sign(payload)
        except Exception as exc:
            raise SigningError(
                f"signing sequence {sequence} with {self._signer.name!r} failed: {exc}"
            ) from exc

        record = SignatureRecord(
            public_key=public_key,
            signature=signature,
            sequence=sequence,
            member_index=slot,
        )
        tx.set_signature(record, overwrite=state.overwrite)
        state.tracker.advance()
        logger.debug("Signed sequence %d (tx %s)", sequence, tx.tx_hash()[:16])
        return SignOutcome(tx=tx, record=record, multisig_address=multisig_address)

    def run(
        self, decoder: TransactionDecoder, sink_write: Callable[[bytes], None]
    ) -> None:
        """Stream every decoded transaction through process and the sink.

        Args:
            decoder: Source of transactions.
            sink_write: Callable taking encoded bytes (OutputSink.write_record).

        Raises:
            LedgerSignError: First failure; status becomes FAILED.
        """
        signature_only = self.state.effective_signature_only
        self._status = BatchStatus.STREAMING
        try:
            for tx in decoder:
                outcome = self.process(tx)
                sink_write(encode_outcome(outcome, signature_only))
                self._emitted += 1
            decoder.raise_for_error()
        except LedgerSignError:
            self._status = BatchStatus.FAILED
            raise
        self._status = BatchStatus.COMPLETE


# =========================================================================
# Entry points
# =========================================================================


async def prepare_orchestrator(
    config: SignConfig,
    keyring: Keyring,
    *,
    account_client: AccountClient | None = None,
) -> SigningOrchestrator:
    """Resolve identities and the account, returning a ready orchestrator.

    Raises:
        KeyNotFoundError: Signing or multisig identity unknown.
        ConfigError: Missing offline values or node endpoint.
        AccountLookupError: Online lookup failed.
    """
    signer = keyring.signer(config.signing_identity)
    multisig_target = keyring.multisig(config.multisig) if config.multisig else None

    if account_client is None and config.node is not None and not config.offline:
        account_client = JsonRpcAccountClient(config.node)
    orchestrator = SigningOrchestrator(signer)
    try:
        await orchestrator.resolve(
            config, multisig_target=multisig_target, account_client=account_client
        )
    except LedgerSignError as exc:
        logger.warning("Batch failed during %s: %s", BatchStatus.RESOLVING_ACCOUNT, exc)
        raise
    return orchestrator


async def sign_batch(
    lines: Iterable[str | bytes],
    config: SignConfig,
    keyring: Keyring,
    *,
    account_client: AccountClient | None = None,
    output: IO[Any] | None = None,
) -> BatchResult:
    """Sign a newline-delimited batch of unsigned transactions.

    Each signed record is written to the sink before the next line is
    read. On failure the error propagates and every record written so
    far remains in the output.

    Args:
        lines: Input lines (an open file, ``sys.stdin``, a list).
        config: Validated signing options.
        keyring: Identity resolver.
        account_client: Injected account client for online runs.
            Defaults to a JSON-RPC client on ``config.node``.
        output: Stream used when config.output_document is None.
            Defaults to standard output.

    Returns:
        BatchResult with status COMPLETE.

    Raises:
        LedgerSignError: Any taxonomy error; the run is FAILED.
    """
    orchestrator = await prepare_orchestrator(
        config, keyring, account_client=account_client
    )
    state = orchestrator.state

    start_account, start_sequence = state.tracker.current()
    logger.info(
        "Signing batch as %s: account_number=%d sequence=%d mode=%s offline=%s",
        orchestrator.signer.name,
        start_account,
        start_sequence,
        "multisig" if state.multisig_target else "single",
        state.offline,
    )

    decoder = TransactionDecoder(lines)
    try:
        with open_output(config.output_document, output) as sink:
            orchestrator.run(decoder, sink.write_record)
    except LedgerSignError as exc:
        logger.warning(
            "Batch failed after %d records: %s", orchestrator.emitted, exc
        )
        raise

    logger.info("Batch complete: %d records", orchestrator.emitted)
    return BatchResult(
        status=orchestrator.status,
        records=orchestrator.emitted,
        account_number=state.tracker.account_number,
        next_sequence=state.tracker.sequence,
    )


async def sign_single(
    document: str | bytes,
    config: SignConfig,
    keyring: Keyring,
    *,
    account_client: AccountClient | None = None,
    output: IO[Any] | None = None,
) -> SignOutcome:
    """Sign exactly one transaction document and write one JSON document.

    Raises:
        DecodeError: The document is not a single valid transaction.
        LedgerSignError: Any other taxonomy error.
    """
    decoder = TransactionDecoder([_single_line(document)])
    tx = next(decoder, None)
    if tx is None:
        decoder.raise_for_error()
        raise DecodeError("no transaction in input", line_number=1)

    orchestrator = await prepare_orchestrator(
        config, keyring, account_client=account_client
    )
    outcome = orchestrator.process(tx)
    with open_output(config.output_document, output) as sink:
        sink.write_record(
            encode_outcome(outcome, orchestrator.state.effective_signature_only)
        )
    return outcome


def _single_line(document: str | bytes) -> str | bytes:
    """Collapse a (possibly pretty-printed) document to one line."""
    if isinstance(document, bytes):
        return document.replace(b"\r", b" ").replace(b"\n", b" ")
    return document.replace("\r", " ").replace("\n", " ")
