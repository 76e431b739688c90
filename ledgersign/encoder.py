"""
Result encoding and output sinks.

Two document kinds, both canonical JSON (deterministic bytes):

    - signature-only:  {"signatures": [<SignatureRecord>, ...]}
      Multisig runs add "multisig": <multisig address> and carry only
      the member's own contribution, with its member_index.
    - full:            the signed UnsignedTransaction document.

Batch output is one document per line, written and flushed as soon as
each transaction is signed, so a mid-batch failure leaves every earlier
record intact.

``open_output`` is the scoped output resource: a named file is created
or truncated on entry and closed on every exit path. A close failure
never hides an error that was already propagating; it is attached to
that error as a note instead.
"""

from __future__ import annotations

import io
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import IO, Any

from ledgersign.canonical_json import canonical_json_bytes
from ledgersign.errors import OutputError
from ledgersign.signer import SignatureRecord
from ledgersign.tx import UnsignedTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignOutcome:
    """Result of signing one transaction.

    Attributes:
        tx: The stamped transaction with its signature slots.
        record: The signature produced in this run.
        multisig_address: Address of the multisig key signed on behalf
            of, or None for single-signer runs.
    """

    tx: UnsignedTransaction
    record: SignatureRecord
    multisig_address: str | None = None


# =========================================================================
# Encoding (pure)
# =========================================================================


def signature_document(outcome: SignOutcome) -> dict[str, object]:
    if outcome.multisig_address is not None:
        return {
            "multisig": outcome.multisig_address,
            "signatures": [outcome.record.to_dict()],
        }
    return {"signatures": [s.to_dict() for s in outcome.tx.signatures]}


def encode_outcome(outcome: SignOutcome, signature_only: bool) -> bytes:
    """Render a signing outcome as canonical JSON bytes (no newline)."""
    if signature_only or outcome.multisig_address is not None:
        return canonical_json_bytes(signature_document(outcome))
    return canonical_json_bytes(outcome.tx.to_dict())


def decode_signature_document(data: bytes | str) -> list[SignatureRecord]:
    """Parse a signature-only document back into records.

    Raises:
        ValueError: If the document is not a valid signature document.
    """
    document: Any = json.loads(data)
    if not isinstance(document, dict) or not isinstance(document.get("signatures"), list):
        raise ValueError("not a signature document")
    try:
        return [SignatureRecord.from_dict(entry) for entry in document["signatures"]]
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed signature entry: {exc}") from exc


# =========================================================================
# Output sink
# =========================================================================


class OutputSink:
    """Line-oriented writer over a binary or text stream."""

    def __init__(self, stream: IO[Any]) -> None:
        self._stream = stream
        self._records = 0

    @property
    def records_written(self) -> int:
        return self._records

    def write_record(self, data: bytes) -> None:
        """Write one encoded record plus newline and flush immediately.

        Raises:
            OutputError: If the write or flush fails.
        """
        line = data + b"\n"
        try:
            if isinstance(self._stream, io.TextIOBase):
                self._stream.write(line.decode("utf-8"))
            else:
                self._stream.write(line)
            self._stream.flush()
        except (OSError, ValueError) as exc:
            raise OutputError(f"writing output failed: {exc}") from exc
        self._records += 1


@contextmanager
def open_output(path: str | None, default: IO[Any] | None = None) -> Iterator[OutputSink]:
    """Scoped output sink.

    Args:
        path: File to create or truncate. None writes to ``default``
            (standard output unless given), which is never closed.
        default: Stream used when path is None.

    Raises:
        OutputError: If the file cannot be opened, or closing it fails
            on an otherwise successful run.
    """
    if path is None:
        yield OutputSink(default if default is not None else sys.stdout)
        return

    try:
        fp = open(path, "wb")
    except OSError as exc:
        raise OutputError(f"opening output document {path} failed: {exc}") from exc

    logger.debug("Writing output to %s", path)
    try:
        yield OutputSink(fp)
    except BaseException as pending:
        try:
            fp.close()
        except OSError as close_exc:
            pending.add_note(f"closing output document {path} also failed: {close_exc}")
        raise

    try:
        fp.close()
    except OSError as exc:
        raise OutputError(f"closing output document {path} failed: {exc}") from exc
