"""
Batch transaction decoder.

Reads newline-delimited JSON, one unsigned transaction per line, and
yields UnsignedTransaction objects lazily. The decoder is forward-only:

    - It stops at end of stream or at the first malformed line.
    - After stopping it never yields again, even if iterated anew.
    - ``error`` tells the caller whether it stopped cleanly (None) or
      on a DecodeError, so partial success is distinguishable from a
      complete batch.

Blank lines are malformed records, not separators. A single trailing
newline at end of stream terminates the last record and is not a
blank line.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Iterable, Iterator

from ledgersign.errors import DecodeError
from ledgersign.tx import UnsignedTransaction

logger = logging.getLogger(__name__)


class TransactionDecoder:
    """Lazy iterator over the transactions of a line stream.

    Args:
        lines: Any iterable of text or bytes lines (an open file, a
            list of strings, ``sys.stdin``).
    """

    def __init__(self, lines: Iterable[str | bytes]) -> None:
        self._lines = iter(lines)
        self._lines_read = 0
        self._error: DecodeError | None = None
        self._exhausted = False

    @property
    def error(self) -> DecodeError | None:
        """The DecodeError that stopped the stream, if any."""
        return self._error

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def lines_read(self) -> int:
        return self._lines_read

    def __iter__(self) -> Iterator[UnsignedTransaction]:
        return self

    def __next__(self) -> UnsignedTransaction:
        if self._exhausted:
            raise StopIteration
        try:
            raw = next(self._lines)
        except StopIteration:
            self._exhausted = True
            raise

        self._lines_read += 1
        try:
            return self._decode(raw)
        except DecodeError as exc:
            self._error = exc
            self._exhausted = True
            logger.debug("Stopped decoding at line %d: %s", self._lines_read, exc)
            raise StopIteration from None

    def raise_for_error(self) -> None:
        """Raise the stored DecodeError, if the stream stopped on one."""
        if self._error is not None:
            raise self._error

    def _decode(self, raw: str | bytes) -> UnsignedTransaction:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise DecodeError(
                    f"invalid UTF-8: {exc}", line_number=self._lines_read
                ) from exc

        text = raw.rstrip("\r\n")
        if not text.strip():
            raise DecodeError("blank line", line_number=self._lines_read)

        try:
            document = json.loads(
                text, parse_constant=_reject_constant, parse_float=_finite_float
            )
        except json.JSONDecodeError as exc:
            raise DecodeError(
                f"invalid JSON: {exc.msg}", line_number=self._lines_read
            ) from exc
        except ValueError as exc:
            raise DecodeError(
                f"invalid JSON: {exc}", line_number=self._lines_read
            ) from exc

        try:
            return UnsignedTransaction.from_dict(document)
        except ValueError as exc:
            raise DecodeError(str(exc), line_number=self._lines_read) from exc


# Records must stay canonically serializable, which excludes non-finite
# numbers.


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-finite number {name} is not allowed")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text} is out of range")
    return value
