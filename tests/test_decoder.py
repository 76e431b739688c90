"""
Tests for the batch transaction decoder.

Test plan:
- Clean stream: yields every transaction in order, error is None
- Malformed line: stops there, earlier records kept, error carries the
  line number, later lines never read
- Forward-only: iterating again after exhaustion yields nothing
- Blank lines: reported as DecodeError, trailing newline is not blank
- Non-finite numbers (NaN, Infinity, overflowing floats) are DecodeErrors
- Bytes input decoded as UTF-8, invalid UTF-8 reported
- raise_for_error: raises only after an error stop
"""

import json

import pytest

from ledgersign.decoder import TransactionDecoder
from ledgersign.errors import DecodeError


def _line(n: int) -> str:
    return json.dumps({"body": {"n": n}}) + "\n"


class _CountingLines:
    """Iterable that records how many lines were pulled."""

    def __init__(self, lines: list[str]) -> None:
        self._lines = lines
        self.pulled = 0

    def __iter__(self):  # type: ignore[no-untyped-def]
        for line in self._lines:
            self.pulled += 1
            yield line


class TestCleanStream:
    def test_yields_in_order(self) -> None:
        decoder = TransactionDecoder([_line(0), _line(1), _line(2)])
        assert [tx.body["n"] for tx in decoder] == [0, 1, 2]
        assert decoder.error is None
        assert decoder.exhausted is True

    def test_empty_stream(self) -> None:
        decoder = TransactionDecoder([])
        assert list(decoder) == []
        assert decoder.error is None

    def test_line_without_newline(self) -> None:
        decoder = TransactionDecoder(['{"body": {}}'])
        assert len(list(decoder)) == 1

    def test_crlf_line(self) -> None:
        decoder = TransactionDecoder(['{"body": {"n": 1}}\r\n'])
        assert [tx.body["n"] for tx in decoder] == [1]

    def test_raise_for_error_noop(self) -> None:
        decoder = TransactionDecoder([_line(0)])
        list(decoder)
        decoder.raise_for_error()


class TestMalformed:
    def test_stops_at_first_bad_line(self) -> None:
        lines = _CountingLines([_line(0), _line(1), "{not json\n", _line(3)])
        decoder = TransactionDecoder(lines)
        assert [tx.body["n"] for tx in decoder] == [0, 1]
        assert isinstance(decoder.error, DecodeError)
        assert decoder.error.line_number == 3
        assert lines.pulled == 3

    def test_invalid_shape_is_decode_error(self) -> None:
        decoder = TransactionDecoder(['{"body": 5}\n'])
        assert list(decoder) == []
        assert decoder.error is not None
        assert "body" in str(decoder.error)

    def test_forward_only(self) -> None:
        decoder = TransactionDecoder([_line(0), "oops\n", _line(2)])
        assert len(list(decoder)) == 1
        assert list(decoder) == []

    def test_raise_for_error(self) -> None:
        decoder = TransactionDecoder(["oops\n"])
        list(decoder)
        with pytest.raises(DecodeError, match="line 1"):
            decoder.raise_for_error()

    def test_blank_line_is_error(self) -> None:
        decoder = TransactionDecoder([_line(0), "\n", _line(2)])
        assert len(list(decoder)) == 1
        assert decoder.error is not None
        assert "blank line" in str(decoder.error)
        assert decoder.error.line_number == 2

    def test_whitespace_line_is_error(self) -> None:
        decoder = TransactionDecoder(["   \n"])
        assert list(decoder) == []
        assert decoder.error is not None

    @pytest.mark.parametrize(
        "line",
        [
            '{"body": {"x": NaN}}\n',
            '{"body": {"x": Infinity}}\n',
            '{"body": {"x": -Infinity}}\n',
            '{"body": {"x": 1e999}}\n',
        ],
    )
    def test_non_finite_number_is_error(self, line: str) -> None:
        decoder = TransactionDecoder([_line(0), line])
        assert len(list(decoder)) == 1
        assert decoder.error is not None
        assert decoder.error.line_number == 2
        assert "invalid JSON" in str(decoder.error)

    def test_finite_floats_accepted(self) -> None:
        (tx,) = TransactionDecoder(['{"body": {"x": 1.5e3}}\n'])
        assert tx.body == {"x": 1500.0}


class TestBytesInput:
    def test_bytes_lines(self) -> None:
        decoder = TransactionDecoder([_line(7).encode("utf-8")])
        assert [tx.body["n"] for tx in decoder] == [7]

    def test_invalid_utf8(self) -> None:
        decoder = TransactionDecoder([b"\xff\xfe\n"])
        assert list(decoder) == []
        assert decoder.error is not None
        assert "UTF-8" in str(decoder.error)

    def test_lines_read(self) -> None:
        decoder = TransactionDecoder([_line(0), _line(1)])
        list(decoder)
        assert decoder.lines_read == 2
