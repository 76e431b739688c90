"""
Canonical JSON serialization for signing payloads and output records.

Sorted keys, no whitespace, UTF-8. The same object always yields the same
bytes, so sign bytes are reproducible and output is deterministic.
"""

import base64
import hashlib
import json
from typing import Any


def canonical_json(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Rules:
    - Keys sorted alphabetically (recursive)
    - No whitespace
    - UTF-8 encoding (no ASCII escapes for non-ASCII chars)
    - NaN and infinities rejected
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def canonical_json_bytes(obj: Any) -> bytes:
    """Serialize to canonical JSON as UTF-8 bytes."""
    return canonical_json(obj).encode("utf-8")


def sha256_digest(data: bytes) -> str:
    """Compute SHA256 hex digest of bytes."""
    return hashlib.sha256(data).hexdigest()


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(value: str) -> bytes:
    """Strict base64 decode. Raises ValueError on malformed input."""
    if not isinstance(value, str):
        raise ValueError(f"expected base64 string, got {type(value).__name__}")
    return base64.b64decode(value.encode("ascii"), validate=True)
