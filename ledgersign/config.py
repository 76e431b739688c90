"""
Signing options.

SignConfig is built once per run (from CLI flags or a mapping) and read
by every component. ``from_dict`` validates the raw mapping against
CONFIG_SCHEMA with jsonschema before any cross-field checks.

Effects:
    - offline: no node is contacted. A single-signer run must then supply
      account_number and sequence explicitly.
    - multisig: sign on behalf of that multisig key. Forces
      signature-only output; account_number / sequence default to 0.
    - signature_only: emit only the signature slots, not the full tx.
    - overwrite: replace an existing signature from the same key instead
      of appending a new slot.
    - output_document: write all output to this file (created or
      truncated at start) instead of standard output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import jsonschema  # type: ignore[import-untyped]

from ledgersign.errors import ConfigError

CONFIG_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["signing_identity"],
    "properties": {
        "signing_identity": {"type": "string", "minLength": 1},
        "multisig": {"type": ["string", "null"], "minLength": 1},
        "offline": {"type": "boolean"},
        "signature_only": {"type": "boolean"},
        "overwrite": {"type": "boolean"},
        "account_number": {"type": ["integer", "null"], "minimum": 0},
        "sequence": {"type": ["integer", "null"], "minimum": 0},
        "output_document": {"type": ["string", "null"], "minLength": 1},
        "chain_id": {"type": ["string", "null"]},
        "node": {"type": ["string", "null"], "minLength": 1},
    },
}


@dataclass(frozen=True)
class SignConfig:
    """Options for one signing run.

    Attributes:
        signing_identity: Keyring name or address of the signing key.
        multisig: Keyring name or address of the multisig key to sign
            on behalf of. None for single-signer runs.
        offline: Never contact a node.
        signature_only: Emit signatures only (forced on for multisig).
        overwrite: Replace a prior signature from the same key.
        account_number: Explicit account number (offline / multisig).
        sequence: Explicit starting sequence (offline / multisig).
        output_document: Output file path; None means standard output.
        chain_id: Chain identifier mixed into the sign bytes. None keeps
            each document's own chain_id.
        node: JSON-RPC endpoint for online account lookups.
    """

    signing_identity: str
    multisig: str | None = None
    offline: bool = False
    signature_only: bool = False
    overwrite: bool = False
    account_number: int | None = None
    sequence: int | None = None
    output_document: str | None = None
    chain_id: str | None = None
    node: str | None = None

    @property
    def effective_signature_only(self) -> bool:
        """Multisig runs only ever emit one member's contribution."""
        return self.signature_only or self.multisig is not None

    def validate(self) -> None:
        """Cross-field checks that the schema cannot express.

        Raises:
            ConfigError: On an inconsistent combination.
        """
        if not self.signing_identity:
            raise ConfigError("signing_identity is required")
        if self.offline and self.multisig is None:
            if self.account_number is None or self.sequence is None:
                raise ConfigError(
                    "offline signing requires explicit account_number and sequence"
                )

    def to_dict(self) -> dict[str, object]:
        return {
            "signing_identity": self.signing_identity,
            "multisig": self.multisig,
            "offline": self.offline,
            "signature_only": self.signature_only,
            "overwrite": self.overwrite,
            "account_number": self.account_number,
            "sequence": self.sequence,
            "output_document": self.output_document,
            "chain_id": self.chain_id,
            "node": self.node,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SignConfig:
        """Validate a raw option mapping and build a SignConfig.

        Raises:
            ConfigError: On schema violation or inconsistent options.
        """
        try:
            jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as exc:
            location = ".".join(str(p) for p in exc.absolute_path) or "<root>"
            raise ConfigError(f"invalid option {location}: {exc.message}") from exc

        config = cls(**data)
        config.validate()
        return config
