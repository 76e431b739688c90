"""
Account number and sequence tracking for one signing run.

The tracker holds a single (account_number, sequence) pair. The account
number is fixed once resolved; the sequence advances by exactly one per
successfully signed transaction, so a clean batch of N transactions
starting at s0 is signed with s0, s0+1, ..., s0+N-1.

Resolution rules (``resolve_tracker``):
    - multisig target: account number and sequence default to 0 unless
      supplied. The final sequence is stamped when member signatures are
      combined, so no lookup is done even online.
    - offline, single signer: both values must be supplied explicitly.
    - online, single signer: one lookup via the AccountClient using the
      signer's address. Supplied values are ignored.
"""

from __future__ import annotations

import logging

from ledgersign.account import AccountClient
from ledgersign.config import SignConfig
from ledgersign.errors import ConfigError

logger = logging.getLogger(__name__)


class SequenceTracker:
    """Mutable sequence counter bound to one account number."""

    def __init__(self, account_number: int, sequence: int) -> None:
        if account_number < 0 or sequence < 0:
            raise ValueError("account_number and sequence must be non-negative")
        self._account_number = account_number
        self._sequence = sequence

    @property
    def account_number(self) -> int:
        return self._account_number

    @property
    def sequence(self) -> int:
        return self._sequence

    def current(self) -> tuple[int, int]:
        return self._account_number, self._sequence

    def advance(self) -> int:
        """Move to the next sequence and return it."""
        self._sequence += 1
        return self._sequence

    def __repr__(self) -> str:
        return (
            f"SequenceTracker(account_number={self._account_number}, "
            f"sequence={self._sequence})"
        )


async def resolve_tracker(
    config: SignConfig,
    signer_address: str,
    client: AccountClient | None,
) -> SequenceTracker:
    """Build the tracker for a run according to the resolution rules.

    Args:
        config: Validated signing options.
        signer_address: Address of the single signing key.
        client: Account client for online runs. Ignored otherwise.

    Raises:
        ConfigError: Offline single-signer run without explicit values,
            or online single-signer run with no client.
        AccountLookupError: The online lookup failed.
    """
    if config.multisig is not None:
        return SequenceTracker(config.account_number or 0, config.sequence or 0)

    if config.offline:
        if config.account_number is None or config.sequence is None:
            raise ConfigError(
                "offline signing requires explicit account_number and sequence"
            )
        return SequenceTracker(config.account_number, config.sequence)

    if client is None:
        raise ConfigError("online signing requires a node endpoint or account client")

    if config.account_number is not None or config.sequence is not None:
        logger.info("Ignoring supplied account_number/sequence for online run")
    info = await client.get_account(signer_address)
    logger.info(
        "Resolved account %s: account_number=%d sequence=%d",
        info.address,
        info.account_number,
        info.sequence,
    )
    return SequenceTracker(info.account_number, info.sequence)
