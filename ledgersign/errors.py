"""
Error taxonomy for offline transaction signing.

Every failure a signing run can surface is a subclass of LedgerSignError.
The batch never retries: the first error is terminal and propagates to the
caller, with whatever output was already written left intact.

    - DecodeError: malformed transaction record in the input stream.
    - AccountLookupError: online account number / sequence query failed.
    - KeyNotFoundError: identity reference not present in the keyring.
    - MultisigMembershipError: signer is not a member of the multisig key.
    - SigningError: the signer capability failed.
    - OutputError: opening, writing, or closing the output sink failed.
    - ConfigError: invalid option combination.
"""

from __future__ import annotations


class LedgerSignError(Exception):
    """Base class for all signing-run failures."""


class DecodeError(LedgerSignError):
    """An input line could not be decoded into an unsigned transaction.

    Attributes:
        line_number: 1-based line number of the offending record.
    """

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class AccountLookupError(LedgerSignError):
    """Account number and sequence could not be resolved online."""


class KeyNotFoundError(LedgerSignError):
    """A name or address did not resolve to a key in the keyring."""


class MultisigMembershipError(LedgerSignError):
    """The signing key is not a member of the target multisig key."""


class SigningError(LedgerSignError):
    """The signer capability failed to produce a signature."""


class OutputError(LedgerSignError):
    """The output sink could not be opened, written, or closed."""


class ConfigError(LedgerSignError):
    """The signing options are invalid or inconsistent."""
