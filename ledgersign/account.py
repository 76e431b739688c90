"""
Account query client: the network boundary for online signing.

Only used when a run is online and signs with a single key: the account
number and starting sequence are fetched once, before any transaction
is processed. There is no retry loop; any failure is an
AccountLookupError and the batch never starts.

Response parsing targets the node's JSON-RPC ``account_info`` method:
    - success: {"result": {"status": "success",
                           "account_data": {"account_number": 12,
                                            "sequence": 7, ...}}}
    - error:   {"result": {"status": "error", "error": "actNotFound",
                           "error_message": "..."}}
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from ledgersign.errors import AccountLookupError

logger = logging.getLogger(__name__)

_request_ids = itertools.count(1)


# =====================================================================
# Transport seam
# =====================================================================


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Posts one JSON-RPC request to a node and returns the decoded reply.

    Any exception raised here is reported by the account client as an
    AccountLookupError chained to the original failure.
    """

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        ...


class HttpxTransport:
    """JsonRpcTransport over httpx.AsyncClient.

    httpx is imported on first use, so offline runs never load it.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        import httpx

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            body = response.json()
        if not isinstance(body, dict):
            raise ValueError(
                f"node reply is a JSON {type(body).__name__}, expected an object"
            )
        return body


# =====================================================================
# Account client
# =====================================================================


@dataclass(frozen=True)
class AccountInfo:
    """On-ledger state of an account at lookup time."""

    address: str
    account_number: int
    sequence: int


@runtime_checkable
class AccountClient(Protocol):
    """Interface for resolving an account's number and sequence."""

    async def get_account(self, address: str) -> AccountInfo:
        """Fetch account state.

        Raises:
            AccountLookupError: On any failure. Never returns partial data.
        """
        ...


class JsonRpcAccountClient:
    """AccountClient backed by a node's JSON-RPC endpoint.

    Args:
        url: The node's JSON-RPC endpoint (e.g. "http://localhost:26657").
        transport: Injectable transport. Defaults to HttpxTransport.
    """

    def __init__(
        self,
        url: str,
        transport: JsonRpcTransport | None = None,
    ) -> None:
        self._url = url
        self._transport = transport or HttpxTransport()

    @property
    def url(self) -> str:
        return self._url

    async def get_account(self, address: str) -> AccountInfo:
        payload = {
            "method": "account_info",
            "params": [{"account": address}],
            "id": next(_request_ids),
        }
        logger.debug("Querying account %s at %s", address, self._url)
        try:
            response = await self._transport.post_json(self._url, payload)
        except Exception as exc:
            raise AccountLookupError(
                f"account query for {address} failed: {exc}"
            ) from exc
        return _parse_account_response(address, response)


# =====================================================================
# Response parsing (pure, no I/O)
# =====================================================================


def _parse_account_response(address: str, response: Any) -> AccountInfo:
    if not isinstance(response, dict):
        raise AccountLookupError(
            f"account query for {address}: response is not a JSON object"
        )
    result = response.get("result")
    if not isinstance(result, dict):
        raise AccountLookupError(f"account query for {address}: no result in response")

    if result.get("status") == "error":
        detail = result.get("error_message") or result.get("error", "unknown server error")
        raise AccountLookupError(f"account query for {address}: {detail}")

    data = result.get("account_data")
    if not isinstance(data, dict):
        raise AccountLookupError(f"account query for {address}: no account_data in response")

    return AccountInfo(
        address=address,
        account_number=_uint_field(address, data, "account_number"),
        sequence=_uint_field(address, data, "sequence"),
    )


def _uint_field(address: str, data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    # Some nodes render 64-bit integers as decimal strings.
    if isinstance(value, str) and value.isascii() and value.isdigit():
        value = int(value)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise AccountLookupError(
            f"account query for {address}: {key} missing or invalid: {value!r}"
        )
    return value
