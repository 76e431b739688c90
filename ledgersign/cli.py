"""
ledgersign command line.

    ledgersign sign FILE        sign one transaction document
    ledgersign sign-batch FILE  sign newline-delimited transactions

FILE may be "-" for standard input. Exit status is 0 on success and 1
on any signing-run error, after all output produced so far is flushed.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from ledgersign.config import SignConfig
from ledgersign.errors import LedgerSignError
from ledgersign.keyring import MemoryKeyring
from ledgersign.orchestrator import sign_batch, sign_single

logger = logging.getLogger("ledgersign")


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("file", help="input file, or '-' for stdin")
    parser.add_argument(
        "--from", dest="signing_identity", required=True,
        help="name or address of the signing key",
    )
    parser.add_argument(
        "--multisig",
        help="name or address of the multisig key to sign on behalf of "
        "(implies --signature-only)",
    )
    parser.add_argument(
        "--offline", action="store_true",
        help="do not query a node; requires --account-number and --sequence",
    )
    parser.add_argument("--account-number", type=int)
    parser.add_argument("--sequence", type=int)
    parser.add_argument(
        "--output-document",
        help="write output to this file instead of stdout",
    )
    parser.add_argument("--chain-id")
    parser.add_argument("--node", help="JSON-RPC endpoint for account lookups")
    parser.add_argument(
        "--keyring-dir", required=True,
        help="directory of <name>.pem and <name>.multisig.json key files",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ledgersign", description="Offline transaction signing")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    sub = parser.add_subparsers(dest="command", required=True)

    sign = sub.add_parser("sign", help="sign a single transaction document")
    _add_common_flags(sign)
    sign.add_argument(
        "--signature-only", action="store_true",
        help="print only the generated signatures",
    )
    sign.add_argument(
        "--overwrite", action="store_true",
        help="replace an existing signature from the same key instead of appending",
    )

    batch = sub.add_parser("sign-batch", help="sign a newline-delimited batch")
    _add_common_flags(batch)
    batch.add_argument(
        "--signature-only", action=argparse.BooleanOptionalAction, default=True,
        help="print only the generated signatures (default: on)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> SignConfig:
    """Build a validated SignConfig from parsed flags."""
    options: dict[str, Any] = {
        "signing_identity": args.signing_identity,
        "multisig": args.multisig,
        "offline": args.offline,
        "signature_only": args.signature_only,
        "overwrite": getattr(args, "overwrite", False),
        "output_document": args.output_document,
        "chain_id": args.chain_id,
        "node": args.node,
    }
    # Explicit values only count offline or for multisig runs.
    if args.offline or args.multisig:
        options["account_number"] = args.account_number
        options["sequence"] = args.sequence
    return SignConfig.from_dict(options)


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _run(args: argparse.Namespace) -> None:
    config = config_from_args(args)
    keyring = MemoryKeyring.from_directory(args.keyring_dir)

    if args.command == "sign":
        document = sys.stdin.read() if args.file == "-" else _read_text(args.file)
        await sign_single(document, config, keyring)
        return

    if args.file == "-":
        await sign_batch(sys.stdin, config, keyring)
        return
    with open(args.file, encoding="utf-8") as infile:
        await sign_batch(infile, config, keyring)


def _read_text(path: str) -> str:
    with open(path, encoding="utf-8") as fp:
        return fp.read()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    try:
        asyncio.run(_run(args))
    except LedgerSignError as exc:
        logger.error("%s", exc)
        for note in getattr(exc, "__notes__", []):
            logger.error("%s", note)
        return 1
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    return 0
