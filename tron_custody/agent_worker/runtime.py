"""
Command-line entrypoint for the TRON custody service.

One-off chain queries (balance, transactions, activation, fee estimate),
wallet creation, and a long-running deposit watch for a single wallet.
Results are printed as JSON on stdout; logs go to stderr via structlog.

Usage: python -m tron_custody.agent_worker.runtime <command> [args]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from typing import Any

from tron_custody.config import get_settings
from tron_custody.core.exceptions import CustodyError
from tron_custody.custody_logging import bind_wallet, get_logger
from tron_custody.service import TronCustodyService
from tron_custody.tron_listener.models import CustodialWallet

logger = get_logger(__name__)


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


async def _create_wallet(service: TronCustodyService, args: argparse.Namespace) -> int:
    credentials = service.create_wallet()
    out: dict[str, Any] = {
        "address": credentials.address,
        "publicKey": credentials.public_key,
        "derivationPath": credentials.derivation_path,
    }
    if args.wallet_id:
        await service.store_wallet_secret(args.wallet_id, credentials)
        out["walletId"] = args.wallet_id
        out["stored"] = True
    else:
        # Not persisted anywhere: the mnemonic is the only way back to the key
        out["mnemonic"] = credentials.mnemonic
    _emit(out)
    return 0


async def _balance(service: TronCustodyService, args: argparse.Namespace) -> int:
    _emit({"address": args.address, "balance": await service.get_balance(args.address)})
    return 0


async def _transactions(service: TronCustodyService, args: argparse.Namespace) -> int:
    transactions = await service.fetch_transactions(args.address)
    _emit([tx.to_dict() for tx in transactions])
    return 0


async def _activated(service: TronCustodyService, args: argparse.Namespace) -> int:
    activated = await service.is_address_activated(args.address)
    _emit({"address": args.address, "activated": activated})
    return 0


async def _estimate_fee(service: TronCustodyService, args: argparse.Namespace) -> int:
    fee = await service.estimate_fee(args.from_address, args.to_address, args.amount_sun)
    _emit({"from": args.from_address, "to": args.to_address, "amountSun": args.amount_sun, "feeSun": fee})
    return 0


async def _watch(service: TronCustodyService, args: argparse.Namespace) -> int:
    """Watch one address until a deposit is handled or SIGTERM/Ctrl-C arrives."""
    log = bind_wallet(args.wallet_id)
    wallet = CustodialWallet(id=args.wallet_id, user_id=args.user_id)
    await service.monitor_deposits(wallet, args.address)
    task = service.monitor.session_task(wallet.id, args.address)
    if task is None:
        log.warning("watch_session_not_started", address=args.address)
        return 1

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGTERM, task.cancel)
    except (NotImplementedError, RuntimeError):
        # Windows or unsupported
        pass

    log.info("watch_started", address=args.address)
    try:
        await task
    except asyncio.CancelledError:
        log.info("watch_cancelled", address=args.address)
    return 0


_COMMANDS = {
    "create-wallet": _create_wallet,
    "balance": _balance,
    "transactions": _transactions,
    "activated": _activated,
    "estimate-fee": _estimate_fee,
    "watch": _watch,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tron-custody",
        description="TRON custodial deposit watcher and withdrawal helper.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create-wallet", help="Generate a new custodial wallet.")
    create.add_argument(
        "--wallet-id",
        default=None,
        help="Encrypt and store the key under this wallet id (needs WALLET_ENCRYPTION_KEY).",
    )

    for name, help_text in (
        ("balance", "Print the TRX balance of an address."),
        ("transactions", "Print transfers into an address (cached)."),
        ("activated", "Check whether an address exists on chain."),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("address", help="TRON address (base58 or 41-prefixed hex)")

    fee = sub.add_parser("estimate-fee", help="Estimate the bandwidth fee of a TRX transfer in Sun.")
    fee.add_argument("from_address", metavar="FROM")
    fee.add_argument("to_address", metavar="TO")
    fee.add_argument("amount_sun", metavar="AMOUNT_SUN", type=int)

    watch = sub.add_parser("watch", help="Watch an address for a deposit to a wallet.")
    watch.add_argument("wallet_id")
    watch.add_argument("user_id")
    watch.add_argument("address")
    return parser


async def run_command(args: argparse.Namespace, service: TronCustodyService | None = None) -> int:
    """Run one parsed command against a started service; returns the exit code."""
    service = service or TronCustodyService(get_settings())
    handler = _COMMANDS[args.command]
    async with service:
        return await handler(service, args)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run_command(args))
    except KeyboardInterrupt:
        logger.info("runtime_interrupted", command=args.command)
        return 0
    except CustodyError as e:
        logger.error("runtime_command_failed", command=args.command, error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
