"""
Custody event log.

Deposit detection, scanner progress, fee estimates and withdrawal outcomes are
logged as one structured record per event on stderr, so the CLI can keep
stdout for its JSON replies. Each record names what happened in event_type
(deposit_processed, withdrawal_failed, scan_block_error, ...) and carries the
wallet, address and tx_hash it concerns as plain keys.

Environment:
    LOG_LEVEL   minimum level, default INFO
    DEBUG_TRON  "true" lowers the level to DEBUG for node and scan tracing
    LOG_FORMAT  "json" (default) or anything else for the console renderer

This module imports nothing from tron_custody; every other package imports it.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

CHAIN_FIELD = "TRON"


def _level_from_env() -> int:
    if os.getenv("DEBUG_TRON", "").strip().lower() == "true":
        return logging.DEBUG
    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    return getattr(logging, name, logging.INFO)


LOG_LEVEL_VALUE = _level_from_env()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _stamp_utc(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Record time in UTC; a caller-supplied timestamp (e.g. block time) wins."""
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _custody_fields(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Expose the structlog event as event_type and tag the record with its chain."""
    if "event_type" not in event_dict and "event" in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    event_dict.setdefault("chain", CHAIN_FIELD)
    return event_dict


def configure_structlog() -> None:
    """Install the custody processor chain; called once when this module loads."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _stamp_utc,
        _custody_fields,
    ]
    if LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Logger for one custody module, tagged with logger=name.

        logger = get_logger(__name__)
        logger.info("withdrawal_completed", wallet_id=w, tx_hash=h, amount_sun=n)

    renders as {"event_type": "withdrawal_completed", "chain": "TRON",
    "wallet_id": ..., "tx_hash": ..., "level": "info", ...}.
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_wallet(wallet_id: str) -> structlog.BoundLogger:
    """Logger whose records all carry wallet_id; used by per-wallet CLI commands."""
    return get_logger("tron_custody").bind(wallet_id=wallet_id)
