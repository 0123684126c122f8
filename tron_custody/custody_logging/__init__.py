"""
Structured logging for TRON custody.

JSON logs with timestamp, event_type, wallet_id, address and tx_hash.
Use get_logger() in every module for aggregation-friendly output.
"""

from tron_custody.custody_logging.logger import bind_wallet, get_logger

__all__ = ["bind_wallet", "get_logger"]
