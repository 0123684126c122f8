"""
Custodial key material: wallet creation, address derivation, transaction signing.

Wallets are BIP-39 mnemonics derived at the TRON BIP-44 path. TRON shares
secp256k1 and the keccak account id with Ethereum; the address is the
account id prefixed with 0x41 in base58check.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any

from eth_account import Account
from eth_keys import keys

from tron_custody.tron_client.normalizer import from_account_id

TRON_DERIVATION_PATH = "m/44'/195'/0'/0/0"
# TRON signatures carry v as recovery id + 27
_RECOVERY_OFFSET = 27

Account.enable_unaudited_hdwallet_features()


@dataclass(frozen=True)
class WalletCredentials:
    """A freshly generated custodial wallet. private_key is hex without 0x."""

    address: str
    mnemonic: str
    public_key: str
    private_key: str
    derivation_path: str = TRON_DERIVATION_PATH

    def secret_payload(self) -> dict[str, str]:
        """JSON payload stored encrypted in the wallet-secret table."""
        return {
            "mnemonic": self.mnemonic,
            "publicKey": self.public_key,
            "privateKey": self.private_key,
            "derivationPath": self.derivation_path,
        }


def _strip_0x(value: str) -> str:
    value = value.strip()
    return value[2:] if value[:2].lower() == "0x" else value


def _private_key(private_key_hex: str) -> keys.PrivateKey:
    try:
        raw = bytes.fromhex(_strip_0x(private_key_hex))
    except (TypeError, ValueError) as e:
        raise ValueError("Private key is not valid hex") from e
    if len(raw) != 32:
        raise ValueError("Private key must be 32 bytes")
    return keys.PrivateKey(raw)


def address_from_private_key(private_key_hex: str) -> str:
    """Derive the base58check TRON address controlled by a hex private key."""
    public_key = _private_key(private_key_hex).public_key
    return from_account_id(public_key.to_canonical_address())


def create_wallet() -> WalletCredentials:
    """Generate a new mnemonic and derive the TRON account at m/44'/195'/0'/0/0."""
    account, mnemonic = Account.create_with_mnemonic(account_path=TRON_DERIVATION_PATH)
    private_key = _private_key(account.key.hex())
    return WalletCredentials(
        address=from_account_id(private_key.public_key.to_canonical_address()),
        mnemonic=mnemonic,
        public_key=private_key.public_key.to_compressed_bytes().hex(),
        private_key=private_key.to_bytes().hex(),
        derivation_path=TRON_DERIVATION_PATH,
    )


def sign_transaction(transaction: dict[str, Any], private_key_hex: str) -> dict[str, Any]:
    """
    Return a copy of transaction with a recoverable secp256k1 signature over txID appended.

    txID must be sha256(raw_data_hex); a mismatch raises ValueError so a tampered
    transaction is never signed.
    """
    tx_id = transaction.get("txID") or ""
    raw_data_hex = transaction.get("raw_data_hex") or ""
    if not tx_id or not raw_data_hex:
        raise ValueError("Transaction is missing txID or raw_data_hex")
    if hashlib.sha256(bytes.fromhex(raw_data_hex)).hexdigest() != tx_id.lower():
        raise ValueError("Transaction txID does not match raw_data_hex")

    signature = _private_key(private_key_hex).sign_msg_hash(bytes.fromhex(tx_id))
    sig_bytes = (
        signature.r.to_bytes(32, "big")
        + signature.s.to_bytes(32, "big")
        + bytes([signature.v + _RECOVERY_OFFSET])
    )
    signed = dict(transaction)
    signed["signature"] = list(transaction.get("signature") or []) + [sig_bytes.hex()]
    return signed
