"""
Tests for wallet creation, address derivation, signing and secret encryption.
"""

from __future__ import annotations

import hashlib

import pytest
from eth_keys import keys

from conftest import PRIVATE_KEY, make_unsigned_tx
from tron_custody.core.exceptions import ConfigError, DecryptError
from tron_custody.security.encryption import SecretCipher
from tron_custody.tron_client.keys import (
    TRON_DERIVATION_PATH,
    address_from_private_key,
    create_wallet,
    sign_transaction,
)
from tron_custody.tron_client.normalizer import is_valid_address


def test_create_wallet_derives_consistent_address():
    wallet = create_wallet()
    assert wallet.address.startswith("T")
    assert is_valid_address(wallet.address)
    assert len(wallet.mnemonic.split()) == 12
    assert wallet.derivation_path == TRON_DERIVATION_PATH
    assert address_from_private_key(wallet.private_key) == wallet.address
    assert len(bytes.fromhex(wallet.public_key)) == 33

    payload = wallet.secret_payload()
    assert set(payload) == {"mnemonic", "publicKey", "privateKey", "derivationPath"}


def test_create_wallet_is_random():
    assert create_wallet().address != create_wallet().address


def test_address_from_private_key_accepts_0x_and_rejects_garbage():
    assert address_from_private_key("0x" + PRIVATE_KEY) == address_from_private_key(PRIVATE_KEY)
    with pytest.raises(ValueError):
        address_from_private_key("zz")
    with pytest.raises(ValueError):
        address_from_private_key("ab" * 16)


def test_sign_transaction_appends_recoverable_signature():
    tx = make_unsigned_tx("0a0212342208")
    signed = sign_transaction(tx, PRIVATE_KEY)

    assert "signature" not in tx
    assert len(signed["signature"]) == 1
    sig = bytes.fromhex(signed["signature"][0])
    assert len(sig) == 65
    assert sig[64] in (27, 28)

    signature = keys.Signature(sig[:64] + bytes([sig[64] - 27]))
    recovered = signature.recover_public_key_from_msg_hash(bytes.fromhex(tx["txID"]))
    assert recovered == keys.PrivateKey(bytes.fromhex(PRIVATE_KEY)).public_key


def test_sign_refuses_mismatched_txid():
    tx = make_unsigned_tx()
    tx["txID"] = hashlib.sha256(b"something else").hexdigest()
    with pytest.raises(ValueError):
        sign_transaction(tx, PRIVATE_KEY)
    with pytest.raises(ValueError):
        sign_transaction({"txID": "ab"}, PRIVATE_KEY)


def test_cipher_round_trip_and_errors():
    cipher = SecretCipher(SecretCipher.generate_key())
    token = cipher.encrypt({"privateKey": PRIVATE_KEY})
    assert PRIVATE_KEY not in token
    assert cipher.decrypt(token) == {"privateKey": PRIVATE_KEY}

    other = SecretCipher(SecretCipher.generate_key())
    with pytest.raises(DecryptError):
        other.decrypt(token)
    with pytest.raises(DecryptError):
        cipher.decrypt("")


def test_cipher_rejects_bad_keys():
    with pytest.raises(ConfigError):
        SecretCipher("")
    with pytest.raises(ConfigError):
        SecretCipher("not-a-fernet-key")
