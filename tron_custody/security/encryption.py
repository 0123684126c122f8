"""
Symmetric encryption of wallet secrets (Fernet).

Secrets are stored as a Fernet token of a JSON payload
{"privateKey", "publicKey", "mnemonic", "derivationPath"}.
"""

from __future__ import annotations

import json
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from tron_custody.core.exceptions import ConfigError, DecryptError


class SecretCipher:
    """Encrypts and decrypts wallet secret payloads with one Fernet key."""

    def __init__(self, key: str | bytes) -> None:
        if not key:
            raise ConfigError("WALLET_ENCRYPTION_KEY must be set")
        try:
            self._fernet = Fernet(key)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid wallet encryption key: {e}") from e

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    def encrypt(self, payload: dict[str, Any]) -> str:
        return self._fernet.encrypt(json.dumps(payload).encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str) -> dict[str, Any]:
        """Return the decrypted JSON payload; DecryptError if the token or JSON is bad."""
        if not ciphertext:
            raise DecryptError("Wallet secret is empty")
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as e:
            raise DecryptError("Wallet secret could not be decrypted") from e
        try:
            payload = json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise DecryptError("Decrypted wallet secret is not JSON") from e
        if not isinstance(payload, dict):
            raise DecryptError("Decrypted wallet secret is not an object")
        return payload
