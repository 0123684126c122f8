from tron_custody.security.encryption import SecretCipher

__all__ = ["SecretCipher"]
