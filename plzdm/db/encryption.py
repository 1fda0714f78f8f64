"""Fernet encryption helpers for stored X access tokens."""

from cryptography.fernet import Fernet

from plzdm.config import get_settings


def _get_fernet() -> Fernet:
    settings = get_settings()
    return Fernet(settings.fernet_key.encode())


def encrypt(plaintext: str) -> str:
    """Encrypt a string and return the ciphertext as a UTF-8 string."""
    return _get_fernet().encrypt(plaintext.encode()).decode()


def decrypt(ciphertext: str) -> str:
    """Decrypt a Fernet ciphertext string back to plaintext."""
    return _get_fernet().decrypt(ciphertext.encode()).decode()


def encrypt_token_pair(key: str, secret: str) -> tuple[str, str]:
    """Encrypt an OAuth 1.0a access-token key/secret pair for storage."""
    fernet = _get_fernet()
    return fernet.encrypt(key.encode()).decode(), fernet.encrypt(secret.encode()).decode()


def decrypt_token_pair(key: str, secret: str) -> tuple[str, str]:
    fernet = _get_fernet()
    return fernet.decrypt(key.encode()).decode(), fernet.decrypt(secret.encode()).decode()
