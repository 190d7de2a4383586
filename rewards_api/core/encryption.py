"""Encryption helpers for access tokens kept in the session store."""

import base64
import hashlib
from functools import lru_cache

from cryptography.fernet import Fernet

from rewards_api.core.config import settings


@lru_cache(maxsize=1)
def _get_fernet() -> Fernet:
    """Get Fernet instance from the encryption key setting.

    A 32-byte key is derived from ``ENCRYPTION_KEY`` with SHA-256 and
    base64-encoded. Rotating the key invalidates every stored session, so all
    shops go through OAuth again.
    """
    key_bytes = hashlib.sha256(settings.encryption_key.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(key_bytes))


def encrypt_token(token: str) -> str:
    """Encrypt an access token."""
    return _get_fernet().encrypt(token.encode()).decode()


def decrypt_token(encrypted: str) -> str:
    """Decrypt an access token produced by ``encrypt_token``."""
    return _get_fernet().decrypt(encrypted.encode()).decode()
