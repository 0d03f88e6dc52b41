"""AES-256-GCM secret box for the stored API key.

Wire format: ``base64(iv || tag || ciphertext)`` with a 12-byte IV and a
16-byte tag.
"""

from __future__ import annotations

import base64
import binascii
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from fastapi_myparcel.exceptions import ConfigurationError

IV_LENGTH = 12
TAG_LENGTH = 16
KEY_LENGTH = 32

_HEX_KEY = re.compile(r"^[0-9a-fA-F]{64}$")


def load_encryption_key(raw: str | None) -> bytes:
    """Decode the externally supplied key (hex or base64) to 32 bytes."""
    if not raw:
        raise ConfigurationError(
            "MYPARCEL_SETTINGS_ENCRYPTION_KEY is required to store "
            "MyParcel settings"
        )

    if _HEX_KEY.match(raw):
        key = bytes.fromhex(raw)
    else:
        try:
            key = base64.b64decode(raw)
        except (binascii.Error, ValueError):
            key = b""

    if len(key) != KEY_LENGTH:
        raise ConfigurationError(
            "MYPARCEL_SETTINGS_ENCRYPTION_KEY must be 32 bytes (base64 or hex)"
        )
    return key


def encrypt_secret(value: str, key: bytes) -> str:
    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(key).encrypt(iv, value.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return base64.b64encode(iv + tag + ciphertext).decode("ascii")


def decrypt_secret(payload: str, key: bytes) -> str:
    try:
        raw = base64.b64decode(payload)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationError("Invalid encrypted payload") from exc

    if len(raw) < IV_LENGTH + TAG_LENGTH:
        raise ConfigurationError("Invalid encrypted payload")

    iv = raw[:IV_LENGTH]
    tag = raw[IV_LENGTH : IV_LENGTH + TAG_LENGTH]
    ciphertext = raw[IV_LENGTH + TAG_LENGTH :]
    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
    except InvalidTag as exc:
        raise ConfigurationError(
            "Stored MyParcel API key cannot be decrypted with the "
            "configured encryption key"
        ) from exc
    return plaintext.decode("utf-8")


class AESGCMSecretBox:
    """Secret store bound to a key string from configuration.

    The key is decoded on every call so a missing or malformed key only
    fails the operations that actually need it.
    """

    def __init__(self, raw_key: str | None) -> None:
        self.raw_key = raw_key

    def encrypt(self, plaintext: str) -> str:
        return encrypt_secret(plaintext, load_encryption_key(self.raw_key))

    def decrypt(self, ciphertext: str) -> str:
        return decrypt_secret(ciphertext, load_encryption_key(self.raw_key))
