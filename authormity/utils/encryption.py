"""
AES-256-GCM encryption for LinkedIn tokens at rest.
Blob layout (base64): nonce (16) || auth tag (16) || ciphertext.
"""
import base64
import binascii
import os
import secrets

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from authormity.core.errors import ConfigError, CryptoError

NONCE_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32


def get_encryption_key() -> bytes:
    key_hex = os.getenv("TOKEN_ENCRYPTION_KEY")
    if not key_hex:
        raise ConfigError("TOKEN_ENCRYPTION_KEY environment variable not set")
    try:
        key = bytes.fromhex(key_hex.strip())
    except ValueError:
        raise ConfigError("TOKEN_ENCRYPTION_KEY must be hex encoded")
    if len(key) != KEY_LENGTH:
        raise ConfigError(
            f"TOKEN_ENCRYPTION_KEY must be {KEY_LENGTH} bytes ({KEY_LENGTH * 2} hex chars). Got {len(key)} bytes."
        )
    return key


def encrypt_token(plaintext: str) -> str:
    if not plaintext or not isinstance(plaintext, str):
        raise CryptoError("Encryption input must be a non-empty string")
    aesgcm = AESGCM(get_encryption_key())
    nonce = secrets.token_bytes(NONCE_LENGTH)
    # AESGCM appends the tag to the ciphertext; store it up front instead
    sealed = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return base64.b64encode(nonce + tag + ciphertext).decode("ascii")


def decrypt_token(blob: str) -> str:
    if not blob or not isinstance(blob, str):
        raise CryptoError("Decryption input must be a non-empty string")
    key = get_encryption_key()
    try:
        raw = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError):
        raise CryptoError("Invalid ciphertext: not base64")
    # Reject blobs whose unused padding bits differ from what encrypt_token emits
    if base64.b64encode(raw).decode("ascii") != blob:
        raise CryptoError("Invalid ciphertext: non-canonical encoding")

    if len(raw) < NONCE_LENGTH + TAG_LENGTH:
        raise CryptoError("Invalid ciphertext: buffer too short")

    nonce = raw[:NONCE_LENGTH]
    tag = raw[NONCE_LENGTH:NONCE_LENGTH + TAG_LENGTH]
    ciphertext = raw[NONCE_LENGTH + TAG_LENGTH:]
    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag:
        raise CryptoError("Invalid ciphertext: authentication failed")
    return plaintext.decode("utf-8")
