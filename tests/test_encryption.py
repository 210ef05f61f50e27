import base64

import pytest

from authormity.core.errors import ConfigError, CryptoError
from authormity.utils.encryption import NONCE_LENGTH, TAG_LENGTH, decrypt_token, encrypt_token


def _flip_bit(blob: str, index: int) -> str:
    raw = bytearray(base64.b64decode(blob))
    raw[index] ^= 0x01
    return base64.b64encode(bytes(raw)).decode()


def test_round_trip():
    assert decrypt_token(encrypt_token("AQXdSP_access_token")) == "AQXdSP_access_token"


def test_same_plaintext_encrypts_differently():
    assert encrypt_token("token") != encrypt_token("token")


def test_blob_layout_is_nonce_tag_ciphertext():
    raw = base64.b64decode(encrypt_token("abc"))
    assert len(raw) == NONCE_LENGTH + TAG_LENGTH + 3


@pytest.mark.parametrize("index", [0, NONCE_LENGTH, NONCE_LENGTH + TAG_LENGTH, -1])
def test_any_flipped_bit_fails_authentication(index):
    blob = encrypt_token("secret-token-value")
    raw_len = len(base64.b64decode(blob))
    with pytest.raises(CryptoError):
        decrypt_token(_flip_bit(blob, index % raw_len))


def test_truncated_blob_is_rejected():
    short = base64.b64encode(b"x" * (NONCE_LENGTH + TAG_LENGTH - 1)).decode()
    with pytest.raises(CryptoError, match="too short"):
        decrypt_token(short)


def test_non_base64_is_rejected():
    with pytest.raises(CryptoError):
        decrypt_token("not base64 !!")


def test_empty_input_is_rejected():
    with pytest.raises(CryptoError):
        encrypt_token("")
    with pytest.raises(CryptoError):
        decrypt_token("")


def test_missing_key(monkeypatch):
    monkeypatch.delenv("TOKEN_ENCRYPTION_KEY")
    with pytest.raises(ConfigError):
        encrypt_token("token")


@pytest.mark.parametrize("key", ["abcd" * 8, "zz" * 32])
def test_wrong_length_or_non_hex_key(monkeypatch, key):
    monkeypatch.setenv("TOKEN_ENCRYPTION_KEY", key)
    with pytest.raises(ConfigError):
        encrypt_token("token")


def test_wrong_key_cannot_decrypt(monkeypatch):
    blob = encrypt_token("token")
    monkeypatch.setenv("TOKEN_ENCRYPTION_KEY", "11" * 32)
    with pytest.raises(CryptoError):
        decrypt_token(blob)
