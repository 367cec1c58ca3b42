"""
OAuth token encryption

AES-256-CBC with PKCS7 padding and a random 16-byte IV per value.
Stored format: ``<iv hex>:<ciphertext hex>``.
"""

import base64
import binascii
import logging
import os
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..config import OAUTH_TOKEN_ENCRYPTION_KEY

logger = logging.getLogger(__name__)

IV_LENGTH = 16
KEY_LENGTH = 32


class EncryptionKeyError(RuntimeError):
    """Missing or malformed encryption key"""


class TokenDecryptionError(ValueError):
    """Stored value is not a valid encrypted token"""


class TokenCipher:
    def __init__(self, key: bytes):
        if len(key) != KEY_LENGTH:
            raise EncryptionKeyError(f"Encryption key must be {KEY_LENGTH} bytes, got {len(key)}")
        self._key = key

    @classmethod
    def from_base64(cls, encoded_key: Optional[str]) -> "TokenCipher":
        if not encoded_key:
            raise EncryptionKeyError("OAUTH_TOKEN_ENCRYPTION_KEY is not configured")
        try:
            key = base64.b64decode(encoded_key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EncryptionKeyError("OAUTH_TOKEN_ENCRYPTION_KEY is not valid base64") from e
        return cls(key)

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return f"{iv.hex()}:{ciphertext.hex()}"

    def decrypt(self, token: str) -> str:
        iv_hex, sep, payload_hex = token.partition(":")
        if not sep:
            raise TokenDecryptionError("Invalid encrypted token format")
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(payload_hex)
        except ValueError as e:
            raise TokenDecryptionError("Invalid encrypted token format") from e
        if len(iv) != IV_LENGTH:
            raise TokenDecryptionError("Invalid initialization vector")

        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        try:
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except ValueError as e:
            raise TokenDecryptionError("Token could not be decrypted") from e


def get_token_cipher() -> TokenCipher:
    """Cipher built from the process-wide key"""
    return TokenCipher.from_base64(OAUTH_TOKEN_ENCRYPTION_KEY)
