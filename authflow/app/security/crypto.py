# authflow/app/security/crypto.py
"""
Symmetric encryption for secrets stored at rest (the TOTP seed).

Format: ``<iv hex>:<ciphertext hex>:<tag hex>``

- AES-256-CBC with PKCS7 padding, fresh 16-byte IV per call
- tag = HMAC-SHA256(mac_key, iv || ciphertext), checked before decrypting
- mac_key is derived from the encryption key, so one configured key
  covers both operations
"""
import os

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives import hmac as crypto_hmac
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.exceptions import InvalidSignature

KEY_LENGTH = 32
IV_LENGTH = 16


class DecryptionError(Exception):
    """Ciphertext is malformed, was tampered with, or belongs to another key."""


def _derive_mac_key(key: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(b"authflow-secret-mac:")
    digest.update(key)
    return digest.finalize()


class SecretCodec:
    def __init__(self, key: str | bytes):
        key_bytes = key.encode("utf-8") if isinstance(key, str) else key
        if len(key_bytes) != KEY_LENGTH:
            raise ValueError(f"Encryption key must be exactly {KEY_LENGTH} bytes")
        self._key = key_bytes
        self._mac_key = _derive_mac_key(key_bytes)

    def _tag(self, iv: bytes, ciphertext: bytes) -> crypto_hmac.HMAC:
        mac = crypto_hmac.HMAC(self._mac_key, hashes.SHA256())
        mac.update(iv)
        mac.update(ciphertext)
        return mac

    def encrypt(self, plaintext: str) -> str:
        iv = os.urandom(IV_LENGTH)

        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        tag = self._tag(iv, ciphertext).finalize()
        return ":".join((iv.hex(), ciphertext.hex(), tag.hex()))

    def decrypt(self, token: str) -> str:
        try:
            iv_hex, ciphertext_hex, tag_hex = token.split(":")
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ciphertext_hex)
            tag = bytes.fromhex(tag_hex)
        except (AttributeError, ValueError) as e:
            raise DecryptionError("Malformed ciphertext") from e

        if len(iv) != IV_LENGTH or not ciphertext or len(ciphertext) % IV_LENGTH:
            raise DecryptionError("Malformed ciphertext")

        try:
            self._tag(iv, ciphertext).verify(tag)
        except InvalidSignature as e:
            raise DecryptionError("Ciphertext authentication failed") from e

        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        try:
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            raise DecryptionError("Could not recover plaintext") from e
