import pytest
from pydantic import ValidationError as SettingsValidationError

from authflow.app.core.config import Settings
from authflow.app.security.crypto import DecryptionError, SecretCodec

KEY = "0123456789abcdef0123456789abcdef"
OTHER_KEY = "fedcba9876543210fedcba9876543210"


@pytest.fixture
def codec():
    return SecretCodec(KEY)


@pytest.mark.parametrize("plaintext", ["JBSWY3DPEHPK3PXPJBSWY3DPEHPK3PXP", "", "ü-ñ-✓", "x" * 100])
def test_round_trip(codec, plaintext):
    assert codec.decrypt(codec.encrypt(plaintext)) == plaintext


def test_output_is_three_hex_fields(codec):
    iv, ciphertext, tag = codec.encrypt("secret").split(":")
    assert len(bytes.fromhex(iv)) == 16
    assert len(bytes.fromhex(ciphertext)) % 16 == 0
    assert len(bytes.fromhex(tag)) == 32


def test_fresh_iv_per_call(codec):
    first = codec.encrypt("same")
    second = codec.encrypt("same")
    assert first != second
    assert first.split(":")[0] != second.split(":")[0]


def test_tampered_ciphertext_is_rejected(codec):
    iv, ciphertext, tag = codec.encrypt("JBSWY3DPEHPK3PXP").split(":")
    flipped = ("0" if ciphertext[0] != "0" else "1") + ciphertext[1:]
    with pytest.raises(DecryptionError):
        codec.decrypt(":".join((iv, flipped, tag)))


def test_foreign_key_is_rejected(codec):
    token = SecretCodec(OTHER_KEY).encrypt("JBSWY3DPEHPK3PXP")
    with pytest.raises(DecryptionError):
        codec.decrypt(token)


@pytest.mark.parametrize("token", ["", "abc", "zz:zz:zz", "00:11", "a:b:c:d", "00" * 16 + "::"])
def test_malformed_input_is_rejected(codec, token):
    with pytest.raises(DecryptionError):
        codec.decrypt(token)


@pytest.mark.parametrize("key", ["short", KEY + "x", ""])
def test_key_must_be_32_bytes(key):
    with pytest.raises(ValueError):
        SecretCodec(key)


def test_settings_reject_bad_encryption_key():
    with pytest.raises(SettingsValidationError):
        Settings(_env_file=None, ENCRYPTION_KEY="too-short")
