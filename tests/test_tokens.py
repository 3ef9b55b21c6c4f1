import time

import pyotp
import pytest
from fastapi import Response

from authflow.app.security import totp
from authflow.app.security.tokens import (
    InvalidTokenError,
    SessionTokens,
    generate_verification_code,
)


@pytest.fixture
def session_tokens():
    return SessionTokens(secret_key="unit-test-secret")


def test_verification_code_is_six_digits():
    for _ in range(500):
        code = generate_verification_code()
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


def test_issue_and_verify(session_tokens):
    token = session_tokens.issue(42)
    assert session_tokens.verify(token) == 42


def test_expired_token_is_rejected():
    expired = SessionTokens(secret_key="unit-test-secret", expire_days=-1)
    token = expired.issue(42)
    with pytest.raises(InvalidTokenError):
        expired.verify(token)


def test_token_signed_with_other_key_is_rejected(session_tokens):
    token = SessionTokens(secret_key="someone-else").issue(42)
    with pytest.raises(InvalidTokenError):
        session_tokens.verify(token)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_malformed_token_is_rejected(session_tokens, token):
    with pytest.raises(InvalidTokenError):
        session_tokens.verify(token)


def test_session_cookie_attributes(session_tokens):
    response = Response()
    session_tokens.attach_cookie(response, "abc")
    header = response.headers["set-cookie"]
    assert header.startswith("token=abc")
    assert "HttpOnly" in header
    assert "samesite=strict" in header.lower()
    assert f"Max-Age={7 * 24 * 3600}" in header
    assert "Secure" not in header


def test_session_cookie_secure_in_production():
    response = Response()
    SessionTokens(secret_key="s", secure_cookie=True).attach_cookie(response, "abc")
    assert "Secure" in response.headers["set-cookie"]


def test_clear_cookie_expires_it(session_tokens):
    response = Response()
    session_tokens.clear_cookie(response)
    header = response.headers["set-cookie"]
    assert header.startswith('token=""') or header.startswith("token=;")
    assert "Max-Age=0" in header


# ── TOTP ───────────────────────────────────────────────────────────────────


def test_current_code_verifies():
    secret = totp.generate_totp_secret()
    assert totp.verify_totp(secret, totp.get_current_totp(secret))


def test_adjacent_step_is_accepted_within_window():
    secret = totp.generate_totp_secret()
    next_step = pyotp.TOTP(secret).at(time.time() + 30)
    assert totp.verify_totp(secret, next_step, window=1)


def test_distant_step_is_rejected():
    secret = totp.generate_totp_secret()
    far = pyotp.TOTP(secret).at(time.time() + 120)
    assert not totp.verify_totp(secret, far, window=1)


@pytest.mark.parametrize("code", [None, "", "12345", "1234567", "abcdef"])
def test_malformed_codes_are_rejected(code):
    assert not totp.verify_totp(totp.generate_totp_secret(), code)


def test_missing_secret_is_rejected():
    assert not totp.verify_totp(None, "123456")


def test_provisioning_uri_names_account_and_issuer():
    uri = totp.get_totp_uri("JBSWY3DPEHPK3PXP", "ada@x.com", "authflow")
    assert uri.startswith("otpauth://totp/")
    assert "secret=JBSWY3DPEHPK3PXP" in uri
    assert "issuer=authflow" in uri


def test_qr_code_is_png_data_url():
    url = totp.generate_qr_code_data_url(totp.generate_totp_secret(), "ada@x.com", "authflow")
    assert url.startswith("data:image/png;base64,iVBOR")
