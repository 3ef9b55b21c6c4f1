# authflow/app/security/totp.py
"""
TOTP (Time-based One-Time Password) implementation
RFC 6238 compliant - Compatible with Google Authenticator, Authy, Aegis

Key points:
- 6-digit codes
- 30-second time step
- HMAC-SHA1 (standard)
- Base32 secret encoding
"""
import base64
import io
import logging
from typing import Optional

import pyotp
import qrcode

logger = logging.getLogger(__name__)

# Adjacent 30s steps accepted on each side of "now" to absorb clock drift
DEFAULT_VALID_WINDOW = 1


def generate_totp_secret() -> str:
    """
    Generate a new random TOTP secret (Base32 encoded).
    Returns 32-character Base32 string.
    """
    return pyotp.random_base32()


def get_totp_uri(secret: str, email: str, issuer: str) -> str:
    """
    Generate the otpauth:// URI for QR code encoding.

    Format: otpauth://totp/{issuer}:{email}?secret={secret}&issuer={issuer}

    Authenticator apps scan this to add the account.
    """
    totp = pyotp.TOTP(secret)
    return totp.provisioning_uri(name=email, issuer_name=issuer)


def generate_qr_code_data_url(secret: str, email: str, issuer: str) -> str:
    """
    Render the provisioning URI as a PNG QR code, returned as a data URL.

    Frontend can display this directly using: <img src="{result}">
    """
    uri = get_totp_uri(secret, email, issuer)

    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    buffer.seek(0)

    encoded = base64.b64encode(buffer.read()).decode("utf-8")
    return f"data:image/png;base64,{encoded}"


def verify_totp(secret: Optional[str], code: Optional[str], window: int = DEFAULT_VALID_WINDOW) -> bool:
    """
    Verify a 6-digit TOTP code.
    Returns True if valid, False otherwise.
    """
    if not secret or not code:
        return False

    code = code.strip().replace(" ", "")
    if len(code) != 6 or not code.isdigit():
        return False

    try:
        totp = pyotp.TOTP(secret)
        return totp.verify(code, valid_window=window)
    except (TypeError, ValueError) as e:
        # binascii.Error from a corrupt Base32 secret is a ValueError
        logger.warning("TOTP verification failed on a malformed secret: %s", e)
        return False


def get_current_totp(secret: str) -> str:
    """
    Get the current TOTP code for a secret.
    Useful for testing only - never expose this in production!
    """
    totp = pyotp.TOTP(secret)
    return totp.now()
