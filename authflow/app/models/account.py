# authflow/app/models/account.py
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import validates

from authflow.app.core.exceptions import ValidationError
from authflow.app.db.base import Base
from authflow.app.security.crypto import DecryptionError, SecretCodec

logger = logging.getLogger(__name__)

# Every repetition is anchored on a literal "." or "@", so matching stays linear
EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}")
EMAIL_MAX_LENGTH = 254


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # bcrypt hash only, never the raw password
    hashed_password = Column(String(255), nullable=False)

    is_verified = Column(Boolean, nullable=False, default=False)

    # Set at signup, both cleared once the email is verified
    verification_code = Column(String(6), nullable=True, index=True)
    verification_code_expires_at = Column(DateTime(timezone=True), nullable=True)

    two_factor_enabled = Column(Boolean, nullable=False, default=False)

    # iv:ciphertext:tag produced by SecretCodec, see get_plain_secret()
    two_factor_secret_encrypted = Column(Text, nullable=True)

    last_login = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @validates("full_name")
    def _validate_full_name(self, key, value):
        value = (value or "").strip()
        if not value:
            raise ValidationError("Full Name field is required")
        return value

    @validates("email")
    def _validate_email(self, key, value):
        value = (value or "").strip().lower()
        if len(value) > EMAIL_MAX_LENGTH or not EMAIL_PATTERN.fullmatch(value):
            raise ValidationError("Please fill a valid email address")
        return value

    def get_plain_secret(self, codec: SecretCodec) -> Optional[str]:
        """
        Decrypt the stored TOTP seed.

        Returns None when no secret is stored or when it cannot be
        decrypted (wrong key, corrupted row); the failure is logged.
        """
        if not self.two_factor_secret_encrypted:
            return None
        try:
            return codec.decrypt(self.two_factor_secret_encrypted)
        except DecryptionError as e:
            logger.error("Could not decrypt 2FA secret for account %s: %s", self.id, e)
            return None

    def set_plain_secret(self, codec: SecretCodec, secret: str) -> None:
        self.two_factor_secret_encrypted = codec.encrypt(secret)

    def __repr__(self) -> str:
        return f"<Account id={self.id} email={self.email!r}>"
