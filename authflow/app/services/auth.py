# authflow/app/services/auth.py
"""
Account onboarding and login.

An account moves through three states:

    Unverified --verify_email--> Verified --setup + verify 2FA--> FullyEnrolled

Only FullyEnrolled accounts pass ``login``. Signup hands out a session
cookie straight away (see the signup endpoint), which is what lets an
Unverified or Verified account reach the authenticated 2FA routes.
"""
import logging
import re
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from authflow.app.core.config import Settings
from authflow.app.core.exceptions import (
    AuthError,
    ConflictError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from authflow.app.mail.client import EmailDispatcher
from authflow.app.models.account import Account, utcnow
from authflow.app.security import hashing, totp
from authflow.app.security.crypto import SecretCodec
from authflow.app.security.tokens import generate_verification_code
from authflow.app.services import accounts

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6
# bcrypt ignores (or rejects) anything past 72 bytes
PASSWORD_MAX_BYTES = 72
_HAS_LETTER = re.compile(r"[A-Za-z]")
_HAS_DIGIT = re.compile(r"\d")

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_2FA_CODE = "Invalid 2FA code"

VERIFICATION_CODE_ATTEMPTS = 10


def validate_password(password: str) -> None:
    """Raise ValidationError unless password has 6+ chars, a letter and a digit."""
    if (
        len(password) < PASSWORD_MIN_LENGTH
        or not _HAS_LETTER.search(password)
        or not _HAS_DIGIT.search(password)
    ):
        raise ValidationError(
            "Password must be at least 6 characters and contain at least one letter and one number."
        )
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError("Password must be at most 72 bytes long.")


class AuthService:
    def __init__(
        self,
        db: AsyncSession,
        settings: Settings,
        codec: SecretCodec,
        mailer: EmailDispatcher,
    ):
        self.db = db
        self.settings = settings
        self.codec = codec
        self.mailer = mailer

    # ── Signup ────────────────────────────────────────────────────────────

    async def signup(self, full_name: str, email: str, password: str) -> Tuple[Account, str]:
        """
        Create an unverified account.

        Returns the persisted account and the verification code that
        still has to be emailed (see ``send_verification_email``).
        """
        if not full_name or not email or not password:
            raise ValidationError("All fields are required")

        validate_password(password)

        if await accounts.get_by_email(self.db, email):
            raise ConflictError(accounts.EMAIL_IN_USE_MESSAGE)

        code = await self._unused_verification_code()
        account = Account(
            full_name=full_name,
            email=email,
            hashed_password=hashing.get_password_hash(password, self.settings.BCRYPT_ROUNDS),
            verification_code=code,
            verification_code_expires_at=utcnow()
            + timedelta(hours=self.settings.VERIFICATION_CODE_EXPIRE_HOURS),
            is_verified=False,
            two_factor_enabled=False,
        )
        # A concurrent signup for the same email fails here with ConflictError
        account = await accounts.save(self.db, account)
        logger.info("Account %s created for %s", account.id, account.email)
        return account, code

    async def _unused_verification_code(self) -> str:
        # A code resolves to exactly one pending account during verify_email
        for _ in range(VERIFICATION_CODE_ATTEMPTS):
            code = generate_verification_code()
            if not await accounts.get_by_verification_code(self.db, code, utcnow()):
                return code
        logger.error("No free verification code after %s attempts", VERIFICATION_CODE_ATTEMPTS)
        raise DependencyError("Could not generate a verification code")

    async def send_verification_email(self, account: Account, code: str) -> None:
        try:
            await self.mailer.send_verification_email(account.email, code)
        except DependencyError:
            # The account stays persisted; the client is told onboarding is incomplete
            logger.error("Verification email for account %s was not sent", account.id)
            raise

    # ── Email verification ────────────────────────────────────────────────

    async def verify_email(self, code: Optional[str]) -> Account:
        if not code:
            raise NotFoundError("Invalid or expired verification code")

        account = await accounts.get_by_verification_code(self.db, code.strip(), utcnow())
        if not account:
            raise NotFoundError("Invalid or expired verification code")

        account.is_verified = True
        account.verification_code = None
        account.verification_code_expires_at = None
        account = await accounts.save(self.db, account)
        logger.info("Account %s verified its email", account.id)

        try:
            await self.mailer.send_welcome_email(account.email, account.full_name)
        except DependencyError:
            # Verification is already committed and is not rolled back
            logger.error("Welcome email for account %s was not sent", account.id)
            raise

        return account

    # ── Two-factor setup ──────────────────────────────────────────────────

    async def setup_two_factor(self, account: Account) -> Tuple[str, str]:
        """
        Generate and store a fresh TOTP secret.

        Returns ``(qr_code_data_url, secret)``. 2FA stays disabled until
        ``verify_two_factor`` accepts a code derived from this secret.
        """
        if account.two_factor_enabled:
            raise ConflictError("2FA is already enabled")

        secret = totp.generate_totp_secret()
        try:
            qr_code_url = totp.generate_qr_code_data_url(
                secret, account.email, self.settings.TOTP_ISSUER
            )
        except Exception as e:
            logger.exception("QR code rendering failed for account %s", account.id)
            raise DependencyError("Failed to generate QR code") from e

        account.set_plain_secret(self.codec, secret)
        await accounts.save(self.db, account)
        logger.info("2FA secret issued for account %s", account.id)
        return qr_code_url, secret

    async def verify_two_factor(self, account: Account, token: Optional[str]) -> Account:
        secret = account.get_plain_secret(self.codec)
        if not totp.verify_totp(secret, token):
            raise ValidationError(INVALID_2FA_CODE)

        if not account.two_factor_enabled:
            account.two_factor_enabled = True
            account = await accounts.save(self.db, account)
            logger.info("2FA enabled for account %s", account.id)
        return account

    # ── Login ─────────────────────────────────────────────────────────────

    async def login(
        self,
        email: Optional[str],
        password: Optional[str],
        two_factor_code: Optional[str],
    ) -> Account:
        if not email or not password:
            raise AuthError(INVALID_CREDENTIALS)

        account = await accounts.get_by_email(self.db, email)
        if not account:
            logger.info("Login rejected: unknown email")
            raise AuthError(INVALID_CREDENTIALS)

        if not hashing.verify_password(password, account.hashed_password):
            logger.info("Login rejected for account %s: wrong password", account.id)
            raise AuthError(INVALID_CREDENTIALS)

        if not account.is_verified:
            raise ForbiddenError("Please verify your email before logging in")

        if not account.two_factor_enabled:
            raise ForbiddenError("2FA setup is required before you can log in")

        if not two_factor_code:
            raise ValidationError("2FA code required")

        secret = account.get_plain_secret(self.codec)
        if not totp.verify_totp(secret, two_factor_code):
            logger.info("Login rejected for account %s: invalid 2FA code", account.id)
            raise ValidationError(INVALID_2FA_CODE)

        account.last_login = utcnow()
        account = await accounts.save(self.db, account)
        logger.info("Account %s logged in", account.id)
        return account
