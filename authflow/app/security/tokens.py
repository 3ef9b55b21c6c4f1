# authflow/app/security/tokens.py
"""
Session tokens and one-time verification codes.

Session tokens are stateless HS256 JWTs carried in the ``token`` cookie.
There is no server-side session table: logging out only clears the
cookie, and a copied token stays valid until it expires.
"""
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import Response
from jose import JWTError, jwt

SESSION_COOKIE_NAME = "token"


class InvalidTokenError(Exception):
    """Token is expired, badly signed, or malformed."""


def generate_verification_code() -> str:
    """Six-digit code in [100000, 999999], sent by email."""
    return str(100000 + secrets.randbelow(900000))


class SessionTokens:
    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_days: int = 7,
        secure_cookie: bool = False,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = timedelta(days=expire_days)
        self.secure_cookie = secure_cookie

    @property
    def max_age(self) -> int:
        return int(self.expires_delta.total_seconds())

    def issue(self, account_id: int) -> str:
        now = datetime.now(timezone.utc)
        to_encode = {
            "sub": str(account_id),
            "iat": now,
            "exp": now + self.expires_delta,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """Return the account id embedded in ``token``."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidTokenError(str(e)) from e

        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError) as e:
            raise InvalidTokenError("Token subject is not an account id") from e

    def attach_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=SESSION_COOKIE_NAME,
            value=token,
            max_age=self.max_age,
            httponly=True,
            secure=self.secure_cookie,
            samesite="strict",
        )

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            key=SESSION_COOKIE_NAME,
            httponly=True,
            secure=self.secure_cookie,
            samesite="strict",
        )
