# authflow/app/api/deps.py
import logging
from typing import Optional

from fastapi import Cookie, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from authflow.app.core.config import Settings
from authflow.app.core.exceptions import AuthError
from authflow.app.db.session import get_db
from authflow.app.mail.client import EmailDispatcher
from authflow.app.models.account import Account
from authflow.app.security.crypto import SecretCodec
from authflow.app.security.tokens import InvalidTokenError, SessionTokens
from authflow.app.services import accounts
from authflow.app.services.auth import AuthService

logger = logging.getLogger(__name__)


# Handles built once by the app factory / lifespan, see main.py
def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_codec(request: Request) -> SecretCodec:
    return request.app.state.codec


def get_session_tokens(request: Request) -> SessionTokens:
    return request.app.state.session_tokens


def get_mailer(request: Request) -> EmailDispatcher:
    return request.app.state.mailer


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    codec: SecretCodec = Depends(get_codec),
    mailer: EmailDispatcher = Depends(get_mailer),
) -> AuthService:
    return AuthService(db, settings, codec, mailer)


async def get_current_account(
    db: AsyncSession = Depends(get_db),
    session_tokens: SessionTokens = Depends(get_session_tokens),
    token: Optional[str] = Cookie(default=None),
) -> Account:
    """Resolve the account behind the ``token`` session cookie or reject with 401."""
    if not token:
        raise AuthError("Unauthorized - no token provided")

    try:
        account_id = session_tokens.verify(token)
    except InvalidTokenError as e:
        logger.info("Rejected session token: %s", e)
        raise AuthError("Unauthorized - invalid token")

    account = await accounts.get_by_id(db, account_id)
    if not account:
        raise AuthError("User not found")

    return account
