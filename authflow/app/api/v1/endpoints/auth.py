# authflow/app/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from authflow.app.api import deps
from authflow.app.core.exceptions import DependencyError
from authflow.app.core.rate_limit import LOGIN_RATE_LIMIT, limiter
from authflow.app.models.account import Account
from authflow.app.schemas.account import (
    LoginRequest,
    SignupRequest,
    TwoFactorVerifyRequest,
    VerifyEmailRequest,
    serialize_account,
)
from authflow.app.security.tokens import SessionTokens
from authflow.app.services.auth import AuthService

router = APIRouter()


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    service: AuthService = Depends(deps.get_auth_service),
    session_tokens: SessionTokens = Depends(deps.get_session_tokens),
):
    account, code = await service.signup(body.full_name, body.email, body.password)

    response = JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "message": "User created. Please verify your email and set up 2FA to continue.",
            "success": True,
            "user": serialize_account(account),
        },
    )
    try:
        await service.send_verification_email(account, code)
    except DependencyError as e:
        response = JSONResponse(status_code=e.status_code, content=e.to_dict())

    # The pre-verification session is issued even when the email failed,
    # otherwise the account could never reach the 2FA setup routes
    session_tokens.attach_cookie(response, session_tokens.issue(account.id))
    return response


@router.post("/verify-email")
async def verify_email(
    body: VerifyEmailRequest,
    service: AuthService = Depends(deps.get_auth_service),
):
    account = await service.verify_email(body.code)
    return {
        "message": "Email verified successfully",
        "success": True,
        "user": serialize_account(account),
    }


@router.post("/login")
@limiter.limit(LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(deps.get_auth_service),
    session_tokens: SessionTokens = Depends(deps.get_session_tokens),
):
    account = await service.login(body.email, body.password, body.two_factor_code)

    response = JSONResponse(
        content={"message": "Logged in successfully", "user": serialize_account(account)}
    )
    session_tokens.attach_cookie(response, session_tokens.issue(account.id))
    return response


@router.post("/logout")
async def logout(session_tokens: SessionTokens = Depends(deps.get_session_tokens)):
    # Stateless tokens: nothing to revoke server-side, only the cookie goes away
    response = JSONResponse(content={"message": "Logged Out Successfully"})
    session_tokens.clear_cookie(response)
    return response


@router.post("/2fa/setup")
async def setup_two_factor(
    current_account: Account = Depends(deps.get_current_account),
    service: AuthService = Depends(deps.get_auth_service),
):
    qr_code_url, secret = await service.setup_two_factor(current_account)
    return {
        "message": "2FA setup successful",
        "qrCodeUrl": qr_code_url,
        "secret": secret,
    }


@router.post("/2fa/verify")
async def verify_two_factor(
    body: TwoFactorVerifyRequest,
    current_account: Account = Depends(deps.get_current_account),
    service: AuthService = Depends(deps.get_auth_service),
):
    await service.verify_two_factor(current_account, body.token)
    return {"message": "2FA has been enabled successfully"}
