import pyotp
import pytest
from httpx import ASGITransport, AsyncClient

from authflow.app.core.config import Settings
from authflow.app.core.exceptions import DependencyError
from authflow.app.core.rate_limit import limiter
from authflow.app.main import create_app

API = "/api/v1/auth"

ADA = {"fullName": "Ada Lovelace", "email": "ada@x.com", "password": "abc123"}


class RecordingMailer:
    """EmailDispatcher that keeps sent messages in memory."""

    def __init__(self):
        self.verification_emails = []
        self.welcome_emails = []
        self.fail_verification = False
        self.fail_welcome = False

    async def send_verification_email(self, email, code):
        if self.fail_verification:
            raise DependencyError("Failed to send verification email")
        self.verification_emails.append((email, code))

    async def send_welcome_email(self, email, full_name):
        if self.fail_welcome:
            raise DependencyError("Error sending welcome email")
        self.welcome_emails.append((email, full_name))

    def last_code_for(self, email):
        codes = [code for to, code in self.verification_emails if to == email]
        return codes[-1]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        SECRET_KEY="test-secret-key",
        ENCRYPTION_KEY="0123456789abcdef0123456789abcdef",
        BCRYPT_ROUNDS=4,
        CORS_ORIGINS="",
        ENVIRONMENT="development",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
async def app(settings, mailer):
    limiter.reset()
    application = create_app(settings, mailer=mailer)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def enroll(client, mailer):
    """Walk an account through signup, email verification and 2FA; return its TOTP secret."""

    async def _enroll(payload=ADA):
        resp = await client.post(f"{API}/signup", json=payload)
        assert resp.status_code == 201, resp.text

        code = mailer.last_code_for(payload["email"].lower())
        resp = await client.post(f"{API}/verify-email", json={"code": code})
        assert resp.status_code == 200, resp.text

        resp = await client.post(f"{API}/2fa/setup")
        assert resp.status_code == 200, resp.text
        secret = resp.json()["secret"]

        resp = await client.post(f"{API}/2fa/verify", json={"token": pyotp.TOTP(secret).now()})
        assert resp.status_code == 200, resp.text
        return secret

    return _enroll
