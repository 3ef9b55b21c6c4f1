import json

import httpx
import pytest

from authflow.app.core.exceptions import DependencyError
from authflow.app.mail.client import MailtrapMailer


def _mailer(settings, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return MailtrapMailer(settings, client), client


async def test_verification_email_payload(settings):
    sent = []

    def handler(request):
        sent.append(request)
        return httpx.Response(200, json={"success": True})

    settings.MAILTRAP_TOKEN = "mt-token"
    mailer, client = _mailer(settings, handler)
    async with client:
        await mailer.send_verification_email("ada@x.com", "123456")

    request = sent[0]
    assert str(request.url) == settings.MAILTRAP_API_URL
    assert request.headers["Authorization"] == "Bearer mt-token"
    body = json.loads(request.content)
    assert body["to"] == [{"email": "ada@x.com"}]
    assert body["from"]["email"] == settings.MAIL_SENDER_EMAIL
    assert body["category"] == "Email Verification"
    assert "123456" in body["html"]


async def test_welcome_email_uses_template_when_configured(settings):
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    settings.MAILTRAP_WELCOME_TEMPLATE_UUID = "tpl-uuid"
    mailer, client = _mailer(settings, handler)
    async with client:
        await mailer.send_welcome_email("ada@x.com", "Ada Lovelace")

    assert sent[0]["template_uuid"] == "tpl-uuid"
    assert sent[0]["template_variables"] == {"fullName": "Ada Lovelace"}


async def test_welcome_email_html_escapes_name(settings):
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(200)

    mailer, client = _mailer(settings, handler)
    async with client:
        await mailer.send_welcome_email("ada@x.com", "<b>Ada</b>")

    assert "&lt;b&gt;Ada&lt;/b&gt;" in sent[0]["html"]


async def test_provider_error_raises_dependency_error(settings):
    mailer, client = _mailer(settings, lambda request: httpx.Response(500, text="boom"))
    async with client:
        with pytest.raises(DependencyError) as exc_info:
            await mailer.send_verification_email("ada@x.com", "123456")
    assert exc_info.value.message == "Failed to send verification email"


async def test_unreachable_provider_raises_dependency_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    mailer, client = _mailer(settings, handler)
    async with client:
        with pytest.raises(DependencyError):
            await mailer.send_welcome_email("ada@x.com", "Ada Lovelace")
