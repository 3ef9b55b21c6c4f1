# authflow/app/mail/client.py
"""
Email dispatch.

``EmailDispatcher`` is what the auth flow depends on; ``MailtrapMailer``
implements it over the Mailtrap send API. Both methods raise
DependencyError when the message could not be handed to the provider.
"""
import logging
from typing import Protocol

import httpx

from authflow.app.core.config import Settings
from authflow.app.core.exceptions import DependencyError
from authflow.app.mail import templates

logger = logging.getLogger(__name__)


class EmailDispatcher(Protocol):
    async def send_verification_email(self, email: str, code: str) -> None: ...

    async def send_welcome_email(self, email: str, full_name: str) -> None: ...


class MailtrapMailer:
    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.client = client
        self.api_url = settings.MAILTRAP_API_URL
        self.token = settings.MAILTRAP_TOKEN
        self.welcome_template_uuid = settings.MAILTRAP_WELCOME_TEMPLATE_UUID
        self.sender = {
            "email": settings.MAIL_SENDER_EMAIL,
            "name": settings.MAIL_SENDER_NAME,
        }

    async def _send(self, payload: dict, failure_message: str) -> None:
        try:
            response = await self.client.post(
                self.api_url,
                json={"from": self.sender, **payload},
                headers={"Authorization": f"Bearer {self.token}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Mail provider rejected message: status=%s body=%s",
                e.response.status_code,
                e.response.text[:200],
            )
            raise DependencyError(failure_message) from e
        except httpx.HTTPError as e:
            logger.error("Mail provider unreachable: %s", e)
            raise DependencyError(failure_message) from e

    async def send_verification_email(self, email: str, code: str) -> None:
        await self._send(
            {
                "to": [{"email": email}],
                "subject": templates.VERIFICATION_EMAIL_SUBJECT,
                "html": templates.render_verification_email(code),
                "category": templates.VERIFICATION_EMAIL_CATEGORY,
            },
            "Failed to send verification email",
        )
        logger.info("Verification email sent to %s", email)

    async def send_welcome_email(self, email: str, full_name: str) -> None:
        if self.welcome_template_uuid:
            payload = {
                "to": [{"email": email}],
                "template_uuid": self.welcome_template_uuid,
                "template_variables": {"fullName": full_name},
            }
        else:
            payload = {
                "to": [{"email": email}],
                "subject": templates.WELCOME_EMAIL_SUBJECT,
                "html": templates.render_welcome_email(full_name),
                "category": templates.WELCOME_EMAIL_CATEGORY,
            }
        await self._send(payload, "Error sending welcome email")
        logger.info("Welcome email sent to %s", email)
