from __future__ import annotations

import logging
import re
from typing import Optional

import httpx

from caprep.domain.ports.email_port import EmailPort, SendResult

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_TAGS_RE = re.compile(r"<[^>]*>")


class SendGridEmailAdapter(EmailPort):
    """
    Transactional email through the SendGrid v3 HTTP API.

    Failures never raise; they come back as a ``SendResult`` whose
    ``error_kind`` is one of INVALID_EMAIL, NO_CREDENTIALS, EAUTH,
    ERECIPIENT, TIMEOUT or SEND_FAILED.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        from_email: str,
        base_url: str = "https://api.sendgrid.com",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 20.0,
        send_path: str = "/v3/mail/send",
        sender_name: str = "CAprep Support",
    ) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._sender_name = sender_name
        self._base_url = base_url.rstrip("/")
        self._send_path = send_path if send_path.startswith("/") else f"/{send_path}"
        self._timeout = timeout
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    def _payload(self, to: str, subject: str, html: str, text: str) -> dict:
        plain = text or _TAGS_RE.sub("", html)
        return {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self._from_email, "name": self._sender_name},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": plain or subject},
                {"type": "text/html", "value": html or f"<p>{text}</p>"},
            ],
        }

    @staticmethod
    def _classify(resp: httpx.Response) -> tuple[str, str]:
        try:
            errors = resp.json().get("errors") or []
        except ValueError:
            errors = []
        first = errors[0] if errors and isinstance(errors[0], dict) else {}
        message = first.get("message") or f"SendGrid responded {resp.status_code}"
        if resp.status_code in (401, 403):
            return "EAUTH", message
        field = str(first.get("field") or "")
        if resp.status_code == 400 and field.startswith("personalizations"):
            return "ERECIPIENT", message
        return "SEND_FAILED", message

    async def send(
        self,
        *,
        to: str,
        subject: str,
        html: str,
        text: str = "",
    ) -> SendResult:
        if not to or not _EMAIL_RE.match(to):
            logger.error("invalid recipient email format")
            return SendResult(False, error_kind="INVALID_EMAIL", error="Invalid email format")
        if not self._api_key:
            return SendResult(
                False,
                error_kind="NO_CREDENTIALS",
                error="Email service is not configured.",
            )

        url = f"{self._base_url}{self._send_path}"
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            resp = await self._client.post(
                url,
                json=self._payload(to, subject, html, text),
                headers=headers,
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("sendgrid timeout", extra={"error": str(e)})
            return SendResult(False, error_kind="TIMEOUT", error="Email provider timed out")
        except httpx.HTTPError as e:
            logger.error("sendgrid http error", extra={"error": str(e)})
            return SendResult(False, error_kind="SEND_FAILED", error="Failed to send email")

        if 200 <= resp.status_code < 300:
            message_id = resp.headers.get("x-message-id")
            logger.info("email sent", extra={"status": resp.status_code, "message_id": message_id})
            return SendResult(True, message_id=message_id)

        kind, message = self._classify(resp)
        logger.error(
            "sendgrid rejected message",
            extra={"status": resp.status_code, "kind": kind, "body": resp.text[:500]},
        )
        return SendResult(False, error_kind=kind, error=message)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
