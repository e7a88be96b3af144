# -*- coding: utf-8 -*-
"""Async Resend API client used as the email transport."""

from __future__ import annotations

import asyncio
import uuid
import aiohttp
import structlog
from typing import Any, Callable, Optional
from structlog.contextvars import bound_contextvars

from watchplus.exceptions import EmailDeliveryError
from watchplus.notifications.types import EmailMessage

DEFAULT_BASE_URL = "https://api.resend.com"


class ResendClient:
    """Send email through the Resend REST API (single attempt, no retries).

    Optionally takes a shared aiohttp.ClientSession. If none is provided, one
    is created on first use and must be closed via aclose() or by using the
    client as an async context manager.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 15.0,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Resend API key (sent as a bearer token).
            base_url: API root; /emails is appended.
            timeout_seconds: Total request timeout.
            session: Optional shared aiohttp session. If None, the client
                creates and owns a session (call aclose() when done).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        if not api_key:
            raise ValueError("ResendClient requires an API key.")
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/emails"
        self._timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> ResendClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError:
            return None

    async def send(self, message: EmailMessage) -> Optional[str]:
        """POST the message and return the Resend email id.

        Raises:
            EmailDeliveryError: On a non-2xx response, network error or timeout.
                The message carries the API's own error text when available.
        """
        payload = {
            "from": message.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        request_id = uuid.uuid4().hex[:12]

        with bound_contextvars(http_url=self._url, http_request_id=request_id):
            try:
                session = await self._get_session()
                async with session.post(self._url, json=payload, headers=headers) as response:
                    body = await self._read_json(response)
                    if response.status >= 400:
                        api_message = body.get("message") if isinstance(body, dict) else None
                        error_text = api_message or f"HTTP {response.status} {response.reason or ''}".strip()
                        self._logger.warning(
                            "resend_send_rejected",
                            http_status_code=response.status,
                            error_message=error_text,
                        )
                        raise EmailDeliveryError(error_text, status_code=response.status)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                self._logger.warning(
                    "resend_send_failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                raise EmailDeliveryError(str(e) or type(e).__name__, cause=e) from e

            email_id = body.get("id") if isinstance(body, dict) else None
            self._logger.debug("resend_send_accepted", resend_email_id=email_id)
            return email_id
