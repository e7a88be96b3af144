"""HTTP API clients."""

from watchplus.clients.resend_client import ResendClient

__all__ = ["ResendClient"]
