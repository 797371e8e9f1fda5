"""Network delivery for webhook messages and thumbnail lookups."""

from .sender import SendResult, SendState, WebhookSender

__all__ = ["SendResult", "SendState", "WebhookSender"]
