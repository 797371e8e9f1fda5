"""hookpost - validated Discord webhook delivery with proxy fallback."""

from hookpost.client import WebhookClient, send_message
from hookpost.models import (
    AllowedMentions,
    Color,
    Embed,
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EmbedImage,
    EmbedThumbnail,
    OutgoingMessage,
    Poll,
    PollAnswer,
    PollEmoji,
    PollMedia,
    PollQuestion,
)
from hookpost.transports.sender import SendResult

__version__ = "0.1.0"

__all__ = [
    "AllowedMentions",
    "Color",
    "Embed",
    "EmbedAuthor",
    "EmbedField",
    "EmbedFooter",
    "EmbedImage",
    "EmbedThumbnail",
    "OutgoingMessage",
    "Poll",
    "PollAnswer",
    "PollEmoji",
    "PollMedia",
    "PollQuestion",
    "SendResult",
    "WebhookClient",
    "send_message",
]
