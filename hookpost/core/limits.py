"""Discord message limits.

See https://discord.com/developers/docs/resources/webhook and the channel
message/embed/poll object docs. Do not change these unless Discord does.
"""

from __future__ import annotations

CONTENT_MAX_CHARS = 2000
USERNAME_MAX_CHARS = 80
THREAD_NAME_MAX_CHARS = 100

MESSAGE_MAX_EMBEDS = 10
EMBED_AUTHOR_NAME_MAX_CHARS = 256
EMBED_TITLE_MAX_CHARS = 256
EMBED_DESCRIPTION_MAX_CHARS = 4096
EMBED_MAX_FIELDS = 25
EMBED_FIELD_NAME_MAX_CHARS = 256
EMBED_FIELD_VALUE_MAX_CHARS = 1024
EMBED_FOOTER_TEXT_MAX_CHARS = 2048
EMBEDS_MAX_CHAR_SUM = 6000

ALLOWED_MENTIONS_MAX_ROLES = 100
ALLOWED_MENTIONS_MAX_USERS = 100
ALLOWED_MENTION_TYPES = frozenset({"roles", "users", "everyone"})

POLL_QUESTION_MAX_CHARS = 300
POLL_ANSWER_MAX_CHARS = 55
POLL_MAX_ANSWERS = 10
POLL_MIN_DURATION_HOURS = 0
POLL_MAX_DURATION_HOURS = 768  # 32 days

# Combinations of SUPPRESS_EMBEDS and SUPPRESS_NOTIFICATIONS
VALID_MESSAGE_FLAGS = frozenset({0, 4, 4096, 4100})
