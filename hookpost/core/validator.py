"""Client-side validation and normalization of outgoing webhook messages.

Checks run in a fixed order and the first violation wins, so the reason a
caller sees is stable for a given message. Validation never touches the
caller's object: it normalizes a deep copy (color -> int, timestamp ->
ISO-8601 string, flags -> int) and returns that copy on success.
"""

from __future__ import annotations

import copy
import dataclasses
import math
from datetime import datetime
from typing import Any, Literal, NamedTuple, NoReturn

from hookpost.core import limits
from hookpost.core.normalize import as_flags_variant, color_to_int, to_iso8601
from hookpost.models import (
    AllowedMentions,
    Color,
    Embed,
    EmbedAuthor,
    EmbedField,
    EmbedFooter,
    EmbedImage,
    EmbedThumbnail,
    FlagsVariant,
    OutgoingMessage,
    Poll,
    PollAnswer,
    PollEmoji,
    PollMedia,
    PollQuestion,
)


class ValidationResult(NamedTuple):
    valid: bool
    # Normalized copy when valid, otherwise the failure reason
    detail: OutgoingMessage | str


class MessageValidationError(Exception):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


def validate_message(
    message: OutgoingMessage,
    *,
    byteorder: Literal["little", "big"] = "little",
) -> ValidationResult:
    """Validate a message against Discord's limits and normalize a copy of it."""
    try:
        return ValidationResult(True, _normalized(message, byteorder))
    except MessageValidationError as e:
        return ValidationResult(False, e.reason)


# ---------------------------------------------------------------------------
# Primitive checks
# ---------------------------------------------------------------------------

def _fail(reason: str) -> NoReturn:
    raise MessageValidationError(reason)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_snowflake(value: Any) -> bool:
    if isinstance(value, str):
        return value.isdigit()
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _check_text(value: Any, name: str, limit: int | None = None, *, required: bool = False) -> int:
    """Check an optional string field; returns its length (0 when unset)."""
    if value is None:
        if required:
            _fail(f"{name} is required")
        return 0
    if not isinstance(value, str):
        _fail(f"invalid {name} value type (expects string)")
    if limit is not None and len(value) > limit:
        _fail(f"{name} too long")
    return len(value)


def _check_bool(value: Any, name: str) -> None:
    if value is not None and not isinstance(value, bool):
        _fail(f"invalid {name} value type (expects boolean)")


def _check_instance(value: Any, name: str, expected: type) -> None:
    if not isinstance(value, expected):
        _fail(f"invalid {name} value type (expects {expected.__name__})")


def _check_array(value: Any, name: str, *, allow_set: bool = False) -> None:
    kinds = (list, tuple, set, frozenset) if allow_set else (list, tuple)
    if not isinstance(value, kinds):
        _fail(f"invalid {name} value type (expects array)")


def _check_snowflakes(value: Any, name: str, limit: int | None = None, *, allow_set: bool = False) -> None:
    _check_array(value, name, allow_set=allow_set)
    if limit is not None and len(value) > limit:
        _fail(f"too many {name} snowflakes")
    if not all(_is_snowflake(v) for v in value):
        _fail(f"invalid {name} value type (expects array of snowflakes)")


# ---------------------------------------------------------------------------
# Message
# ---------------------------------------------------------------------------

def _normalized(message: OutgoingMessage, byteorder: Literal["little", "big"]) -> OutgoingMessage:
    _check_instance(message, "message", OutgoingMessage)

    # memoryviews and generators cannot be deep-copied; resolve flags first
    flags, bad_flags = message.flags, False
    if flags is not None:
        try:
            flags = as_flags_variant(flags, byteorder)
        except TypeError:
            flags, bad_flags = None, True
    msg = copy.deepcopy(dataclasses.replace(message, flags=flags))

    if msg.content is None and msg.embeds is None and msg.poll is None:
        _fail("missing required fields (one of content, embeds, or poll is required)")

    _check_text(msg.content, "content", limits.CONTENT_MAX_CHARS)
    _check_text(msg.username, "username", limits.USERNAME_MAX_CHARS)
    _check_text(msg.avatar_url, "avatar_url")
    _check_bool(msg.tts, "tts")

    if msg.allowed_mentions is not None:
        _check_allowed_mentions(msg.allowed_mentions)

    if bad_flags:
        _fail("invalid flags value type (expects int, bytes, or flag names)")
    if msg.flags is not None:
        msg.flags = _normalized_flags(msg.flags)

    _check_text(msg.thread_name, "thread_name", limits.THREAD_NAME_MAX_CHARS)

    if msg.embeds is not None:
        _check_embeds(msg.embeds)

    if msg.poll is not None:
        _check_poll(msg.poll)

    if msg.applied_tags is not None:
        _check_snowflakes(msg.applied_tags, "applied_tags")

    return msg


def _check_allowed_mentions(mentions: Any) -> None:
    _check_instance(mentions, "allowed_mentions", AllowedMentions)

    parse = mentions.parse
    if parse is not None:
        _check_array(parse, "allowed_mentions.parse", allow_set=True)
        for token in parse:
            if not isinstance(token, str) or token not in limits.ALLOWED_MENTION_TYPES:
                _fail(f"invalid allowed_mentions.parse value {token!r} (expects roles, users, or everyone)")

    users = mentions.users
    if users is not None:
        _check_snowflakes(users, "allowed_mentions.users", limits.ALLOWED_MENTIONS_MAX_USERS, allow_set=True)
        if users and parse and "users" in parse:
            _fail('allowed_mentions.users cannot be set when "users" is present in allowed_mentions.parse')

    roles = mentions.roles
    if roles is not None:
        _check_snowflakes(roles, "allowed_mentions.roles", limits.ALLOWED_MENTIONS_MAX_ROLES, allow_set=True)
        if roles and parse and "roles" in parse:
            _fail('allowed_mentions.roles cannot be set when "roles" is present in allowed_mentions.parse')


def _normalized_flags(flags: FlagsVariant) -> int:
    value = flags.to_int()
    if value not in limits.VALID_MESSAGE_FLAGS:
        _fail("invalid message flags")
    return value


# ---------------------------------------------------------------------------
# Embeds
# ---------------------------------------------------------------------------

def _check_embeds(embeds: Any) -> None:
    _check_array(embeds, "embeds")
    if len(embeds) > limits.MESSAGE_MAX_EMBEDS:
        _fail("too many embeds")

    char_sum = 0
    for embed in embeds:
        _check_instance(embed, "embed", Embed)
        char_sum += _check_embed(embed)

    if char_sum > limits.EMBEDS_MAX_CHAR_SUM:
        _fail("embeds too large")


def _check_embed(embed: Embed) -> int:
    """Validate and normalize one embed in place; returns its character count."""
    chars = _check_text(embed.title, "embed.title", limits.EMBED_TITLE_MAX_CHARS)
    chars += _check_text(embed.description, "embed.description", limits.EMBED_DESCRIPTION_MAX_CHARS)

    if embed.color is not None:
        embed.color = _normalized_color(embed.color)

    if embed.timestamp is not None:
        embed.timestamp = _normalized_timestamp(embed.timestamp)

    _check_text(embed.url, "embed.url")

    footer = embed.footer
    if footer is not None:
        _check_instance(footer, "embed.footer", EmbedFooter)
        chars += _check_text(footer.text, "footer.text", limits.EMBED_FOOTER_TEXT_MAX_CHARS)
        _check_text(footer.icon_url, "footer.icon_url")

    if embed.image is not None:
        _check_instance(embed.image, "embed.image", EmbedImage)
        _check_text(embed.image.url, "image.url", required=True)

    if embed.thumbnail is not None:
        _check_instance(embed.thumbnail, "embed.thumbnail", EmbedThumbnail)
        _check_text(embed.thumbnail.url, "thumbnail.url", required=True)

    author = embed.author
    if author is not None:
        _check_instance(author, "embed.author", EmbedAuthor)
        chars += _check_text(author.name, "author.name", limits.EMBED_AUTHOR_NAME_MAX_CHARS, required=True)
        _check_text(author.url, "author.url")
        _check_text(author.icon_url, "author.icon_url")

    if embed.fields is not None:
        chars += _check_fields(embed.fields)

    return chars


def _normalized_color(color: Any) -> int:
    if not isinstance(color, Color) and not (isinstance(color, int) and not isinstance(color, bool)):
        _fail("invalid embed.color value type (expects Color or int)")
    try:
        value = color_to_int(color)
    except (TypeError, ValueError):
        _fail("invalid embed.color value (expects 0-255 integer channels)")
    if not 0 <= value <= 0xFFFFFF:
        _fail("invalid embed.color value (expects 0 to 0xFFFFFF)")
    return value


def _normalized_timestamp(timestamp: Any) -> str:
    if not isinstance(timestamp, (datetime, str)) and not _is_number(timestamp):
        _fail("invalid embed.timestamp value type (expects datetime, number, or string)")
    try:
        return to_iso8601(timestamp)
    except (OverflowError, OSError, ValueError):
        _fail("invalid embed.timestamp value (out of range)")


def _check_fields(fields: Any) -> int:
    _check_array(fields, "embed.fields")
    if len(fields) > limits.EMBED_MAX_FIELDS:
        _fail("too many embed.fields")

    chars = 0
    for f in fields:
        _check_instance(f, "embed.fields item", EmbedField)
        chars += _check_text(f.name, "field.name", limits.EMBED_FIELD_NAME_MAX_CHARS, required=True)
        chars += _check_text(f.value, "field.value", limits.EMBED_FIELD_VALUE_MAX_CHARS, required=True)
        _check_bool(f.inline, "field.inline")
    return chars


# ---------------------------------------------------------------------------
# Poll
# ---------------------------------------------------------------------------

def _round_half_away(value: float) -> int:
    rounded = math.floor(abs(value) + 0.5)
    return rounded if value >= 0 else -rounded


def _check_poll(poll: Any) -> None:
    _check_instance(poll, "poll", Poll)

    if poll.duration is not None:
        if not _is_number(poll.duration):
            _fail("invalid poll.duration value type (expects number)")
        if not math.isfinite(poll.duration):
            _fail("invalid poll.duration value (expects a finite number)")
        hours = _round_half_away(poll.duration)
        poll.duration = min(max(hours, limits.POLL_MIN_DURATION_HOURS), limits.POLL_MAX_DURATION_HOURS)

    _check_instance(poll.question, "poll.question", PollQuestion)
    if _check_text(poll.question.text, "question.text", limits.POLL_QUESTION_MAX_CHARS, required=True) == 0:
        _fail("question.text cannot be empty")

    _check_array(poll.answers, "poll.answers")
    if len(poll.answers) > limits.POLL_MAX_ANSWERS:
        _fail("too many poll.answers")
    for answer in poll.answers:
        _check_instance(answer, "poll.answers item", PollAnswer)
        media = answer.poll_media
        _check_instance(media, "answer.poll_media", PollMedia)
        _check_text(media.text, "poll_media.text", limits.POLL_ANSWER_MAX_CHARS)
        if media.emoji is not None:
            _check_instance(media.emoji, "poll_media.emoji", PollEmoji)

    _check_bool(poll.allow_multiselect, "poll.allow_multiselect")
