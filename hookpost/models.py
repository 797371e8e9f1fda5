"""Typed webhook message models and their wire serialization."""

from __future__ import annotations

from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from datetime import datetime
from enum import IntFlag
from typing import Any, Iterable, Literal, Union


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Color:
    """An RGB color, 0-255 per channel."""

    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not isinstance(channel, int) or isinstance(channel, bool):
                raise TypeError(f"color channel must be an int, got {type(channel).__name__}")
            if not 0 <= channel <= 255:
                raise ValueError(f"color channel out of range: {channel}")

    def to_hex(self) -> str:
        return f"{self.r:02X}{self.g:02X}{self.b:02X}"

    @classmethod
    def from_hex(cls, value: str) -> Color:
        value = value.lstrip("#")
        if len(value) != 6:
            raise ValueError(f"expected 6 hex digits, got {value!r}")
        return cls(int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))

    @classmethod
    def from_floats(cls, r: float, g: float, b: float) -> Color:
        """Build from 0-1 channels, the way Roblox ``Color3`` stores them."""
        return cls(round(r * 255), round(g * 255), round(b * 255))


class MessageFlag(IntFlag):
    SUPPRESS_EMBEDS = 1 << 2
    SUPPRESS_NOTIFICATIONS = 1 << 12


@dataclass(frozen=True)
class IntegerFlags:
    value: int

    def to_int(self) -> int:
        return self.value


@dataclass(frozen=True)
class BinaryFlags:
    """A 2-byte unsigned bitfield. Any other length reads as no flags."""

    data: bytes
    byteorder: Literal["little", "big"] = "little"

    def to_int(self) -> int:
        if len(self.data) != 2:
            return 0
        return int.from_bytes(self.data, self.byteorder, signed=False)


@dataclass(frozen=True)
class NamedFlagSet:
    """Flag names such as ``SUPPRESS_EMBEDS``; unknown names count as 0."""

    names: frozenset[str]

    @classmethod
    def of(cls, names: Iterable[str | MessageFlag]) -> NamedFlagSet:
        return cls(frozenset(n.name if isinstance(n, MessageFlag) else n for n in names))

    def to_int(self) -> int:
        total = 0
        for name in self.names:
            member = MessageFlag.__members__.get(name)
            if member is not None:
                total += member.value
        return total


FlagsVariant = Union[IntegerFlags, BinaryFlags, NamedFlagSet]
Timestamp = Union[datetime, int, float, str]


# ---------------------------------------------------------------------------
# Message structure
# ---------------------------------------------------------------------------

@dataclass
class EmbedFooter:
    text: str | None = None
    icon_url: str | None = None


@dataclass
class EmbedImage:
    url: str


@dataclass
class EmbedThumbnail:
    url: str


@dataclass
class EmbedAuthor:
    name: str
    url: str | None = None
    icon_url: str | None = None


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool | None = None


@dataclass
class Embed:
    title: str | None = None
    description: str | None = None
    url: str | None = None
    color: Color | int | None = None
    timestamp: Timestamp | None = None
    footer: EmbedFooter | None = None
    image: EmbedImage | None = None
    thumbnail: EmbedThumbnail | None = None
    author: EmbedAuthor | None = None
    fields: list[EmbedField] | None = None


@dataclass
class AllowedMentions:
    parse: list[str] | set[str] | None = None
    roles: list[int] | set[int] | None = None
    users: list[int] | set[int] | None = None


@dataclass
class PollEmoji:
    id: int | None = None
    name: str | None = None


@dataclass
class PollMedia:
    text: str | None = None
    emoji: PollEmoji | None = None


@dataclass
class PollAnswer:
    poll_media: PollMedia


@dataclass
class PollQuestion:
    text: str


@dataclass
class Poll:
    question: PollQuestion
    answers: list[PollAnswer] = field(default_factory=list)
    duration: float | None = None
    allow_multiselect: bool | None = None


@dataclass
class OutgoingMessage:
    content: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    embeds: list[Embed] | None = None
    poll: Poll | None = None
    tts: bool | None = None
    allowed_mentions: AllowedMentions | None = None
    flags: FlagsVariant | int | bytes | Iterable[str] | None = None
    thread_name: str | None = None
    applied_tags: list[int] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OutgoingMessage:
        """Build a message from a Discord-shaped dict (e.g. loaded from JSON).

        Values of the wrong shape are kept as-is so validation can report them.
        """
        data = dict(data)
        embeds = data.get("embeds")
        if isinstance(embeds, list):
            data["embeds"] = [_embed_from_dict(e) for e in embeds]
        data["poll"] = _poll_from_dict(data.get("poll"))
        mentions = data.get("allowed_mentions")
        if isinstance(mentions, dict):
            data["allowed_mentions"] = _build(AllowedMentions, mentions)
        flags = data.get("flags")
        if isinstance(flags, list):
            data["flags"] = NamedFlagSet.of(flags)
        return cls(**data)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body Discord expects, dropping unset fields."""
        return _to_wire(self)


def _build(model: type, data: dict[str, Any]) -> Any:
    # Missing required keys become None so validation can name them
    kwargs: dict[str, Any] = {
        f.name: None
        for f in fields(model)
        if f.default is MISSING and f.default_factory is MISSING
    }
    kwargs.update(data)
    return model(**kwargs)


def _embed_from_dict(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    data = dict(data)
    nested = {
        "footer": EmbedFooter,
        "image": EmbedImage,
        "thumbnail": EmbedThumbnail,
        "author": EmbedAuthor,
    }
    for key, model in nested.items():
        if isinstance(data.get(key), dict):
            data[key] = _build(model, data[key])
    color = data.get("color")
    if isinstance(color, str):
        try:
            data["color"] = Color.from_hex(color)
        except ValueError:
            pass  # left as str; validation rejects the type
    if isinstance(data.get("fields"), list):
        data["fields"] = [
            _build(EmbedField, f) if isinstance(f, dict) else f for f in data["fields"]
        ]
    return _build(Embed, data)


def _poll_from_dict(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    data = dict(data)
    if isinstance(data.get("question"), dict):
        data["question"] = _build(PollQuestion, data["question"])
    answers = data.get("answers")
    if isinstance(answers, list):
        parsed = []
        for answer in answers:
            media = answer.get("poll_media") if isinstance(answer, dict) else None
            if isinstance(media, dict):
                media = dict(media)
                if isinstance(media.get("emoji"), dict):
                    media["emoji"] = _build(PollEmoji, media["emoji"])
                parsed.append(PollAnswer(poll_media=_build(PollMedia, media)))
            else:
                parsed.append(answer)
        data["answers"] = parsed
    return _build(Poll, data)


def _to_wire(value: Any) -> Any:
    if isinstance(value, (IntegerFlags, BinaryFlags, NamedFlagSet)):
        return value.to_int()
    if isinstance(value, Color):
        return int(value.to_hex(), 16)
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _to_wire(getattr(value, f.name))
            for f in fields(value)
            if getattr(value, f.name) is not None
        }
    if isinstance(value, (list, tuple)):
        return [_to_wire(v) for v in value]
    if isinstance(value, (set, frozenset)):
        # ints before strs so mixed snowflake sets still sort
        return sorted((_to_wire(v) for v in value), key=lambda v: (isinstance(v, str), v))
    return value
