"""
Inbound messages, the argument tokenizer and answer collection.

Overview
- Author / Message: immutable records built from the inbound payload
  ({id, guild_id?, channel_id, author: {id, bot, username, discriminator},
  content, timestamp}).
- tokenize(text, count): quote-aware whitespace split used to turn a raw
  argument string into positional values.
- MessageCollector: waits for answers in one channel while an argument is
  prompting; fed by Client.feed() before normal dispatch.
"""
import re
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field

import anyio

from .logs import get_logger

logger = get_logger(__name__)

# Set by the client for a dispatch running in the background; called once the
# dispatch starts waiting for an answer.
handoff = ContextVar("herald_handoff", default=None)

_TOKEN = re.compile(r'\s*(?:(["\'])(.*?)\1|(\S+))\s*', re.S)
_TOKEN_DOUBLE = re.compile(r'\s*(?:(")(.*?)"|(\S+))\s*', re.S)
_QUOTED = re.compile(r'(["\'])(.*)\1', re.S)
_QUOTED_DOUBLE = re.compile(r'(")(.*)"', re.S)


@dataclass(frozen=True, slots=True)
class Author:
    id: str
    bot: bool = False
    username: str = ""
    discriminator: str = ""
    avatar: str | None = None

    @property
    def tag(self):
        return f"{self.username}#{self.discriminator}"


@dataclass(frozen=True, slots=True)
class Message:
    id: str
    channel_id: str
    author: Author
    content: str = ""
    guild_id: str | None = None
    timestamp: str | None = None
    attachments: tuple = field(default=())

    @classmethod
    def from_payload(cls, payload, /):
        """
        Build a Message from an inbound record.

        Raises
        - TypeError when the record misses its channel_id or author.
        """
        if not isinstance(author := payload.get("author"), Mapping):
            raise TypeError("message payload must carry an 'author' mapping")
        elif (channel_id := payload.get("channel_id")) is None:
            raise TypeError("message payload must carry a 'channel_id'")

        return cls(
            id=str(payload.get("id", "")),
            channel_id=str(channel_id),
            author=Author(
                id=str(author["id"]),
                bot=bool(author.get("bot", False)),
                username=author.get("username", ""),
                discriminator=author.get("discriminator", ""),
                avatar=author.get("avatar"),
            ),
            content=payload.get("content") or "",
            guild_id=None if (guild := payload.get("guild_id")) is None else str(guild),
            timestamp=payload.get("timestamp"),
            attachments=tuple(payload.get("attachments") or ()),
        )


def tokenize(text, count=0, /, *, single_quotes=True):
    """
    Split an argument string on whitespace, keeping quoted runs together.

    Parameters
    - count: maximum number of tokens; the last one absorbs the unconsumed
      remainder verbatim (minus one pair of surrounding quotes). 0 means no
      limit.
    - single_quotes: also treat '...' as a quoted run.

    Examples
        >>> tokenize('add "hello world" rest of it', 3)
        ['add', 'hello world', 'rest of it']
        >>> tokenize("a 'b c' d")
        ['a', 'b c', 'd']
    """
    if not text or not text.strip():
        return []

    pattern, quoted = (_TOKEN, _QUOTED) if single_quotes else (_TOKEN_DOUBLE, _QUOTED_DOUBLE)
    budget = count or len(text)
    tokens = []
    position = 0

    while (budget := budget - 1) > 0:
        if (match := pattern.match(text, position)) is None:
            return tokens
        tokens.append(match[2] if match[2] is not None else match[3])
        position = match.end()

    if position < len(text):
        remainder = text[position:]
        tokens.append(match[2] if (match := quoted.fullmatch(remainder)) else remainder)
    return tokens


class MessageCollector:
    """
    Buffer of messages awaited in one channel.

    Used as an async context manager: while open it is registered with the
    client hub, and every message fed to the client is offered to collect().
    Messages from other channels are ignored; messages rejected by the
    filter are counted in received but not buffered.

    Example
        >>> async with client.collect(channel_id, lambda m: m.author.id == "42") as collector:
        ...     answer = await collector.next(30)
    """

    def __init__(self, client, channel_id, filter=None, /, *, buffer=16):
        self._client = client
        self._channel_id = channel_id
        self._filter = filter
        self._send, self._receive = anyio.create_memory_object_stream(buffer)
        self.received = 0
        self.collected = []

    @property
    def channel_id(self):
        return self._channel_id

    def collect(self, message, /):
        """Offer a message; returns True when it was buffered."""
        if message.channel_id != self._channel_id:
            return False
        self.received += 1
        if self._filter is not None and not self._filter(message):
            return False
        try:
            self._send.send_nowait(message)
        except (anyio.WouldBlock, anyio.ClosedResourceError, anyio.BrokenResourceError):
            logger.debug("answer dropped", channel=self._channel_id, message=message.id)
            return False
        self.collected.append(message)
        return True

    async def next(self, wait=None, /):
        """Return the next buffered message, or None once wait seconds elapse."""
        if (release := handoff.get()) is not None:
            release()
        if wait is None:
            return await self._receive.receive()
        with anyio.move_on_after(wait):
            return await self._receive.receive()
        return None

    async def __aenter__(self):
        self._client._collectors.add(self)
        return self

    async def __aexit__(self, *exc_info):
        self._client._collectors.discard(self)
        self._send.close()
        self._receive.close()


__all__ = (
    "Author",
    "Message",
    "MessageCollector",
    "tokenize",
)
