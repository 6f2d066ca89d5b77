"""
Herald dispatcher (decides whether and which command a message invokes).

Flow
- should_handle_message(): drop messages from bots, from the client itself
  and from (author, channel) pairs that are answering a prompt.
- parse_message(), in priority order:
  1. pattern commands: the first declared regex that matches the content
     wins; the payload is the match (full match followed by its groups).
  2. "<@id> [prefix] command [subcommand]" (when mentions are enabled) or
     "prefix command [subcommand]", case-insensitive.
  3. resolution through the registry; an unmatched subcommand token stays
     in the parent's argument string.
- handle_message(): parse, then run the command's pre_run(); an unknown
  first token emits "UNKNOWN_COMMAND" with (message, token, argument string).

Exceptions raised by commands propagate to the caller of handle_message().
"""
import functools
import re
from contextlib import contextmanager
from typing import NamedTuple

from .logs import get_logger

logger = get_logger(__name__)


class Invocation(NamedTuple):
    """Parsed invocation; command is None when the first token is unknown."""

    command: object
    payload: object
    token: str | None = None


@functools.cache
def _invocation_pattern(id, prefix, mentions, /):
    prefix = re.escape(prefix)
    if mentions:
        head = rf"<@!?{re.escape(id)}>\s+(?:{prefix}\s*)?|{prefix}\s*"
    else:
        head = rf"{prefix}\s*"
    return re.compile(rf"^({head})(\S+) ?(\S+)?", re.IGNORECASE)


class Dispatcher:
    def __init__(self, client, /):
        self._client = client
        self._awaiting = set()

    @property
    def client(self):
        return self._client

    @property
    def pending(self):
        """Snapshot of the (user id, channel id) pairs answering a prompt."""
        return frozenset(self._awaiting)

    @contextmanager
    def awaiting(self, message, /):
        """Mark the (author, channel) pair of message as answering a prompt."""
        key = (message.author.id, message.channel_id)
        self._awaiting.add(key)
        try:
            yield key
        finally:
            self._awaiting.discard(key)

    def is_awaiting(self, user_id, channel_id, /):
        return (user_id, channel_id) in self._awaiting

    def should_handle_message(self, message, /):
        if message.author.bot:
            return False
        elif message.author.id == self._client.options.id:
            return False
        elif self.is_awaiting(message.author.id, message.channel_id):
            return False
        return True

    def parse_message(self, message, /):
        """
        Match message content against pattern commands, then the prefix and
        mention syntax. Returns an Invocation, or None when the message is
        not an invocation at all.
        """
        content = message.content
        for command in self._client.registry.commands.values():
            for pattern in command.patterns or ():
                if match := pattern.search(content):
                    return Invocation(command, (match[0], *match.groups()))

        options = self._client.options
        if not (match := _invocation_pattern(options.id, options.prefix, options.mentions).match(content)):
            return None

        token, sub = match[2], match[3]
        payload = content[match.end(2):].strip()
        if (command := self._client.registry.find_command(token, sub)) is None:
            return Invocation(None, payload, token)
        if command.is_subcommand:
            payload = payload[len(sub):].strip()
        return Invocation(command, payload, token)

    async def handle_message(self, message, /):
        """
        Route one inbound message. Returns True when a command ran.
        """
        if not self.should_handle_message(message):
            return False
        if (invocation := self.parse_message(message)) is None:
            return False
        if invocation.command is None:
            logger.debug("unknown command", token=invocation.token, user=message.author.id)
            await self._client.emit("UNKNOWN_COMMAND", message, invocation.token, invocation.payload)
            return False

        logger.debug(
            "dispatching",
            command=invocation.command.qualified_name,
            user=message.author.id,
            channel=message.channel_id,
        )
        return await invocation.command.pre_run(message, invocation.payload)


__all__ = (
    "Dispatcher",
    "Invocation",
)
