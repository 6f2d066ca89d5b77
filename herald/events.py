"""
Herald events (listeners registered on the client hub).

- Event: base listener; subclasses set name (and optionally enabled) and
  implement run(*args). Disabled events are catalogued but not subscribed.
- MessageCreate: "MESSAGE_CREATE" → Dispatcher.handle_message.
- UnknownCommand: "UNKNOWN_COMMAND", disabled by default. Subclass it to
  implement fallback routing (for example forwarding an unknown token to a
  search command).
"""
from .logs import get_logger
from .utils import *

logger = get_logger(__name__)


class Event:
    name = Unset
    enabled = True

    def __init__(self, client, name=Unset, /, *, enabled=Unset):
        if not isinstance(name := coalesce(name, type(self).name), str):
            raise TypeError(f"{type(self).__name__} name must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{type(self).__name__} name cannot be empty")
        self.client = client
        self.name = name
        self.enabled = bool(coalesce(enabled, type(self).enabled))

    async def __call__(self, *args):
        return await self.run(*args)

    async def run(self, *args):
        raise NotImplementedError(f"{type(self).__name__} doesn't have a run() method")

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r}, enabled={self.enabled!r})"


class MessageCreate(Event):
    name = "MESSAGE_CREATE"

    async def run(self, message):
        return await self.client.dispatcher.handle_message(message)


class UnknownCommand(Event):
    name = "UNKNOWN_COMMAND"
    enabled = False

    async def run(self, message, token, payload):
        logger.debug("unknown command", token=token, user=message.author.id, channel=message.channel_id)


__all__ = (
    "Event",
    "MessageCreate",
    "UnknownCommand",
)
