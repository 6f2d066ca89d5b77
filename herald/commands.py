"""
Herald commands, subcommands and groups.

Overview
- Group: a named bucket of commands (id, display name, command map).
- Throttling / Throttle: per-user soft rate limit of a command.
- Command: identity (name, aliases, group), throttling policy, optional
  argument collector and optional regex patterns. Subclasses implement
  run(message, args); pre_run() is the dispatch entry point.
  A subcommand is a Command whose parent names its owning command; it is
  attached to that parent at registration time.
- command(): decorator turning an `async def fn(command, message, args)` into
  a Command subclass the registry can instantiate.

Invocation
- pre_run(message, payload)
  1. throttling, skipped for owners: an invocation beyond the window's usages
     is dropped silently.
  2. argument collection when the command declares args and the payload is
     a raw argument string (pattern matches are passed through untouched).
  3. run(message, args) with the resolved values keyed by argument key.

Metadata (sanitized on construction)
- name: non-empty string without whitespace, lowercased.
- aliases: iterable of such strings; duplicates (with the name too) rejected.
- group: non-empty group id.
- description / format: None | str.
- throttling: None | Throttling | mapping {"usages", "duration"}.
- args: None | iterable of Argument declarations.
- patterns: None | iterable of str or compiled regex.
- parent: None | name of the owning command.
"""
import inspect
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from time import monotonic
from types import MappingProxyType
from typing import NamedTuple

from .arguments import ArgumentCollector
from .faults import *
from .logs import get_logger
from .messages import tokenize
from .utils import *

logger = get_logger(__name__)


class Throttling(NamedTuple):
    usages: int
    duration: float


@dataclass(slots=True)
class Throttle:
    start: float
    usages: int = 0


def _sanitize_name(name, what, /):
    if not isinstance(name, str):
        raise TypeError(f"command {what} must be a string")
    elif not (name := name.strip().lower()):
        raise ValueError(f"command {what} cannot be empty")
    elif re.search(r"\s", name):
        raise ValueError(f"command {what} {name!r} cannot contain whitespace")
    return name


def _sanitize_identity(metadata, /):
    """
    Internal: validate name, aliases, group, parent, description and format.
    """
    metadata["name"] = _sanitize_name(metadata["name"], "name")

    if isinstance(aliases := metadata["aliases"], str) or not isinstance(aliases, Iterable):
        raise TypeError("command aliases must be an iterable of strings")
    aliases = [_sanitize_name(alias, "alias") for alias in aliases]
    if len({metadata["name"], *aliases}) != len(aliases) + 1:
        raise ValueError(f"command {metadata['name']!r} repeats its name or an alias")
    metadata["aliases"] = tuple(aliases)

    if metadata["group"] is Unset:
        raise MalformedDeclarationError(
            f"command {metadata['name']!r} doesn't declare a group",
            title="malformed declaration",
            code=FaultCode.MALFORMED_DECLARATION,
            hint="pass group=\"<group id>\"",
            command=metadata["name"],
        )
    elif not isinstance(group := metadata["group"], str):
        raise TypeError("command group must be a string")
    elif not (group := group.strip()):
        raise ValueError("command group cannot be empty")
    metadata["group"] = group

    if (parent := metadata["parent"]) is not None:
        metadata["parent"] = _sanitize_name(parent, "parent")

    for name in ("description", "format"):
        if (text := metadata[name]) is not None and not isinstance(text, str):
            raise TypeError(f"command {name} must be a string or None")


def _sanitize_behavior(metadata, /):
    """
    Internal: validate throttling and patterns.
    """
    match throttling := metadata["throttling"]:
        case None | Throttling():
            pass
        case Mapping():
            throttling = Throttling(throttling["usages"], throttling["duration"])
        case _:
            raise TypeError("command throttling must be a mapping, a Throttling or None")
    if throttling is not None:
        if isinstance(throttling.usages, bool) or not isinstance(throttling.usages, int) or throttling.usages < 1:
            raise ValueError("command throttling 'usages' must be a positive integer")
        elif isinstance(throttling.duration, bool) or not isinstance(throttling.duration, int | float) or throttling.duration <= 0:
            raise ValueError("command throttling 'duration' must be a positive number of seconds")
    metadata["throttling"] = throttling

    if (patterns := metadata["patterns"]) is not None:
        if isinstance(patterns, str | re.Pattern) or not isinstance(patterns, Iterable):
            raise TypeError("command patterns must be an iterable of regular expressions")
        metadata["patterns"] = tuple(
            pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)
            for pattern in patterns
        )


class Group:
    """
    A group of commands.

    The command map holds top-level commands by name and subcommands under
    "parent name".
    """

    def __init__(self, client, id, /, name=Unset):
        if not isinstance(id, str):
            raise TypeError("group id must be a string")
        elif not (id := id.strip()):
            raise ValueError("group id cannot be empty")
        if not isinstance(name := coalesce(name, id), str):
            raise TypeError("group name must be a string")
        self._client = client
        self._id = id
        self._name = name.strip() or id
        self._commands = {}

    @property
    def client(self):
        return self._client

    @property
    def id(self):
        return self._id

    @property
    def name(self):
        return self._name

    @property
    def commands(self):
        return MappingProxyType(self._commands)

    def __rich_repr__(self):
        yield "id", self._id
        yield "name", self._name
        yield "commands", list(self._commands)

    def __repr__(self):
        return "group(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


class Command:
    """
    Base class of every command.

    Example
        >>> class Ping(Command):
        ...     def __init__(self, client):
        ...         super().__init__(client, "ping", group="util", throttling={"usages": 2, "duration": 3})
        ...
        ...     async def run(self, message, args):
        ...         await self.client.post(message.channel_id, content="pong")
    """

    name = mirror("name")
    aliases = mirror("aliases")
    group_id = mirror("group")
    parent = mirror("parent")
    description = mirror("description")
    format = mirror("format")
    patterns = mirror("patterns")

    def __init__(
        self,
        client,
        name,
        /,
        aliases=(),
        group=Unset,
        description=None,
        format=None,
        throttling=None,
        args=None,
        patterns=None,
        parent=None,
        *,
        prompt_limit=Unset,
    ):
        metadata = {
            "name": name,
            "aliases": aliases,
            "group": group,
            "description": description,
            "format": format,
            "throttling": throttling,
            "patterns": patterns,
            "parent": parent,
        }
        _sanitize_identity(metadata)
        _sanitize_behavior(metadata)

        self._client = client
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._collector = None if args is None else ArgumentCollector(client, args, prompt_limit)
        self._group_ref = None
        self._subcommands = []
        self._throttles = {}

    @property
    def client(self):
        return self._client

    @property
    def throttling(self):
        return self._throttling

    @property
    def collector(self):
        return self._collector

    @property
    def group(self):
        """The registered Group, or None before registration."""
        return self._group_ref

    @property
    def is_subcommand(self):
        return self._parent is not None

    @property
    def subcommands(self):
        return tuple(self._subcommands)

    @property
    def qualified_name(self):
        return self._name if self._parent is None else f"{self._parent} {self._name}"

    def usage(self, prefix=Unset, /):
        """Render "<prefix><name> <format>" for help output."""
        text = coalesce(prefix, self._client.options.prefix) + self.qualified_name
        return text if self._format is None else f"{text} {self._format}"

    def matches(self, search, /):
        """Case-insensitive match against the name or any alias."""
        return (search := search.lower()) == self._name or search in self._aliases

    def find_subcommand(self, search, /):
        for subcommand in self._subcommands:
            if subcommand.matches(search):
                return subcommand
        return None

    def throttle(self, user_id, /):
        """
        Fetch or open the throttle window of a user; elapsed windows are purged.
        """
        now = monotonic()
        duration = self._throttling.duration
        for key in [key for key, throttle in self._throttles.items() if now - throttle.start >= duration]:
            del self._throttles[key]
        if (throttle := self._throttles.get(user_id)) is None:
            throttle = self._throttles[user_id] = Throttle(now)
        return throttle

    async def pre_run(self, message, payload=None, /):
        """
        Throttle, collect arguments, then run.

        Returns True when run() was invoked, False when the invocation was
        dropped by throttling or the argument collection was cancelled.
        """
        user = message.author.id
        if self._throttling is not None and user not in self._client.options.owners:
            throttle = self.throttle(user)
            if throttle.usages + 1 > self._throttling.usages:
                logger.info("throttled", command=self.qualified_name, user=user)
                return False
            throttle.usages += 1

        args = payload
        if self._collector is not None and (payload is None or isinstance(payload, str)):
            provided = tokenize(payload or "", len(self._collector))
            result = await self._collector.obtain(message, provided)
            if result.cancelled is not None:
                logger.info("collection cancelled", command=self.qualified_name, user=user, reason=result.cancelled)
                return False
            args = result.values

        logger.debug("running", command=self.qualified_name, user=user, channel=message.channel_id)
        await self.run(message, args)
        return True

    async def run(self, message, args, /):
        raise NotImplementedError(f"{type(self).__name__} doesn't have a run() method")

    def __rich_repr__(self):
        yield "name", self._name
        if self._aliases:
            yield "aliases", list(self._aliases)
        yield "group", self._group
        if self._parent is not None:
            yield "parent", self._parent
        if self._throttling is not None:
            yield "throttling", tuple(self._throttling)
        if self._collector is not None:
            yield "args", [argument.key for argument in self._collector]
        if self._subcommands:
            yield "subcommands", [subcommand.name for subcommand in self._subcommands]

    def __repr__(self):
        return "command(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


def command(**metadata):
    """
    Turn a coroutine function into a Command subclass.

    The name defaults to the function name; every other keyword is passed to
    Command (group is required). The callback receives (command, message,
    args). The produced class takes the client as its only constructor
    argument, so registries instantiate it like a hand-written subclass.

    Example
        >>> @command(group="util", description="Reply with pong.")
        ... async def ping(command, message, args):
        ...     await command.client.post(message.channel_id, content="pong")
    """
    def wrapper(callback):
        if not inspect.iscoroutinefunction(callback):
            raise TypeError("@command() must be applied to a coroutine function")
        options = dict(metadata)
        name = options.pop("name", callback.__name__)

        def __init__(self, client, /):
            Command.__init__(self, client, name, **options)

        async def run(self, message, args, /):
            return await callback(self, message, args)

        return type(callback.__name__, (Command,), {
            "__init__": rename(__init__, "__init__"),
            "run": rename(run, "run"),
            "__doc__": callback.__doc__,
            "__module__": callback.__module__,
            "__qualname__": callback.__qualname__,
        })

    return rename(wrapper, "command")


__all__ = (
    "Group",
    "Throttling",
    "Throttle",
    "Command",
    "command",
)
