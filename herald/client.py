"""
Herald client (the context object shared by every component).

A Client is built explicitly and handed to the registry, the dispatcher,
commands, arguments and types; nothing in herald reaches for a global.

- options: Options (id, prefix, owners, prompt_limit, wait, mentions)
- registry / dispatcher: built by the client, built-in types and events
  registered unless defaults=False
- transport: outbound collaborator exposing post(channel_id, *, content, embed)
- event hub: on(), off(), emit()
- feed(payload): the single inbound entry point
- async with client: runs every fed message in its own task, so a host can
  feed messages one after another while earlier ones wait for answers

Example
    >>> client = Client(Options("1234", prefix="darling"), transport)
    >>> client.registry.register_group("music", "Music")
    >>> client.registry.register_commands_in("bot.commands.**")
    >>> async with client:
    ...     await client.feed({"id": "1", "channel_id": "9", "author": {"id": "42"}, "content": "darling queue remove"})
    ...     await client.feed({"id": "2", "channel_id": "9", "author": {"id": "42"}, "content": "2"})
"""
from collections import defaultdict

import anyio

from .argtypes import BUILTIN_TYPES
from .dispatcher import Dispatcher
from .events import MessageCreate, UnknownCommand
from .faults import HeraldException, report
from .logs import get_logger
from .messages import Message, MessageCollector, handoff
from .options import Options
from .registry import Registry
from .utils import settle

logger = get_logger(__name__)


class Client:
    def __init__(self, options, /, transport=None, *, defaults=True):
        if not isinstance(options, Options):
            raise TypeError("client options must be an Options instance")
        self._options = options
        self._transport = transport
        self._listeners = defaultdict(list)
        self._collectors = set()
        self._tasks = None
        self._registry = Registry(self)
        self._dispatcher = Dispatcher(self)
        if defaults:
            self._registry.register_types(BUILTIN_TYPES)
            self._registry.register_events((MessageCreate, UnknownCommand))

    @property
    def options(self):
        return self._options

    @property
    def id(self):
        return self._options.id

    @property
    def prefix(self):
        return self._options.prefix

    @property
    def registry(self):
        return self._registry

    @property
    def dispatcher(self):
        return self._dispatcher

    @property
    def transport(self):
        return self._transport

    @property
    def running(self):
        """Whether fed messages are dispatched in background tasks."""
        return self._tasks is not None

    async def __aenter__(self):
        if self._tasks is not None:
            raise RuntimeError("client is already running")
        tasks = anyio.create_task_group()
        await tasks.__aenter__()
        self._tasks = tasks
        return self

    async def __aexit__(self, *exc_info):
        # Waits for every dispatch still in flight.
        try:
            return await self._tasks.__aexit__(*exc_info)
        finally:
            self._tasks = None

    # -- event hub ------------------------------------------------------------

    def on(self, name, listener, /):
        if not callable(listener):
            raise TypeError("listener must be callable")
        self._listeners[name].append(listener)
        return listener

    def off(self, name, listener, /):
        if listener in (listeners := self._listeners.get(name, [])):
            listeners.remove(listener)

    async def emit(self, name, /, *args):
        """
        Await every listener of name in registration order.

        A failing listener does not stop the others: its exception is emitted
        as "error" (error, name, args). Without an "error" listener, or when an
        "error" listener fails itself, the exception is logged and herald
        faults are also rendered on the console.
        """
        for listener in tuple(self._listeners.get(name, ())):
            try:
                await settle(listener(*args))
            except Exception as error:
                if name != "error" and self._listeners.get("error"):
                    await self.emit("error", error, name, args)
                    continue
                logger.error("listener failed", listener=name, exc_info=error)
                if isinstance(error, HeraldException):
                    report(error)

    # -- inbound / outbound ---------------------------------------------------

    async def feed(self, payload, /):
        """
        Accept one inbound message (a Message or a raw record): open
        collectors see it first, then "MESSAGE_CREATE" is emitted.

        Inside `async with client:` the emit runs in its own task and feed()
        returns as soon as that dispatch finishes or starts waiting for an
        answer, so the next feed() can deliver it; the block exits after every
        dispatch has finished. Outside of it, feed() awaits the whole
        dispatch, prompts included, so an answer can only arrive through a
        concurrent feed().

        Exceptions raised by listeners (commands included) never reach the
        caller: they are emitted as "error", or logged when nothing listens.
        """
        message = payload if isinstance(payload, Message) else Message.from_payload(payload)
        for collector in tuple(self._collectors):
            collector.collect(message)
        if self._tasks is not None:
            await self._tasks.start(self._dispatch, message)
        else:
            await self.emit("MESSAGE_CREATE", message)
        return message

    async def _dispatch(self, message, /, *, task_status=anyio.TASK_STATUS_IGNORED):
        released = False

        def release():
            nonlocal released
            if not released:
                released = True
                task_status.started()

        token = handoff.set(release)
        try:
            await self.emit("MESSAGE_CREATE", message)
        finally:
            handoff.reset(token)
        release()

    async def post(self, channel_id, /, *, content=None, embed=None):
        if self._transport is None:
            logger.warning("no transport, message not posted", channel=channel_id)
            return None
        return await settle(self._transport.post(channel_id, content=content, embed=embed))

    def collect(self, channel_id, filter=None, /, **options):
        return MessageCollector(self, channel_id, filter, **options)

    def __rich_repr__(self):
        yield "options", self._options
        yield "registry", self._registry

    def __repr__(self):
        return f"client(id={self._options.id!r}, prefix={self._options.prefix!r})"


__all__ = (
    "Client",
)
