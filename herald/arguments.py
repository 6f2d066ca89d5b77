r"""
Herald arguments (declaration, resolution and interactive prompting).

Overview
- Argument: one declared parameter of a command.
  • obtain(message, value): resolve a value from the raw token, the default,
    or by prompting the author in the channel.
  • validate/parse/is_empty: delegate to the custom hooks when declared,
    otherwise to the resolved argument type.

- ArgumentCollector: the ordered arguments of one command.
  • obtain(message, values): resolve every argument sequentially; the first
    cancellation discards all progress.

Metadata (sanitized on construction)
- key: non-empty string, unique within a collector.
- label: str (defaults to key), prompt: str (defaults to "Please enter the {label}.").
- error: None | str, replaces the type's message on a failed validation.
- type: None | str (type id, "a|b" for a union) | ArgumentType.
- min / max: None | number, min <= max.
- default: None (required) | object | callable(message, argument), sync or async.
- one_of: None | iterable (string members are lowercased).
- validate / parse / is_empty: None | callable(value, message, argument), sync or async.

Prompting
- START → empty with a default → default value
- START → non-empty and valid → parsed value
- START → empty without default, or invalid → PROMPTING
- PROMPTING → valid answer → parsed value
- PROMPTING → prompt limit reached → cancelled ("limit")
- PROMPTING → wait elapsed → cancelled ("time")
- PROMPTING → answer "cancel" → cancelled ("user")

Each prompt and each cancellation posts exactly one message through the
client. The prompt limit comes from the client options unless a collector
overrides it.
"""
from collections.abc import Iterable, Mapping
from typing import NamedTuple

from .argtypes import *
from .faults import *
from .logs import get_logger
from .utils import *

logger = get_logger(__name__)


class ArgumentResult(NamedTuple):
    value: object
    cancelled: str | None
    prompts: tuple
    answers: tuple


class CollectorResult(NamedTuple):
    values: dict | None
    cancelled: str | None
    prompts: tuple
    answers: tuple


def _sanitize_identity(metadata, /):
    """
    Internal: validate key, label, prompt and error in place.
    """
    if not isinstance(key := metadata["key"], str):
        raise TypeError("argument 'key' must be a string")
    elif not (key := key.strip()):
        raise ValueError("argument 'key' cannot be empty")
    metadata["key"] = key

    if not isinstance(label := coalesce(metadata["label"], key), str):
        raise TypeError("argument 'label' must be a string")
    elif not (label := label.strip()):
        raise ValueError("argument 'label' cannot be empty")
    metadata["label"] = label

    if not isinstance(prompt := coalesce(metadata["prompt"], f"Please enter the {label}."), str):
        raise TypeError("argument 'prompt' must be a string")
    elif not (prompt := prompt.strip()):
        raise ValueError("argument 'prompt' cannot be empty")
    metadata["prompt"] = prompt

    if (error := metadata["error"]) is not None and not isinstance(error, str):
        raise TypeError("argument 'error' must be a string or None")


def _sanitize_constraints(metadata, /):
    """
    Internal: validate min, max, one_of and the custom hooks in place.
    """
    for name in ("min", "max"):
        if (bound := metadata[name]) is not None and (isinstance(bound, bool) or not isinstance(bound, int | float)):
            raise TypeError(f"argument {name!r} must be a number or None")
    if metadata["min"] is not None and metadata["max"] is not None and metadata["min"] > metadata["max"]:
        raise ValueError("argument 'min' cannot be greater than 'max'")

    if (one_of := metadata["one_of"]) is not None:
        if isinstance(one_of, str) or not isinstance(one_of, Iterable):
            raise TypeError("argument 'one_of' must be a non-string iterable or None")
        metadata["one_of"] = frozenset(item.lower() if isinstance(item, str) else item for item in one_of)

    for name in ("validate", "parse", "is_empty"):
        if (hook := metadata[name]) is not None and not callable(hook):
            raise TypeError(f"argument {name!r} must be callable or None")


class Argument:
    """
    A declared command argument bound to a client.

    Example
        >>> argument = Argument(client, key="count", type="integer", min=1, prompt="Pick a number")
        >>> result = await argument.obtain(message, "3")
        >>> result.value
        3
    """

    key = mirror("key")
    label = mirror("label")
    prompt = mirror("prompt")
    error = mirror("error")
    min = mirror("min")
    max = mirror("max")
    one_of = mirror("one_of")

    def __init__(
        self,
        client,
        /,
        key,
        label=Unset,
        prompt=Unset,
        error=None,
        type=None,
        min=None,
        max=None,
        default=None,
        one_of=None,
        validate=None,
        parse=None,
        is_empty=None,
    ):
        metadata = {
            "key": key,
            "label": label,
            "prompt": prompt,
            "error": error,
            "min": min,
            "max": max,
            "one_of": one_of,
            "validate": validate,
            "parse": parse,
            "is_empty": is_empty,
        }
        _sanitize_identity(metadata)
        _sanitize_constraints(metadata)

        if type is None:
            if metadata["validate"] is None or metadata["parse"] is None:
                raise MalformedDeclarationError(
                    f"argument {metadata['key']!r} declares neither a type nor validate and parse hooks",
                    title="malformed declaration",
                    code=FaultCode.MALFORMED_DECLARATION,
                    hint="set type=\"string\" (or another registered type id)",
                    argument=metadata["key"],
                )
        elif isinstance(type, str):
            type = client.registry.resolve_type(type)
        elif not isinstance(type, ArgumentType):
            raise TypeError("argument 'type' must be a type id, an ArgumentType or None")

        self._client = client
        self._type = type
        self._default = default
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def client(self):
        return self._client

    @property
    def type(self):
        return self._type

    @property
    def default(self):
        return self._default

    @property
    def required(self):
        return self._default is None

    async def validate(self, value, message, /):
        """Return a Verdict; the error override replaces any failure message."""
        if self._validate is not None:
            result = verdict(await settle(self._validate(value, message, self)))
        else:
            result = verdict(await settle(self._type.validate(value, message, self)))
        if not result.valid and self._error is not None:
            return Verdict(False, self._error)
        return result

    async def parse(self, value, message, /):
        if self._parse is not None:
            return await settle(self._parse(value, message, self))
        return await settle(self._type.parse(value, message, self))

    async def is_empty(self, value, message, /):
        if self._is_empty is not None:
            return bool(await settle(self._is_empty(value, message, self)))
        elif self._type is not None:
            return bool(await settle(self._type.is_empty(value, message, self)))
        return not value

    async def obtain(self, message, value=None, /, *, prompt_limit=Unset):
        """
        Resolve this argument for one invocation, prompting when needed.

        Returns an ArgumentResult; value is None when cancelled is set.
        """
        limit = coalesce(prompt_limit, self._client.options.prompt_limit)
        wait = self._client.options.wait

        empty = await self.is_empty(value, message)
        if empty and self._default is not None:
            default = self._default
            if callable(default):
                default = await settle(default(message, self))
            return ArgumentResult(default, None, (), ())

        current = Verdict(False) if empty else await self.validate(value, message)
        if current.valid:
            return ArgumentResult(await self.parse(value, message), None, (), ())

        prompts = []
        answers = []

        def cancel(reason):
            logger.info("argument cancelled", argument=self._key, reason=reason,
                        user=message.author.id, channel=message.channel_id)
            return ArgumentResult(None, reason, tuple(prompts), tuple(answers))

        def same_author(answer):
            return answer.author.id == message.author.id

        async with self._client.collect(message.channel_id, same_author) as collector:
            while not current.valid:
                reason = self._prompt if empty else (current.message or f"You provided an invalid {self._label}. Please try again.")
                if len(prompts) >= limit:
                    await self._client.post(message.channel_id, content=f"{reason}\nCancelled command.")
                    return cancel("limit")

                text = reason + "\nRespond with `cancel` to cancel the command."
                if wait is not None:
                    text += f" The command will automatically be cancelled in {wait:g} seconds."
                await self._client.post(message.channel_id, content=text)
                prompts.append(text)

                if (answer := await collector.next(wait)) is None:
                    await self._client.post(message.channel_id, content="Cancelled command.")
                    return cancel("time")
                answers.append(answer)

                value = answer.content
                if value.strip().lower() == "cancel":
                    await self._client.post(message.channel_id, content="Cancelled command.")
                    return cancel("user")

                empty = await self.is_empty(value, message)
                current = Verdict(False) if empty else await self.validate(value, message)

        return ArgumentResult(await self.parse(value, message), None, tuple(prompts), tuple(answers))

    def __rich_repr__(self):
        yield "key", self._key
        if self._label != self._key:
            yield "label", self._label
        yield "type", None if self._type is None else self._type.id
        if self._default is not None:
            yield "default", self._default
        if self._one_of is not None:
            yield "one_of", sorted(map(str, self._one_of))
        if self._min is not None:
            yield "min", self._min
        if self._max is not None:
            yield "max", self._max

    def __repr__(self):
        return "argument(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


class ArgumentCollector:
    """
    Ordered arguments of one command, resolved one after another.

    Declarations are Argument instances or mappings of Argument keywords.

    Raises (at construction)
    - ArgumentOrderError when a required argument follows an optional one.
    - MalformedDeclarationError when two arguments share a key.
    """

    def __init__(self, client, args, /, prompt_limit=Unset):
        arguments = []
        optional = None
        for declaration in args:
            if isinstance(declaration, Mapping):
                declaration = Argument(client, **declaration)
            elif not isinstance(declaration, Argument):
                raise TypeError("collector arguments must be Argument instances or mappings")

            if any(argument.key == declaration.key for argument in arguments):
                raise MalformedDeclarationError(
                    f"duplicate argument key {declaration.key!r}",
                    title="malformed declaration",
                    code=FaultCode.MALFORMED_DECLARATION,
                    argument=declaration.key,
                )
            if declaration.required and optional is not None:
                raise ArgumentOrderError(
                    f"required argument {declaration.key!r} follows optional argument {optional.key!r}",
                    title="argument order",
                    code=FaultCode.ARGUMENT_ORDER,
                    hint="give it a default, or move it before every optional argument",
                    argument=declaration.key,
                )
            if not declaration.required:
                optional = declaration
            arguments.append(declaration)

        if prompt_limit is not Unset and (isinstance(prompt_limit, bool) or not isinstance(prompt_limit, int) or prompt_limit < 0):
            raise ValueError("collector 'prompt_limit' must be a non-negative integer")

        self._client = client
        self._args = tuple(arguments)
        self._prompt_limit = prompt_limit

    @property
    def client(self):
        return self._client

    @property
    def args(self):
        return self._args

    @property
    def prompt_limit(self):
        return coalesce(self._prompt_limit, self._client.options.prompt_limit)

    async def obtain(self, message, provided=(), /, *, prompt_limit=Unset):
        """
        Resolve every argument in declaration order.

        While collecting, the (author, channel) pair is pending on the
        dispatcher, so follow-up messages are answers, not invocations. The
        pair is released on every exit path, exceptions included.
        """
        limit = coalesce(prompt_limit, self._prompt_limit)
        values = {}
        prompts = []
        answers = []

        with self._client.dispatcher.awaiting(message):
            for index, argument in enumerate(self._args):
                result = await argument.obtain(
                    message,
                    provided[index] if index < len(provided) else None,
                    prompt_limit=limit,
                )
                prompts.extend(result.prompts)
                answers.extend(result.answers)
                if result.cancelled is not None:
                    return CollectorResult(None, result.cancelled, tuple(prompts), tuple(answers))
                values[argument.key] = result.value

        return CollectorResult(values, None, tuple(prompts), tuple(answers))

    def __len__(self):
        return len(self._args)

    def __iter__(self):
        return iter(self._args)


__all__ = (
    "Argument",
    "ArgumentResult",
    "ArgumentCollector",
    "CollectorResult",
)
