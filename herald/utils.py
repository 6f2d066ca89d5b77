"""
Herald utilities (shared helpers used by every layer)

Scope
- Small building blocks with stable semantics, kept apart from the routing and
  argument layers so those can stay focused on chat-bot behavior.

Overview
- UnsetType / Unset
  • Singleton sentinel meaning “not declared”, distinct from None, so a
    declaration can tell an omitted field from one explicitly set to None.

- coalesce(value, default=None)
  • Replace Unset with a concrete default; None/0/""/[] are preserved.

- rename(callable, name) / @rename("name")
  • Give generated callables (e.g. command() wrappers) a stable identity.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr);
    containers are copied so callers cannot mutate catalog state.

- settle(result)
  • Await a result only when it is awaitable (sync or async hooks alike).

- mglob(pattern)
  • Expand "bot.commands.**" style patterns into importable module names; used
    by the registry to load commands, types and events from a directory tree.

Quick examples
    >>> coalesce(Unset, "=")
    '='
    >>> coalesce(None, "=") is None
    True
"""
import builtins
import functools
import importlib
import inspect
import pkgutil
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for “no value declared”.

    Declarations use it for fields that fall back to another field when
    omitted (an argument label falls back to its key, a group name to its id).

    Characteristics
    - Boolean-false, printable as "Unset", sealed, one instance per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns object unless it is Unset, in which case default is returned.
    Falsey values such as None, 0 or "" are returned untouched.

    Examples
    - coalesce("darling", "=") -> "darling"
    - coalesce(Unset, "=")     -> "="
    - coalesce(None, "=")      -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name)           -> decorator

    Raises
    - TypeError on wrong arity, a non-callable target, a non-string name, or
      a callable whose metadata cannot be updated.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


async def settle(result, /):
    """
    Await result when it is awaitable, otherwise return it unchanged.

    Validators, parsers, defaults and transports may be plain functions or
    coroutine functions; callers funnel every result through settle().
    """
    if inspect.isawaitable(result):
        return await result
    return result


def _detach(object):
    """
    Recursively copy containers so a mirrored field can be handed out safely.

    - Sequence (non-string) → list, Mapping → dict (keys kept), Set → set.
    - Anything else is returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_detach, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_detach, object.values())))
    elif isinstance(object, Set):
        return set(map(_detach, object))
    return object


def mirror(name, /):
    """
    Define a read-only property serving a copy of the private field "_{name}".

    Example
    - Given self._aliases, declare aliases = mirror("aliases").
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def _translate_segment(segment):
    """
    Translate one dotted segment of a module glob into a regex snippet.

    Supported: '*' (any run of non-dot chars), '?' (one non-dot char),
    '[...]' / '[!...]' (character classes) and '\\x' (literal x).
    """
    parts = []
    index = 0
    while index < len(segment):
        char = segment[index]
        if char == "\\" and index + 1 < len(segment):
            parts.append(re.escape(segment[index + 1]))
            index += 2
            continue
        if char == "*":
            parts.append(r"[^.]*")
        elif char == "?":
            parts.append(r"[^.]")
        elif char == "[" and (close := segment.find("]", index + 1)) != -1:
            body = segment[index + 1:close]
            if body[:1] in ("!", "^"):
                body = "^" + body[1:]
            parts.append(f"[{body}]")
            index = close
        else:
            parts.append(re.escape(char))
        index += 1
    return "".join(parts)


@functools.cache
def _compile_glob(pattern):
    """
    Compile a dotted module glob; a '**' segment spans zero or more segments.
    """
    head, *tail = pattern.split(".")
    body = _translate_segment(head)
    for segment in tail:
        if segment == "**":
            body += r"(?:\.[A-Za-z_]\w*)*"
        else:
            body += r"\." + _translate_segment(segment)
    return re.compile(body)


def mglob(source, /):
    """
    Expand a dotted module glob into fully-qualified, importable module names.

    rules
    - the pattern must start with at least one concrete package segment.
    - without wildcards, the pattern itself is returned (import errors surface
      later, at import time).
    - matches are sorted; an unimportable concrete prefix yields [].

    examples
    - "bot.commands.*"      → direct children of bot.commands
    - "bot.commands.**"     → bot.commands and everything below it
    - "bot.types.[a-m]*"    → bot.types.boolean, bot.types.float, ...
    """
    if not isinstance(source, str):
        raise TypeError("mglob() argument must be a string")
    elif not (source := source.strip()):
        raise ValueError("mglob() argument must be a non-empty string")

    if re.fullmatch(r"(?!\d)\w+(\.(?!\d)\w+)*", source):
        return [source]

    prefixes = []
    for segment in source.split("."):
        if not re.fullmatch(r"(?!\d)\w+", segment):
            break
        prefixes.append(segment)

    if not prefixes:
        raise ValueError("mglob() pattern must start with a concrete package segment")

    try:
        package = importlib.import_module(prefix := ".".join(prefixes))
    except ImportError:
        return []

    matches = set()
    if (pattern := _compile_glob(source)).fullmatch(prefix):
        matches.add(prefix)

    for metadata in pkgutil.walk_packages(getattr(package, "__path__", ()), prefix + "."):
        if pattern.fullmatch(name := metadata.name):
            matches.add(name)

    return sorted(matches)


Unset = UnsetType()
"""
Sentinel for “not declared”.

Notes
- Distinct from None: label=None on an argument is rejected, while an
  omitted label (Unset) falls back to the argument key.
- Falsey, but never equal to None or 0.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "mglob",
    "settle",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
