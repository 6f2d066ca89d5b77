"""
Herald argument types (validation, parsing and emptiness primitives).

Overview
- ArgumentType: base class of every type; identified by a lowercase id that is
  unique within a registry. Subclasses override validate/parse/is_empty, any
  of which may be plain or coroutine methods.
  • validate(value, message, argument) -> bool | str | Verdict
    A string result is a soft error shown to the user (it drives a reprompt).
  • parse(value, message, argument) -> object
  • is_empty(value, message, argument) -> bool (defaults to falsiness)

- Built-ins: BooleanType, IntegerType, FloatType, StringType.
  The integer, float and string types honour the declaring argument's
  one_of, min and max (bounds are string lengths for the string type).
  Numbers are plain ASCII decimals ("-12", "2.5"); exponents, digit
  separators and non-ASCII digits are rejected.

- UnionType: composite type built from an id such as "integer|string";
  constituents are tried in declaration order (priority).

- Verdict / verdict(): the normalized validation result. A failed verdict is
  recoverable; a union asked to parse a value no constituent accepts raises
  UnparsableValueError instead, since validate() has already been consulted.

Example
    >>> registry.register_types(BUILTIN_TYPES)
    >>> union = registry.resolve_type("integer|string")
    >>> await union.parse("42", message, argument)
    42
"""
import math
import re
from typing import NamedTuple

from .faults import *
from .utils import *

_IDENTIFIER = re.compile(r"[a-z0-9_\-]+(\|[a-z0-9_\-]+)*")
_INTEGER = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)", re.ASCII)


class Verdict(NamedTuple):
    """Normalized validation outcome: valid flag plus an optional user-facing message."""

    valid: bool
    message: str | None = None


def verdict(result, /):
    """
    Normalize a validator result into a Verdict.

    - Verdict → unchanged
    - str → invalid, with the string as message (a soft error)
    - anything else → valid when truthy, invalid otherwise
    """
    if isinstance(result, Verdict):
        return result
    elif isinstance(result, str):
        return Verdict(False, result)
    return Verdict(bool(result))


def _constraint(argument, name, /):
    return None if argument is None else getattr(argument, name, None)


def _check_number(number, argument, /):
    if (one_of := _constraint(argument, "one_of")) is not None and number not in one_of:
        return False
    if (minimum := _constraint(argument, "min")) is not None and number < minimum:
        return f"Please enter a number above or exactly {minimum}."
    if (maximum := _constraint(argument, "max")) is not None and number > maximum:
        return f"Please enter a number below or exactly {maximum}."
    return True


class ArgumentType:
    """
    Base class for argument types.

    Subclasses set a class-level id (or receive one at construction) and
    implement validate() and parse(). The client is kept for types that need
    context, such as UnionType looking up its constituents.
    """

    id = Unset

    def __init__(self, client, id=Unset, /):
        if not isinstance(id := coalesce(id, type(self).id), str):
            raise TypeError(f"{type(self).__name__} id must be a string")
        elif not (id := id.strip()):
            raise ValueError(f"{type(self).__name__} id cannot be empty")
        elif not _IDENTIFIER.fullmatch(id):
            raise ValueError(f"argument type id {id!r} must be lowercase (letters, digits, '_' or '-')")
        self.client = client
        self.id = id

    def validate(self, value, message, argument=None, /):
        raise NotImplementedError(f"{type(self).__name__} doesn't have a validate() method")

    def parse(self, value, message, argument=None, /):
        raise NotImplementedError(f"{type(self).__name__} doesn't have a parse() method")

    def is_empty(self, value, message, argument=None, /):
        return not value

    def __repr__(self):
        return f"{type(self).__name__}({self.id!r})"


class BooleanType(ArgumentType):
    id = "boolean"
    truthy = frozenset({"true", "t", "yes", "y", "on", "enable", "enabled", "1", "+"})
    falsy = frozenset({"false", "f", "no", "n", "off", "disable", "disabled", "0", "-"})

    def validate(self, value, message, argument=None, /):
        return (value := value.lower()) in self.truthy or value in self.falsy

    def parse(self, value, message, argument=None, /):
        if (value := value.lower()) in self.truthy:
            return True
        elif value in self.falsy:
            return False
        raise UnparsableValueError(
            f"unknown boolean value {value!r}",
            title="unparsable value",
            code=FaultCode.UNPARSABLE_VALUE,
            hint="validate() must accept a value before parse() is called",
        )


class IntegerType(ArgumentType):
    id = "integer"

    def validate(self, value, message, argument=None, /):
        if not _INTEGER.fullmatch(value := value.strip()):
            return False
        number = int(value, 10)
        return _check_number(number, argument)

    def parse(self, value, message, argument=None, /):
        return int(value.strip(), 10)


class FloatType(ArgumentType):
    id = "float"

    def validate(self, value, message, argument=None, /):
        if not _FLOAT.fullmatch(value := value.strip()):
            return False
        if not math.isfinite(number := float(value)):
            return False
        return _check_number(number, argument)

    def parse(self, value, message, argument=None, /):
        return float(value.strip())


class StringType(ArgumentType):
    id = "string"

    def validate(self, value, message, argument=None, /):
        if (one_of := _constraint(argument, "one_of")) is not None and value.lower() not in one_of:
            return False
        label = _constraint(argument, "label") or "value"
        if (minimum := _constraint(argument, "min")) is not None and len(value) < minimum:
            return f"Please keep the {label} above or exactly {minimum} characters."
        if (maximum := _constraint(argument, "max")) is not None and len(value) > maximum:
            return f"Please keep the {label} below or exactly {maximum} characters."
        return True

    def parse(self, value, message, argument=None, /):
        return value


class UnionType(ArgumentType):
    """
    Composite type trying its constituents in priority (declaration) order.

    - validate: valid when any constituent accepts the value; otherwise the
      soft errors of the constituents are joined with newlines, or False
      when none produced one. A bounds or one_of miss fails exactly like
      a type mismatch; there is no partial acceptance.
    - is_empty: only when every constituent considers the value empty.
    - parse: delegated to the first constituent that validates; when none
      does, UnparsableValueError is raised.

    Raises
    - UnknownTypeError at construction when a constituent id is not registered.
    """

    separator = "|"

    def __init__(self, client, id, /):
        super().__init__(client, id)
        types = []
        for part in self.id.split(self.separator):
            if (type := client.registry.types.get(part)) is None:
                raise UnknownTypeError(
                    f"union type {self.id!r} refers to unknown type {part!r}",
                    title="unknown type",
                    code=FaultCode.UNKNOWN_TYPE,
                    hint="register every constituent type before declaring arguments that use the union",
                )
            types.append(type)
        self._types = tuple(types)

    @property
    def types(self):
        return self._types

    async def _verdicts(self, value, message, argument, /):
        verdicts = []
        for type in self._types:
            if await settle(type.is_empty(value, message, argument)):
                verdicts.append(Verdict(False))
            else:
                verdicts.append(verdict(await settle(type.validate(value, message, argument))))
        return verdicts

    async def validate(self, value, message, argument=None, /):
        verdicts = await self._verdicts(value, message, argument)
        if any(verdict.valid for verdict in verdicts):
            return True
        if errors := [verdict.message for verdict in verdicts if verdict.message]:
            return "\n".join(errors)
        return False

    async def parse(self, value, message, argument=None, /):
        for type, verdict in zip(self._types, await self._verdicts(value, message, argument)):
            if verdict.valid:
                return await settle(type.parse(value, message, argument))
        raise UnparsableValueError(
            f"couldn't parse {value!r} with union type {self.id!r}",
            title="unparsable value",
            code=FaultCode.UNPARSABLE_VALUE,
            hint="validate() must accept a value before parse() is called",
        )

    async def is_empty(self, value, message, argument=None, /):
        for type in self._types:
            if not await settle(type.is_empty(value, message, argument)):
                return False
        return True


BUILTIN_TYPES = (BooleanType, IntegerType, FloatType, StringType)


__all__ = (
    "Verdict",
    "verdict",
    "ArgumentType",
    "BooleanType",
    "IntegerType",
    "FloatType",
    "StringType",
    "UnionType",
    "BUILTIN_TYPES",
)
