"""
Herald faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every raised fault.
  Codes are grouped by domain so logs and searches stay predictable.
- HeraldException: base type carrying message + options; renders itself with
  rich in a friendly, lowercased and actionable way.
- ConfigurationError family: malformed declarations caught while registering
  commands, arguments, groups and types. These are development-time failures,
  never chat output.
- InvariantError family: internal contract violations detected while a
  message is being handled (for example a union type asked to parse a value
  none of its constituents accepts). They propagate to the caller.
- report(): print a fault to the stderr console.

What is deliberately not here
- Validation failures are recoverable and travel as Verdict values
  (see herald.argtypes); they drive a reprompt, not an exception.
- Resolution misses (unknown command or subcommand) are plain None results
  and the UNKNOWN_COMMAND event.

Integration
- Registration code raises the configuration faults directly.
- The client routes handler failures to its "error" event; the default error
  path logs them and, for HeraldException instances, renders them via report().
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - configuration (211xx)
      • ARGUMENT_ORDER, UNKNOWN_TYPE, DUPLICATE_TYPE, ALIAS_CONFLICT,
        UNKNOWN_GROUP, MALFORMED_DECLARATION
    - internal invariants (241xx)
      • UNPARSABLE_VALUE

    the gaps between ranges are reserved so new codes never reshuffle
    existing ones.
    """
    # --- configuration errors (21xxx) ---
    ARGUMENT_ORDER              = 21101
    UNKNOWN_TYPE                = 21102
    DUPLICATE_TYPE              = 21103
    ALIAS_CONFLICT              = 21104
    UNKNOWN_GROUP               = 21105
    MALFORMED_DECLARATION       = 21106

    # --- internal invariant errors (24xxx) ---
    UNPARSABLE_VALUE            = 24101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids with friendlier labels; otherwise the numeric
        value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class HeraldException(Exception):
    """
    base fault: a message plus read-only rendering/context options.

    recognised options
    - title: short title shown in the header (defaults to the class name).
    - code: FaultCode shown in the header.
    - hint: one actionable sentence shown under the message.
    - fancy: render inside a rich Panel.
    - colorful: apply the palette (see __styles__ below).
    any other option is kept as context (e.g. command=, argument=, key=).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), styles[style] if colorful else "")

        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            text(getattr(main, "__prog__", "herald"), "prog-name"),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "-", "code"),
            " | ",
            text(self.options.get("title", type(self).__name__).title(), "error-title"),
            " ]",
        )
        message = text(self.message, "error-message")
        parts = [message]
        if hint := self.options.get("hint"):
            parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*parts), title=header, title_align="left")
        return Group(header, *parts)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigurationError(HeraldException): ...
class ArgumentOrderError(ConfigurationError): ...
class UnknownTypeError(ConfigurationError): ...
class DuplicateTypeError(ConfigurationError): ...
class AliasConflictError(ConfigurationError): ...
class UnknownGroupError(ConfigurationError): ...
class MalformedDeclarationError(ConfigurationError): ...


class InvariantError(HeraldException): ...
class UnparsableValueError(InvariantError): ...


def report(fault, /, **options):
    """
    print a fault to the stderr console.

    options are merged into the fault's own options before rendering (for
    example fancy=True to draw a panel, colorful=False for plain logs).
    """
    if not isinstance(fault, HeraldException):
        raise TypeError("report() argument must be a herald exception")
    console.print(fault.__replace__(**options) if options else fault)


__all__ = (
    "FaultCode",
    "HeraldException",
    "ConfigurationError",
    "ArgumentOrderError",
    "UnknownTypeError",
    "DuplicateTypeError",
    "AliasConflictError",
    "UnknownGroupError",
    "MalformedDeclarationError",
    "InvariantError",
    "UnparsableValueError",
    "report",
)
