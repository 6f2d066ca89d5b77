"""
Herald client options (configuration).

Overview
- Options: validated, read-only configuration shared by the dispatcher, the
  commands and the argument prompts of one client.
  • id: the bot's own user id (used for mention matching and self-filtering).
  • prefix: literal command prefix, matched case-insensitively.
  • owners: user ids exempt from throttling.
  • prompt_limit: how many times a single argument may be re-prompted before
    collection is cancelled with reason "limit".
  • wait: seconds to wait for an answer before cancelling with reason "time";
    None waits forever.
  • mentions: whether "@bot <command>" invocations are accepted.

- Options.from_environ(): build options from HERALD_* environment variables.

Validation
- Every field is sanitized on construction: TypeError for a wrong type,
  ValueError for an empty or out-of-range value.
"""
import os

from .utils import *

_TRUTHY = frozenset({"true", "t", "yes", "y", "on", "enable", "enabled", "1", "+"})
_FALSY = frozenset({"false", "f", "no", "n", "off", "disable", "disabled", "0", "-"})


def _sanitize_identity(metadata, /):
    """
    Internal: validate the bot id, prefix and owners in place.

    - id: non-empty string after trimming.
    - prefix: non-empty string after trimming.
    - owners: iterable of non-empty strings, normalized to a frozenset.
    """
    if not isinstance(id := metadata["id"], str):
        raise TypeError("options 'id' must be a string")
    elif not (id := id.strip()):
        raise ValueError("options 'id' cannot be empty")
    metadata["id"] = id

    if not isinstance(prefix := metadata["prefix"], str):
        raise TypeError("options 'prefix' must be a string")
    elif not (prefix := prefix.strip()):
        raise ValueError("options 'prefix' cannot be empty")
    metadata["prefix"] = prefix

    if isinstance(owners := metadata["owners"], str):
        raise TypeError("options 'owners' must be an iterable of strings, not a string")
    owners = set()
    for owner in metadata["owners"]:
        if not isinstance(owner, str):
            raise TypeError("options 'owners' must contain strings")
        elif not (owner := owner.strip()):
            raise ValueError("options 'owners' cannot contain empty strings")
        owners.add(owner)
    metadata["owners"] = frozenset(owners)


def _sanitize_prompting(metadata, /):
    """
    Internal: validate prompt_limit and wait in place.

    - prompt_limit: int >= 0 (bool is rejected).
    - wait: None, or a number > 0.
    """
    if isinstance(limit := metadata["prompt_limit"], bool) or not isinstance(limit, int):
        raise TypeError("options 'prompt_limit' must be an integer")
    elif limit < 0:
        raise ValueError("options 'prompt_limit' cannot be negative")

    if (wait := metadata["wait"]) is not None:
        if isinstance(wait, bool) or not isinstance(wait, int | float):
            raise TypeError("options 'wait' must be a number or None")
        elif wait <= 0:
            raise ValueError("options 'wait' must be positive")
        metadata["wait"] = float(wait)


class Options:
    """
    Read-only client configuration.

    Example
        >>> options = Options("1234", prefix="darling", owners={"42"})
        >>> options.prompt_limit, options.wait
        (1, 30.0)
    """

    id = mirror("id")
    prefix = mirror("prefix")
    owners = mirror("owners")
    prompt_limit = mirror("prompt_limit")
    wait = mirror("wait")
    mentions = mirror("mentions")

    def __init__(self, id, /, prefix="=", owners=(), prompt_limit=1, wait=30.0, *, mentions=True):
        metadata = {
            "id": id,
            "prefix": prefix,
            "owners": owners,
            "prompt_limit": prompt_limit,
            "wait": wait,
            "mentions": bool(mentions),
        }
        _sanitize_identity(metadata)
        _sanitize_prompting(metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @classmethod
    def from_environ(cls, environ=os.environ, /, prefix="HERALD_"):
        """
        Build options from environment variables.

        Variables (with the default prefix)
        - HERALD_ID (required), HERALD_PREFIX, HERALD_OWNERS (comma separated),
          HERALD_PROMPT_LIMIT, HERALD_WAIT ("none" disables the timeout),
          HERALD_MENTIONS (yes/no style words).

        Raises
        - KeyError when HERALD_ID is missing.
        - ValueError when a numeric or boolean variable cannot be read.
        """
        def get(name):
            return environ.get(prefix + name, Unset)

        options = {}
        if (value := get("PREFIX")) is not Unset:
            options["prefix"] = value
        if (value := get("OWNERS")) is not Unset:
            options["owners"] = tuple(owner for owner in value.split(",") if owner.strip())
        if (value := get("PROMPT_LIMIT")) is not Unset:
            options["prompt_limit"] = int(value)
        if (value := get("WAIT")) is not Unset:
            options["wait"] = None if value.strip().lower() in ("", "none") else float(value)
        if (value := get("MENTIONS")) is not Unset:
            if (value := value.strip().lower()) not in _TRUTHY | _FALSY:
                raise ValueError(f"{prefix}MENTIONS must be a boolean word, not {value!r}")
            options["mentions"] = value in _TRUTHY

        return cls(environ[prefix + "ID"], **options)

    def __rich_repr__(self):
        yield "id", self.id
        yield "prefix", self.prefix
        yield "owners", self.owners
        yield "prompt_limit", self.prompt_limit
        yield "wait", self.wait
        yield "mentions", self.mentions

    def __repr__(self):
        return "options(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


__all__ = (
    "Options",
)
