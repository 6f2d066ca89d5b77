"""
Herald registry (catalogs of events, groups, commands and argument types).

Scope
- Four independent catalogs keyed by identifier:
  • events: name → Event (enabled events are subscribed to the client hub)
  • groups: id → Group
  • commands: name → top-level Command (subcommands live on their parent)
  • types: id → ArgumentType (unions are added on first use)
- Lookups: find_commands / find_command (name or alias, optionally followed
  by a subcommand name or alias) and find_groups.

Registration rules
- Groups are upserted: a known id only has its display name updated.
- A command's group must already be registered (UnknownGroupError).
- Names and aliases of top-level commands are unique, case-insensitively
  (AliasConflictError); the same holds among one parent's subcommands.
- A subcommand whose parent is not registered is skipped with a warning.
- Types are upserted by id; reusing an id for a different type class raises
  DuplicateTypeError.

Directory registration
- register_commands_in("bot.commands.**"), register_types_in(...) and
  register_events_in(...) import every module matching the dotted glob and
  register the Command / ArgumentType / Event subclasses defined there.
"""
import importlib
import inspect
from collections.abc import Mapping
from types import MappingProxyType

from .argtypes import *
from .commands import *
from .events import *
from .faults import *
from .logs import get_logger
from .utils import *

logger = get_logger(__name__)


def _harvest(pattern, base, /):
    """
    Internal: import the modules matching pattern and list the public
    subclasses of base defined in them (not merely imported into them).
    """
    found = []
    for name in mglob(pattern):
        module = importlib.import_module(name)
        for attribute, object in vars(module).items():
            if (
                not attribute.startswith("_")
                and isinstance(object, type)
                and issubclass(object, base)
                and object is not base
                and object.__module__ == module.__name__
                and not inspect.isabstract(object)
            ):
                found.append(object)
    return found


def _overlap(first, second, /):
    return {first.name, *first.aliases} & {second.name, *second.aliases}


def _alias_conflict(command, existing, clash, hint, /):
    return AliasConflictError(
        f"command {command.qualified_name!r} reuses {', '.join(sorted(clash))} of command {existing.qualified_name!r}",
        title="alias conflict",
        code=FaultCode.ALIAS_CONFLICT,
        hint=hint,
        command=command.qualified_name,
    )


class Registry:
    """
    Catalogs of one client.

    Example
        >>> registry = Registry(client)
        >>> registry.register_group("music", "Music")
        >>> registry.register_commands([Queue, QueueRemove])
        >>> registry.find_command("QUEUE", "rm")
        command(name='remove', ...)
    """

    def __init__(self, client, /):
        self._client = client
        self._events = {}
        self._groups = {}
        self._commands = {}
        self._types = {}

    @property
    def client(self):
        return self._client

    @property
    def events(self):
        return MappingProxyType(self._events)

    @property
    def groups(self):
        return MappingProxyType(self._groups)

    @property
    def commands(self):
        return MappingProxyType(self._commands)

    @property
    def types(self):
        return MappingProxyType(self._types)

    # -- events ---------------------------------------------------------------

    def register_event(self, event, /):
        if isinstance(event, type) and issubclass(event, Event):
            event = event(self._client)
        elif not isinstance(event, Event):
            raise TypeError("register_event() argument must be an Event or an Event subclass")

        if (previous := self._events.get(event.name)) is not None:
            self._client.off(event.name, previous)
        self._events[event.name] = event
        if event.enabled:
            self._client.on(event.name, event)
        logger.debug("registered event", name=event.name, enabled=event.enabled)
        return event

    def register_events(self, events, /):
        return [self.register_event(event) for event in events]

    def register_events_in(self, pattern, /):
        return self.register_events(_harvest(pattern, Event))

    # -- groups ---------------------------------------------------------------

    def register_group(self, group, name=Unset, /):
        """
        Register a group given as a Group, an id (plus optional name), an
        (id, name) pair or a mapping with "id" and "name".
        """
        match group:
            case Group():
                pass
            case str():
                group = Group(self._client, group, name)
            case (id, name):
                group = Group(self._client, id, name)
            case Mapping():
                group = Group(self._client, group["id"], group.get("name", Unset))
            case _:
                raise TypeError("register_group() argument must be a Group, an id, a pair or a mapping")

        if (existing := self._groups.get(group.id)) is not None:
            existing._name = group.name
            logger.debug("updated group", group=group.id, name=group.name)
            return existing
        self._groups[group.id] = group
        logger.debug("registered group", group=group.id, name=group.name)
        return group

    def register_groups(self, groups, /):
        return [self.register_group(group) for group in groups]

    def find_groups(self, search=None, /):
        """All groups when search is None, else those whose id or name matches it (case-insensitive)."""
        if search is None:
            return tuple(self._groups.values())
        search = search.lower()
        return tuple(group for group in self._groups.values() if search in (group.id.lower(), group.name.lower()))

    # -- commands -------------------------------------------------------------

    def register_command(self, command, /):
        return self.register_commands([command])[0]

    def register_commands(self, commands, /):
        """
        Instantiate (when given classes) and register commands.

        Top-level commands are registered before subcommands, so a parent and
        its children may be passed together in any order.
        """
        built = []
        for command in commands:
            if isinstance(command, type) and issubclass(command, Command):
                command = command(self._client)
            elif not isinstance(command, Command):
                raise TypeError("register_commands() items must be Command instances or subclasses")
            if command.group_id not in self._groups:
                raise UnknownGroupError(
                    f"command {command.qualified_name!r} refers to unknown group {command.group_id!r}",
                    title="unknown group",
                    code=FaultCode.UNKNOWN_GROUP,
                    hint="register the group before its commands",
                    command=command.qualified_name,
                )
            built.append(command)

        tops = [command for command in built if not command.is_subcommand]
        subs = [command for command in built if command.is_subcommand]
        self._check_aliases(tops, subs)
        for command in tops:
            self._add_command(command)
        for command in subs:
            self._add_subcommand(command)
        return built

    def register_commands_in(self, pattern, /):
        return self.register_commands(_harvest(pattern, Command))

    def _check_aliases(self, tops, subs, /):
        """
        Internal: raise AliasConflictError before anything of the batch is
        registered, so a failed batch leaves the catalog untouched.
        """
        known = [existing for existing in self._commands.values() if existing not in tops]
        for index, command in enumerate(tops):
            for other in (*known, *tops[:index]):
                if other is not command and (clash := _overlap(other, command)):
                    raise _alias_conflict(command, other, clash, "names and aliases must be unique across top-level commands")

        parents = {command.name: command for command in (*known, *tops)}
        for index, command in enumerate(subs):
            if (parent := parents.get(command.parent)) is None:
                continue
            siblings = [sibling for sibling in parent._subcommands if sibling not in subs]
            siblings += [sibling for sibling in subs[:index] if sibling.parent == command.parent]
            for other in siblings:
                if other is not command and (clash := _overlap(other, command)):
                    raise _alias_conflict(command, other, clash, "names and aliases must be unique among the subcommands of one command")

    def _add_command(self, command, /):
        if self._commands.get(command.name) is command:
            return
        group = self._groups[command.group_id]
        self._commands[command.name] = command
        group._commands[command.name] = command
        command._group_ref = group
        logger.debug("registered command", command=command.name, group=group.id)

    def _add_subcommand(self, command, /):
        if (parent := self._commands.get(command.parent)) is None:
            logger.warning("subcommand without parent", command=command.name, parent=command.parent)
            return
        if command in parent._subcommands:
            return
        group = self._groups[command.group_id]
        parent._subcommands.append(command)
        group._commands[command.qualified_name] = command
        command._group_ref = group
        logger.debug("registered subcommand", command=command.qualified_name, group=group.id)

    def find_command(self, search, sub_search=None, /):
        """
        Resolve a command by name or alias, then optionally one of its
        subcommands; an unmatched sub_search falls back to the parent.
        Returns None when nothing matches.
        """
        search = search.lower()
        for command in self._commands.values():
            if command.matches(search):
                if sub_search and (subcommand := command.find_subcommand(sub_search)) is not None:
                    return subcommand
                return command
        return None

    def find_commands(self, search=None, sub_search=None, /):
        """
        Tuple form of find_command(): every top-level command when search is
        None, otherwise at most one match.
        """
        if search is None:
            return tuple(self._commands.values())
        return () if (command := self.find_command(search, sub_search)) is None else (command,)

    # -- types ----------------------------------------------------------------

    def register_type(self, argtype, /):
        if isinstance(argtype, type) and issubclass(argtype, ArgumentType):
            argtype = argtype(self._client)
        elif not isinstance(argtype, ArgumentType):
            raise TypeError("register_type() argument must be an ArgumentType or an ArgumentType subclass")

        if (existing := self._types.get(argtype.id)) is not None and type(existing) is not type(argtype):
            raise DuplicateTypeError(
                f"argument type id {argtype.id!r} is already used by {type(existing).__name__}",
                title="duplicate type",
                code=FaultCode.DUPLICATE_TYPE,
                hint="pick another id for the new type",
            )
        self._types[argtype.id] = argtype
        logger.debug("registered type", type=argtype.id)
        return argtype

    def register_types(self, argtypes, /):
        return [self.register_type(argtype) for argtype in argtypes]

    def register_types_in(self, pattern, /):
        return self.register_types(
            argtype for argtype in _harvest(pattern, ArgumentType)
            if argtype is not UnionType and isinstance(argtype.id, str)
        )

    def resolve_type(self, id, /):
        """
        Look up a type id; ids containing "|" build (and cache) a UnionType.

        Raises
        - UnknownTypeError for an unregistered id or union constituent.
        """
        if not isinstance(id, str):
            raise TypeError("type id must be a string")
        if (found := self._types.get(id := id.strip())) is not None:
            return found
        if UnionType.separator not in id:
            raise UnknownTypeError(
                f"unknown argument type {id!r}",
                title="unknown type",
                code=FaultCode.UNKNOWN_TYPE,
                hint="register the type before declaring arguments that use it",
            )
        return self.register_type(UnionType(self._client, id))

    def __rich_repr__(self):
        yield "events", list(self._events)
        yield "groups", list(self._groups)
        yield "commands", list(self._commands)
        yield "types", list(self._types)


__all__ = (
    "Registry",
)
