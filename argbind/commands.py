"""
argbind command tree.

A Command is one node of the tree a parser walks: it owns a destination object
("values"), its switch and positional Arguments, its child Commands and the per-parse
"seen" bookkeeping.

Registration rules (all violations raise at build time)
- a Command can register Arguments only once it is attached to an ArgumentParser
  (the root is attached by the parser itself, children by Command.command()).
- switch spellings are unique per Command and cannot reuse a help spelling;
  positional names are unique per Command.
- an unbounded positional ("+" or "*") must be the last positional.
- an inherit switch cannot be added once the Command has children; every child
  receives a fresh copy of each inherit switch when it is attached.
- child names are unique per parent.

Arity bookkeeping (positionals)
- fixed N   -> required += N, maximum += N
- "+"       -> required += 1, maximum unbounded (None)
- "?"       -> maximum += 1
- "*"       -> maximum unbounded (None)

Per-parse state
- seen: destination field names assigned during the current parse.
- commands_seen: names of the children the parse descended into.
Both are cleared for the whole tree at the start of every parse.
"""
import functools
import operator
import os
import re
import sys

from rich.text import Text

from .arguments import Argument
from .utils import *


class CommandType(type):
    """
    Metaclass providing __typename__, mirrored read-only properties and stable
    __repr__/__rich_repr__ for commands.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate command metadata in place.

    - name: Unset or a non-empty token without whitespace that does not start with '-'.
    - descr/epilog: Unset or non-empty str/Text; Unset becomes None.
    - callback: Unset or callable; Unset becomes None.
    - values: any object; Unset becomes None (such a command cannot hold arguments).
    """
    if not isinstance(name := metadata["name"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif isinstance(name, str):
        if not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
        if name.startswith("-") or re.search(r"\s", name):
            raise ValueError(f"{cls.__typename__} name {name!r} cannot start with '-' or contain spaces")
    metadata["name"] = name

    for key in ("descr", "epilog"):
        if not isinstance(string := metadata[key], str | Text | Unset):
            raise TypeError(f"{cls.__typename__} {key!r} must be a string")
        elif isinstance(string, str) and not (string := string.strip()):
            raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
        metadata[key] = coalesce(string)

    if not callable(callback := metadata["callback"]) and callback is not Unset:
        raise TypeError(f"{cls.__typename__} 'callback' must be callable")
    metadata["callback"] = coalesce(callback)

    metadata["values"] = coalesce(metadata["values"])


class Command(metaclass=CommandType):
    """
    Node of the command tree.

    Responsibilities
    - Registration: add() binds Arguments to the destination object and keeps the
      positional arity counters (required/maximum) up to date.
    - Composition: command() attaches children and hands them copies of the inherit
      switches.
    - Per-parse bookkeeping: seen / commands_seen, reset by the parser before each parse.
    - Inheritance: _propagate() copies inherit switch values to the next Command of a
      triggered chain.

    Notes
    - Collections are exposed through read-only copies; mutate them only through add()
      and command().
    """

    __introspectable__ = (
        "name",
        "descr",
        "epilog",
        "callback",
        "parser",
        "parent",
        "children",
        "switches",
        "positionals",
        "required",
        "maximum",
        "seen",
        "commands_seen",
    )

    __displayable__ = (
        "name",
        "descr",
        "children",
        "switches",
        "positionals",
        "required",
        "maximum",
    )

    def __init__(self, name=Unset, /, values=Unset, descr=Unset, epilog=Unset, callback=Unset):
        """
        Create a detached command.

        Parameters
        - name: Unset | str
          Subcommand name matched on the command line; the root defaults to the
          program name.
        - values: object
          Destination object whose attributes receive the parsed values.
        - descr / epilog: Unset | str | Text
          Help text shown above and below the argument listing.
        - callback: Unset | Callable[[Command, object], Any]
          Called by the runner when this command is the triggered one.
        """
        metadata = {
            "name": name,
            "values": values,
            "descr": descr,
            "epilog": epilog,
            "callback": callback,
        }
        _sanitize_metadata(type(self), metadata)

        for key, object in metadata.items():
            setattr(self, "_" + key, object)

        self._parser = Unset
        self._parent = None
        self._children = {}
        self._switches = []
        self._positionals = []
        self._spellings = {}
        self._required = 0
        self._maximum = 0
        self._seen = set()
        self._commands_seen = set()

    @property
    def values(self):
        return self._values

    @property
    def root(self):
        command = self
        while command.parent:
            command = command.parent
        return command

    @property
    def path(self):
        """Commands from the root down to this one."""
        path = [command := self]
        while command.parent:
            path.append(command := command.parent)
        return tuple(reversed(path))

    @property
    def route(self):
        """Space-separated names from the root, as typed on the command line."""
        return " ".join(step.name for step in self.path)

    def add(self, argument, /):
        """
        Register an Argument on this command and bind it to the destination object.

        Returns
        - the same Argument, now bound (argument.value, argument.dest, argument.nargs
          report the resolved binding).

        Raises
        - TypeError: not an Argument, command not attached to a parser, command without
          a values object, unsupported destination kind, choices of the wrong kind.
        - ValueError: inherit after children, duplicate spelling or name, help spelling
          reuse, positional after an unbounded one, missing destination field, multi
          value arity on a non-list destination, argument already bound.
        """
        typename = type(self).__typename__
        if not isinstance(argument, Argument):
            raise TypeError(f"{typename} add() argument must be an Argument")
        if self._parser is Unset:
            raise TypeError(f"{typename} {self.name!r} is not attached to a parser")
        if self._values is None:
            raise TypeError(f"{typename} {self.name!r} has no values object to bind {argument.label!r} to")
        if argument.inherit and self._children:
            raise ValueError(f"{typename} {self.name!r} already has subcommands; inherit switch {argument.label!r} must be added before them")

        if argument.positional:
            if any(positional.name == argument.name for positional in self._positionals):
                raise ValueError(f"{typename} {self.name!r} positional name {argument.name!r} is already in use")
            if self._positionals and self._positionals[-1].unbounded:
                raise ValueError(f"{typename} {self.name!r} cannot add positional {argument.name!r} after the unbounded positional {self._positionals[-1].name!r}")
        else:
            for spelling in argument.switches:
                if spelling in self._parser.helpers:
                    raise ValueError(f"{typename} {self.name!r} switch spelling {spelling!r} is reserved for help")
                if spelling in self._spellings:
                    raise ValueError(f"{typename} {self.name!r} switch spelling {spelling!r} is already in use")

        argument._bind(self, self._parser.messages)

        if argument.positional:
            match argument.nargs:
                case "+":
                    self._required += 1
                    self._maximum = None
                case "*":
                    self._maximum = None
                case "?":
                    if self._maximum is not None:
                        self._maximum += 1
                case int(count):
                    self._required += count
                    if self._maximum is not None:
                        self._maximum += count
            self._positionals.append(argument)
        else:
            self._switches.append(argument)
            for spelling in argument.switches:
                self._spellings[spelling] = argument
        return argument

    def command(self, source=Unset, /, **kwargs):
        """
        Create or attach a subcommand.

        Modes
        - command(Command(...)): attach an existing detached command.
        - command("name", values=..., ...): create the child, then attach it.
        - command(callback, values=..., ...): wrap a callable; name defaults to
          callback.__name__.
        - @command(name=..., values=..., ...): decorator form of the previous mode.

        Returns
        - the attached child Command (or a decorator producing it).
        """
        @rename("command")
        def wrapper(source, /):
            if isinstance(source, Command):
                if kwargs:
                    raise TypeError("command() cannot apply metadata to an existing command")
                child = source
            elif callable(source):
                options = {"name": source.__name__} | kwargs
                child = Command(options.pop("name"), callback=source, **options)
            else:
                raise TypeError("@command() must be applied to a callable or a command")
            self._attach(child)
            return child

        if source is Unset:
            return wrapper
        if isinstance(source, str):
            child = Command(source, **kwargs)
            self._attach(child)
            return child
        return wrapper(source)

    def _bind(self, parser, /):
        # root only: the parser adopts this command as the top of its tree
        typename = type(self).__typename__
        if self._parent is not None or self._parser is not Unset:
            raise ValueError(f"{typename} {coalesce(self._name, '<root>')!r} is already attached")
        self._name = coalesce(self._name, os.path.basename(sys.argv[0]) or "prog")
        self._parser = parser

    def _attach(self, child, /):
        typename = type(self).__typename__
        if self._parser is Unset:
            raise TypeError(f"{typename} {self.name!r} is not attached to a parser")
        if child._parent is not None or child._parser is not Unset:
            raise ValueError(f"{typename} {coalesce(child._name, '<unnamed>')!r} is already attached")
        if child._name is Unset:
            raise ValueError(f"{typename} subcommands of {self.name!r} must have a name")
        if child._name in self._children:
            typeof = "subcommand" if self._parent else "command"
            raise ValueError(f"{typename} {typeof} name {child._name!r} is already in use")

        child._parent = self
        child._parser = self._parser
        for argument in self._switches:
            if argument.inherit:
                child.add(argument.copy())
        self._children[child._name] = child

    def _lookup(self, spelling, /):
        return self._spellings.get(spelling)

    def _reset(self):
        self._seen.clear()
        self._commands_seen.clear()
        for child in self._children.values():
            child._reset()

    def _propagate(self, successor, /):
        """
        Copy inherit switch values that were seen here but not on successor.

        Raises
        - RuntimeError: successor lacks the inherited copy (the tree was assembled
          outside command()).
        """
        for argument in self._switches:
            if not argument.inherit or argument.dest not in self._seen:
                continue
            if (counterpart := successor._lookup(argument.switches[0])) is None:
                raise RuntimeError(f"inherited switch {argument.label!r} is missing from {successor.name!r}")
            if counterpart.dest in successor._seen:
                continue
            counterpart.value.set(argument.value.get())
            successor._seen.add(counterpart.dest)


__all__ = (
    "Command",
)

del CommandType
