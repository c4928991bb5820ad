r"""
argbind argument declarations.

Overview
- Argument describes one switch ("-v", "--verbose") or one positional ("name").
  Switch spellings and a positional name are mutually exclusive.
- Declarations are sanitized on construction; binding to a Command (and through it to
  a destination object) happens later, in Command.add().

Metadata (sanitized on construction)
- Shared
  • dest: Unset | str (explicit destination field, must be an identifier).
  • nargs: Unset | int (>= 1) | "?" | "+" | "*".
  • choices: Unset | Iterable (duplicates rejected, normalized to a tuple).
  • descr: Unset | str | Text (help text, non-empty when provided).
  • metavar: Unset | str (help label, non-empty when provided).
- Switches
  • spellings must match r"--?[^\W\d_][\w.-]*" and be unique within the argument.
  • glob arities are rejected; inherit is allowed.
- Positionals
  • name must be a non-empty token without whitespace that does not start with "-".
  • inherit is rejected.

Binding (performed by Command.add through _bind)
- destination: explicit dest, else the first existing candidate derived from the
  spellings (or the name) through identifiers(); snake_case is tried before CapWords.
- kind/storage: values.bind() on the destination field.
- arity: Unset positional arity becomes 1, Unset switch arity becomes the binding's
  default arity (0 for a scalar bool, 1 otherwise).
- multi-valued arities ("+", "*", N > 1) require a list destination.

Quick example:
    >>> Argument("-v", "--verbose", inherit=True, descr="talk more")
    >>> Argument(name="files", nargs="+")
"""
import functools
import itertools
import operator
import re
from collections.abc import Iterable

from rich.text import Text

from .utils import *
from .values import Storage, bind, hints


class ArgumentType(type):
    """
    Metaclass giving argument classes a stable identity in messages and reprs.

    - __typename__ is derived from the class name (camel-case split with hyphens).
    - every name in __introspectable__ becomes a read-only property over "_<name>".
    - __repr__/__rich_repr__ list __displayable__ (or __introspectable__) fields.
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
    Internal: validate the metadata shared by switches and positionals.

    Mutates metadata in place
    - descr/metavar: trimmed, Unset becomes None.
    - dest: stays Unset or becomes a stripped identifier.
    - nargs: Unset | int (>= 1) | "?" | "+" | "*"; booleans are rejected.
    - choices: Unset becomes (), anything else a duplicate-free tuple.
    - inherit: coerced to bool.

    Raises
    - TypeError: wrong types.
    - ValueError: empty strings, bad arities, duplicate choices, bad identifiers.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = coalesce(metavar)

    if not isinstance(dest := metadata["dest"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'dest' must be a string")
    elif isinstance(dest, str) and not (dest := dest.strip()).isidentifier():
        raise ValueError(f"{cls.__typename__} 'dest' must be a valid identifier")
    metadata["dest"] = dest

    if isinstance(nargs := metadata["nargs"], bool) or not isinstance(nargs, str | int | Unset):
        raise TypeError(f"{cls.__typename__} 'nargs' must be a string or an integer")
    if isinstance(nargs, str) and nargs not in ("?", "+", "*"):
        raise ValueError(f"{cls.__typename__} 'nargs' must be one of '?', '+', or '*'")
    if isinstance(nargs, int) and nargs < 1:
        raise ValueError(f"{cls.__typename__} 'nargs' must be a positive integer")

    if (choices := metadata["choices"]) is Unset:
        choices = ()
    elif isinstance(choices, str) or not isinstance(choices, Iterable):
        raise TypeError(f"{cls.__typename__} 'choices' must be a non-string iterable")
    sanitized = []
    for choice in choices:
        if choice in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    metadata["choices"] = tuple(sanitized)

    metadata["inherit"] = bool(metadata["inherit"])


def _sanitize_switch_metadata(cls, metadata, /):
    r"""
    Internal: validate switch spellings and switch-only rules.

    - every spelling is a string matching r"--?[^\W\d_][\w.-]*" ("-v", "--dry-run",
      "--log.level"); a digit cannot follow the dashes so negative numbers never look
      like switches.
    - spellings are unique and kept in declaration order.
    - a switch has no positional name and no glob arity.
    """
    if metadata["name"] is not Unset:
        raise TypeError(f"{cls.__typename__} cannot have both switch spellings and a name")

    spellings = []
    for spelling in metadata["switches"]:
        if not isinstance(spelling, str):
            raise TypeError(f"{cls.__typename__} switch spellings must be strings")
        elif not re.fullmatch(r"--?[^\W\d_][\w.-]*", spelling := spelling.strip()):
            raise ValueError(f"{cls.__typename__} switch spelling {spelling!r} is not a valid switch")
        elif spelling in spellings:
            raise ValueError(f"{cls.__typename__} switch spellings cannot contain duplicates")
        spellings.append(spelling)
    metadata["switches"] = tuple(spellings)

    if isinstance(metadata["nargs"], str):
        raise ValueError(f"{cls.__typename__} switch {spellings[0]!r} cannot use the glob arity {metadata['nargs']!r}")


def _sanitize_positional_metadata(cls, metadata, /):
    """
    Internal: validate the positional name and positional-only rules.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} must specify switch spellings or a positional name")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif name.startswith("-") or re.search(r"\s", name):
        raise ValueError(f"{cls.__typename__} positional name {name!r} cannot start with '-' or contain spaces")
    metadata["name"] = name
    metadata["switches"] = ()

    if metadata["inherit"]:
        raise ValueError(f"{cls.__typename__} positional {name!r} cannot be inherited")


class Argument(metaclass=ArgumentType):
    """
    Switch or positional argument declaration.

    Properties
    - switches, name, dest, nargs, choices, inherit, descr, metavar, command are
      read-only mirrors of the sanitized metadata; dest and nargs report the resolved
      values once the argument is bound.
    - value: the values.Value bound by Command.add (Unset before binding).
    """

    __introspectable__ = (
        "switches",
        "name",
        "dest",
        "nargs",
        "choices",
        "inherit",
        "descr",
        "metavar",
        "command",
    )

    __displayable__ = (
        "switches",
        "name",
        "dest",
        "nargs",
        "choices",
        "inherit",
    )

    def __init__(
            self,
            *switches,
            name=Unset,
            dest=Unset,
            nargs=Unset,
            choices=Unset,
            inherit=False,
            descr=Unset,
            metavar=Unset,
    ):
        """
        Declare a switch (give one or more spellings) or a positional (give name=...).

        Parameters
        - switches: str
          Spellings such as "-v" or "--verbose".
        - name: Unset | str
          Positional name; also used to derive the destination field.
        - dest: Unset | str
          Explicit destination field, bypassing derivation.
        - nargs: Unset | int | "?" | "+" | "*"
          Arity; globs are for positionals only.
        - choices: Iterable
          Accepted values, checked against the destination kind at binding time.
        - inherit: bool
          Copy this switch into every subcommand attached afterwards.
        - descr / metavar: help text and value label.
        """
        metadata = {
            "switches": switches,
            "name": name,
            "dest": dest,
            "nargs": nargs,
            "choices": choices,
            "inherit": inherit,
            "descr": descr,
            "metavar": metavar,
        }
        _sanitize_metadata(type(self), metadata)
        if switches:
            _sanitize_switch_metadata(type(self), metadata)
        else:
            _sanitize_positional_metadata(type(self), metadata)

        for key, object in metadata.items():
            setattr(self, "_" + key, object)

        self._declared = {"dest": metadata["dest"], "nargs": metadata["nargs"]}
        self._command = Unset
        self._value = Unset

    @property
    def positional(self):
        return not self._switches

    @property
    def label(self):
        """The spelling (or name) used to mention this argument in messages."""
        return self._switches[0] if self._switches else self._name

    @property
    def value(self):
        return self._value

    @property
    def unbounded(self):
        return self._nargs in ("+", "*")

    def copy(self):
        """
        Return an unbound deep copy built from the declared (not resolved) metadata.

        Used for inheritance: the copy resolves its own destination and arity against
        the child's destination object.
        """
        return type(self)(
            *self._switches,
            name=self._name,
            dest=self._declared["dest"],
            nargs=self._declared["nargs"],
            choices=self._choices if self._choices else Unset,
            inherit=self._inherit,
            descr=Unset if self._descr is None else self._descr,
            metavar=Unset if self._metavar is None else self._metavar,
        )

    def _candidates(self):
        if self._declared["dest"]:
            return (self._declared["dest"],)
        sources = self._switches or (self._name,)
        return tuple(dict.fromkeys(itertools.chain.from_iterable(map(identifiers, sources))))

    def _bind(self, command, messages, /):
        """
        Internal: resolve destination, value binding and arity against command.values.

        Raises
        - ValueError: already bound, no destination field, arity needing a list.
        - TypeError: unsupported destination kind, choices of the wrong kind.
        """
        if self._command is not Unset:
            raise ValueError(f"{type(self).__typename__} {self.label!r} is already bound to {self._command.name!r}")

        values = command.values
        annotated = hints(values)
        for candidate in (candidates := self._candidates()):
            if hasattr(values, candidate) or candidate in annotated:
                dest = candidate
                break
        else:
            raise ValueError("could not find destination field for argument %s; checked %s" % (
                self.label, ", ".join(candidates)
            ))

        value = bind(values, dest)
        if self._choices:
            try:
                value.set_choices(messages, self._choices)
            except TypeError as error:
                raise TypeError(f"{type(self).__typename__} {self.label!r} {error}") from None

        nargs = self._nargs
        if nargs is Unset:
            nargs = 1 if self.positional else value.default_arity()
        if (nargs in ("+", "*") or (isinstance(nargs, int) and nargs > 1)) and value.storage is not Storage.SLICE:
            raise ValueError(f"{type(self).__typename__} {self.label!r} takes {nargs!r} values but {dest!r} is not a list")

        self._command = command
        self._dest = dest
        self._nargs = nargs
        self._value = value


__all__ = (
    "Argument",
)

del ArgumentType
