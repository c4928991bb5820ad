"""
argbind faults and their rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing parse failure, grouped
  by domain so logs and docs stay searchable.
- CommandException: base type carrying a message plus read-only options; it knows how
  to render itself with rich and how to surface itself (raise or print-and-exit).
- trigger(): the single entry point used to surface a fault with runtime context
  (tool, shell, fancy, colorful, ...).
- getdoc(): optional per-code documentation supplied by the host application.

Where faults come from
- registration mistakes are programming errors: they raise TypeError/ValueError at
  build time and never reach this module.
- parse failures are data: the scanner and the aggregator build a CommandException and
  hand it back inside ParseResult.error; nothing here is raised during parse_args().
- the runner (ArgumentParser.__invoke__) is the only caller of trigger().

UX goals
- position-first messages ("unknown switch '--verbse' at second position").
- a short title, one-sentence body and a single hint.
- lowercased tone; palette overridable through __styles__ in __main__.
"""
import copy
import sys
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

    grouping
    - routing (1110x)
      • UNKNOWN_COMMAND, UNKNOWN_SUBCOMMAND, MISSING_COMMAND
    - switches (1111x)
      • UNKNOWN_SWITCH, FLAG_ASSIGNMENT, MALFORMED_CLUSTER, OPTION_VALUE_REQUIRED,
        NOT_ENOUGH_VALUES
    - values (1112x)
      • UNCASTABLE_VALUE, INVALID_CHOICE
    - positionals (1113x)
      • MISSING_POSITIONAL, UNEXPECTED_POSITIONAL
    - delegated (1114x)
      • DELEGATED_ERROR

    normalize() lets the host remap codes to its own labels without touching the values.
    """
    # --- routing ---
    UNKNOWN_COMMAND       = 11101
    UNKNOWN_SUBCOMMAND    = 11102
    MISSING_COMMAND       = 11103

    # --- switches ---
    UNKNOWN_SWITCH        = 11111
    FLAG_ASSIGNMENT       = 11112
    MALFORMED_CLUSTER     = 11113
    OPTION_VALUE_REQUIRED = 11114
    NOT_ENOUGH_VALUES     = 11115

    # --- values ---
    UNCASTABLE_VALUE      = 11121
    INVALID_CHOICE        = 11122

    # --- positionals ---
    MISSING_POSITIONAL    = 11131
    UNEXPECTED_POSITIONAL = 11132

    # --- delegated ---
    DELEGATED_ERROR       = 11141

    def normalize(self):
        """
        return the host label for this code.

        a __codes__ mapping in __main__ may map FaultCode members to strings; without
        it the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base parse fault.

    - message: the one-line, lowercased description (also exposed through str()).
    - options: read-only mapping with context such as title, code, hint, docs, input,
      argument, index, suggestions or choices, plus the runtime flags added by trigger().
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        try:
            prog = self.options["tool"].root.name
        except KeyError:
            prog = sys.argv[0]
        prog = text(getattr(main, "__prog__", prog), styler("prog-name"))

        header = Text.assemble("[ ", prog)
        if code := self.options.get("code"):
            header.append(" - ").append(text(code.normalize(), styler("code")))
        if title := self.options.get("title"):
            header.append(" | ").append(text(title.title(), styler("error-title")))
        header.append(" ]")

        renders = [text(self.message, styler("error-message"))]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        self.options.get("console", console).print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownCommandError(CommandException): ...
class UnknownSubcommandError(CommandException): ...
class MissingCommandError(CommandException): ...
class UnknownSwitchError(CommandException): ...
class FlagAssignmentError(CommandException): ...
class MalformedClusterError(CommandException): ...
class OptionValueRequiredError(CommandException): ...
class NotEnoughValuesError(CommandException): ...
class UncastableValueError(CommandException): ...
class InvalidChoiceError(CommandException): ...
class MissingPositionalError(CommandException): ...
class UnexpectedPositionalError(CommandException): ...
class DelegatedCommandError(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (CommandException does).
    - options are merged through copy.replace() before __trigger__() runs.
    - shell=True prints the fault to stderr and exits with status 1; otherwise the
      fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation for a fault code.

    the host may expose a __docs__ mapping in __main__ keyed by FaultCode; missing
    entries give None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "CommandException",
    "UnknownCommandError",
    "UnknownSubcommandError",
    "MissingCommandError",
    "UnknownSwitchError",
    "FlagAssignmentError",
    "MalformedClusterError",
    "OptionValueRequiredError",
    "NotEnoughValuesError",
    "UncastableValueError",
    "InvalidChoiceError",
    "MissingPositionalError",
    "UnexpectedPositionalError",
    "DelegatedCommandError",
    "FaultCode",
    "trigger",
    "getdoc",
)
