"""
argbind parser context and runner.

ArgumentParser owns the configuration shared by a whole command tree (message
catalog, help spellings, rendering flags) and is the entry point for both phases:
building (add/command delegate to the root) and parsing (parse_args). __invoke__ wires
a parse to the process: help on stdout, faults through trigger(), callbacks for the
triggered command.
"""
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console

from .commands import Command
from .faults import *
from .helps import render
from .messages import Messages, DEFAULT_MESSAGES
from .parsing import Scanner, aggregate
from .utils import *


def _sanitize_helpers(helpers):
    if isinstance(helpers, str) or not isinstance(helpers, Iterable):
        raise TypeError("argument-parser 'helpers' must be a non-string iterable")
    sanitized = []
    for spelling in helpers:
        if not isinstance(spelling, str):
            raise TypeError("argument-parser help spellings must be strings")
        if len(spelling := spelling.strip()) < 2 or not spelling.startswith("-"):
            raise ValueError(f"argument-parser help spelling {spelling!r} must start with '-'")
        if spelling in sanitized:
            raise ValueError("argument-parser help spellings cannot contain duplicates")
        sanitized.append(spelling)
    if not sanitized:
        raise ValueError("argument-parser 'helpers' cannot be empty")
    return tuple(sanitized)


class ArgumentParser:
    """
    Parser context for one command tree.

    Parameters
    - root: Command
      Top of the tree; it must not be attached anywhere yet.
    - messages: Messages
      Catalog for every user-facing string.
    - helpers: Iterable[str]
      Help spellings; no switch of the tree may reuse them.
    - shell: bool
      Runner mode: print faults to stderr and exit(1) instead of raising them.
    - fancy / colorful: bool
      Rendering flags for help and faults.
    - stdout / stderr: rich.console.Console
      Where help and faults are printed; default to consoles on the process streams.
    """

    root = mirror("root")
    helpers = mirror("helpers")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")
    stdout = mirror("stdout")
    stderr = mirror("stderr")

    def __init__(
            self,
            root,
            /,
            *,
            messages=DEFAULT_MESSAGES,
            helpers=("-h", "--help"),
            shell=False,
            fancy=False,
            colorful=False,
            stdout=Unset,
            stderr=Unset,
    ):
        if not isinstance(root, Command):
            raise TypeError("argument-parser root must be a command")
        if not isinstance(messages, Messages):
            raise TypeError("argument-parser 'messages' must be a Messages catalog")
        for name, stream in (("stdout", stdout), ("stderr", stderr)):
            if not isinstance(stream, Console | Unset):
                raise TypeError(f"argument-parser {name!r} must be a rich console")

        self._root = root
        self._messages = messages
        self._helpers = _sanitize_helpers(helpers)
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._stdout = Console() if stdout is Unset else stdout
        self._stderr = Console(stderr=True) if stderr is Unset else stderr
        root._bind(self)

    @property
    def messages(self):
        return self._messages

    @property
    def helper(self):
        """The help spelling quoted in hints (the longest one)."""
        return max(self._helpers, key=len)

    def add(self, argument, /):
        return self._root.add(argument)

    def command(self, source=Unset, /, **kwargs):
        return self._root.command(source, **kwargs)

    def parse_args(self, argv, /):
        """
        Parse argv (program name excluded) against the tree.

        The seen sets of every command are cleared first, so the same tree can be
        parsed repeatedly. Parse failures are reported through ParseResult.error.

        Raises
        - TypeError: argv is a string or contains non-string items.
        """
        if isinstance(argv, str) or not isinstance(argv, Iterable):
            raise TypeError("parse_args() argument must be an iterable of strings")
        argv = list(argv)
        if not all(isinstance(token, str) for token in argv):
            raise TypeError("parse_args() argument must be an iterable of strings")

        self._root._reset()
        return aggregate(self, Scanner(self, argv))

    def help(self, result, /):
        """Help renderable for the command a ParseResult stopped at."""
        return render(self, result.command, result.ancestors)

    def trigger(self, fault, /, **options):
        trigger(fault, **{
            "tool": self,
            "shell": self._shell,
            "fancy": self._fancy,
            "colorful": self._colorful,
            "console": self._stderr,
        } | options)

    def __invoke__(self, prompt=Unset):
        """
        Run the program for a token stream.

        Parameters
        - prompt: Unset (sys.argv[1:]) | str (split with shlex) | Iterable[str].

        Behavior
        - help requested: print help to stdout.
        - parse error: trigger the fault (help attached as the "help" option).
        - triggered command with a callback: call callback(command, values); any
          exception it raises is triggered as DelegatedCommandError.
        - triggered command without a callback: print help to stderr and trigger
          MissingCommandError.

        Returns
        - the ParseResult when nothing was triggered.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("__invoke__() argument must be a string or an iterable of strings")
        else:
            raise TypeError("__invoke__() argument must be a string or an iterable of strings")

        result = self.parse_args(tokens)
        if result.help:
            self._stdout.print(self.help(result))
            return result

        if result.error is not None:
            self.trigger(result.error, help=self.help(result))
            return result

        command = result.command
        if command.callback is None:
            self._stderr.print(self.help(result))
            self.trigger(MissingCommandError(
                self._messages.missing_command % command.route,
                title="missing command",
                code=FaultCode.MISSING_COMMAND,
                hint="pick one of the listed commands" if command.children else "run '%s %s'" % (command.route, self.helper),
                command=command,
                docs=getdoc(FaultCode.MISSING_COMMAND),
            ))
            return result

        try:
            command.callback(command, command.values)
        except Exception as error:
            self.trigger(DelegatedCommandError(
                self._messages.delegated_error % (command.route, error),
                title="command failed",
                code=FaultCode.DELEGATED_ERROR,
                command=command,
                error=error,
                docs=getdoc(FaultCode.DELEGATED_ERROR),
            ))
        return result

    def __repr__(self):
        return "argument-parser(root=%r, helpers=%r, shell=%r)" % (self._root.name, self._helpers, self._shell)


def invoke(object, prompt=Unset, /):
    """
    Convenience runner.

    - object implementing __invoke__: called with prompt.
    - Command: run through its parser, or through a fresh ArgumentParser when it is
      not attached yet.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)
    if isinstance(object, Command):
        parser = object.root.parser if object.root.parser is not Unset else ArgumentParser(object)
        return parser.__invoke__(prompt)
    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method")


__all__ = (
    "ArgumentParser",
    "invoke",
)
