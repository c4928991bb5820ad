"""
argbind scanning and aggregation.

Scanner
- a left-to-right state machine over argv. Each state is a bound method that consumes
  zero or more tokens, queues parse events and returns the next state (None stops).
- iterating a Scanner yields the events lazily, in argv order.

states
- argument    entry point and resting state; routes to descend / option / positional
              or reports an unexpected token; checks required positionals at the end.
- option      splits "--name=value", answers help spellings, matches switches exactly
              and falls back to short clusters ("-yx", "-j4").
- values      takes the next N tokens unconditionally for an N-ary switch (so "-3"
              is a value, not a switch).
- positional  fills the positionals strictly in declaration order; an optional slot
              takes a token only when the bare tokens left exceed what the later
              positionals require, and a slot is closed once a later one is used.
              an unbounded positional that received a token swallows everything
              after it.

aggregate()
- consumes the events, drives the value bindings, records "seen", follows descends,
  re-checks required positionals and finally propagates inherit switches along the
  triggered chain. parse failures come back inside ParseResult.error; they are never
  raised from here.
"""
import difflib
import functools
import re
from collections import deque
from enum import IntEnum
from typing import NamedTuple

from .faults import *
from .utils import Unset, pluralize

_NEGATIVE = re.compile(r"-\.?[0-9][\w.:]*")


class EventKind(IntEnum):
    ARGUMENT = 1
    VALUE = 2
    DESCEND = 3
    HELP = 4
    ERROR = 5


class Event(NamedTuple):
    kind: EventKind
    position: int
    command: object = None
    argument: object = None
    label: str | None = None
    value: str | None = None
    fault: CommandException | None = None


class ParseResult(NamedTuple):
    """
    outcome of one parse.

    - command: the triggered (deepest reached) Command.
    - ancestors: the Commands above it, root first (their destination objects are
      in ancestor_values).
    - error: the CommandException describing the failure, or None.
    - help: True when a help spelling stopped the parse.
    """
    command: object
    ancestors: tuple
    error: CommandException | None = None
    help: bool = False

    @property
    def values(self):
        return self.command.values

    @property
    def ancestor_values(self):
        return tuple(ancestor.values for ancestor in self.ancestors)

    @property
    def chain(self):
        return (*self.ancestors, self.command)


@functools.cache
def _ordinal(number):
    """
    human-friendly ordinal for a 1-based position ("first" .. "tenth", then "11th").
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"
    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


def _need(argument):
    match argument.nargs:
        case int(count):
            return count
        case "+":
            return 1
    return 0


def _capacity(argument):
    match argument.nargs:
        case int(count):
            return count
        case "?":
            return 1
    return None


def _spare(filled, argument):
    capacity = _capacity(argument)
    return capacity is None or filled[argument] < capacity


def _missing(parser, command, counts, /):
    """
    MissingPositionalError for the first positional of command below its required
    count, or None when every requirement is met.
    """
    for argument in command.positionals:
        if counts.get(argument, 0) < _need(argument):
            return MissingPositionalError(
                parser.messages.missing_positional % argument.name,
                title="missing positional",
                code=FaultCode.MISSING_POSITIONAL,
                hint="add the missing value; run '%s %s' to see the expected order" % (command.route, parser.helper),
                argument=argument,
                command=command,
                docs=getdoc(FaultCode.MISSING_POSITIONAL),
            )
    return None


class Scanner:
    """
    argv state machine bound to a parser context.

    parameters
    - parser: ArgumentParser supplying the root command, the messages and the help spellings.
    - argv: sequence of str tokens (program name excluded).
    """

    def __init__(self, parser, argv, /):
        self._parser = parser
        self._argv = tuple(argv)
        self._index = 0
        self._events = deque()
        self._terminated = False
        self._switch = Unset
        self._label = None
        self._pending = 0
        self._received = 0
        self._enter(parser.root)

    def __iter__(self):
        state = self._argument
        while state is not None:
            state = state()
            while self._events:
                yield self._events.popleft()
        while self._events:
            yield self._events.popleft()

    def _enter(self, command):
        self._command = command
        self._positionals = command.positionals
        self._filled = dict.fromkeys(self._positionals, 0)
        self._cursor = 0
        self._greedy = Unset

    def _emit(self, kind, /, **fields):
        self._events.append(Event(kind, fields.pop("position", self._index), **fields))

    def _fail(self, fault, /):
        self._emit(EventKind.ERROR, fault=fault)

    def _room(self):
        return any(_spare(self._filled, argument) for argument in self._positionals[self._cursor:])

    def _available(self):
        """Bare tokens left for the active command, skipping switches and their values."""
        count, terminated = 0, self._terminated
        tokens = iter(self._argv[self._index:])
        for token in tokens:
            if not terminated:
                if token in self._command.children:
                    break
                if token == "--":
                    terminated = True
                    continue
                if len(token) > 1 and token.startswith("-") and not _NEGATIVE.fullmatch(token):
                    spelling, separator, _ = token.partition("=")
                    if (argument := self._command._lookup(spelling)) is not None:
                        skip = argument.nargs - bool(separator)
                    elif (argument := self._command._lookup(token[:2])) is not None and argument.nargs:
                        skip = argument.nargs - 1
                    else:
                        skip = 0
                    for _ in range(max(skip, 0)):
                        next(tokens, None)
                    continue
            count += 1
        return count

    # --- states -------------------------------------------------------------------

    def _argument(self):
        if self._index == len(self._argv):
            if (fault := _missing(self._parser, self._command, self._filled)) is not None:
                self._fail(fault)
            return None

        token = self._argv[self._index]

        if self._greedy:
            return self._positional

        if not self._terminated:
            if (child := self._command.children.get(token)) is not None:
                self._emit(EventKind.DESCEND, command=child)
                self._index += 1
                self._enter(child)
                return self._argument
            if token == "--":
                self._terminated = True
                self._index += 1
                return self._argument
            if len(token) > 1 and token.startswith("-") and not (_NEGATIVE.fullmatch(token) and self._room()):
                return self._option

        if self._room():
            return self._positional

        self._fail(self._unexpected(token))
        return None

    def _option(self):
        token = self._argv[self._index]
        spelling, separator, attached = token.partition("=")
        attached = attached if separator else None

        if spelling in self._parser.helpers:
            self._emit(EventKind.HELP)
            return None

        if (argument := self._command._lookup(spelling)) is not None:
            self._index += 1
            return self._matched(argument, spelling, attached)

        if not token.startswith("--") and len(token) > 2:
            return self._cluster

        self._fail(self._unknown(spelling))
        return None

    def _cluster(self):
        index = self._index
        token = self._argv[index]
        head, tail = token[:2], token[2:]

        if head in self._parser.helpers:
            self._emit(EventKind.HELP)
            return None

        if (argument := self._command._lookup(head)) is None:
            self._fail(self._unknown(token.partition("=")[0]))
            return None

        self._index += 1
        if argument.nargs != 0:
            # "-j4": the rest of the token is the first value
            return self._matched(argument, head, tail)

        members = [(argument, head)]
        for character in tail:
            if (spelling := "-" + character) in self._parser.helpers:
                self._emit(EventKind.HELP)
                return None
            member = self._command._lookup(spelling)
            if member is None or member.nargs != 0:
                if member is None:
                    hint = "every character after %r must be a switch that takes no value" % head
                else:
                    hint = "%r takes a value; pass it as a separate switch" % spelling
                self._fail(MalformedClusterError(
                    self._parser.messages.malformed_cluster % (spelling, token, _ordinal(index + 1)),
                    title="malformed switch cluster",
                    code=FaultCode.MALFORMED_CLUSTER,
                    hint=hint,
                    input=token,
                    switch=spelling,
                    index=index,
                    docs=getdoc(FaultCode.MALFORMED_CLUSTER),
                ))
                return None
            members.append((member, spelling))

        for member, spelling in members:
            self._emit(EventKind.ARGUMENT, argument=member, label=spelling, position=index)
        return self._argument

    def _matched(self, argument, label, attached):
        index = self._index - 1
        self._emit(EventKind.ARGUMENT, argument=argument, label=label, position=index)

        if argument.nargs == 0:
            if attached is not None:
                self._fail(FlagAssignmentError(
                    self._parser.messages.flag_assignment % (label, _ordinal(index + 1)),
                    title="switch cannot take a value",
                    code=FaultCode.FLAG_ASSIGNMENT,
                    hint="remove everything from '=' (for example: %s)" % label,
                    input=label,
                    argument=argument,
                    index=index,
                    docs=getdoc(FaultCode.FLAG_ASSIGNMENT),
                ))
                return None
            return self._argument

        self._switch, self._label = argument, label
        self._pending, self._received = argument.nargs, 0
        if attached is not None:
            self._emit(EventKind.VALUE, argument=argument, label=label, value=attached, position=index)
            self._received += 1
        return self._values if self._received < self._pending else self._argument

    def _values(self):
        if self._index == len(self._argv):
            messages = self._parser.messages
            if self._pending == 1:
                fault = OptionValueRequiredError(
                    messages.expected_value % self._label,
                    title="value required",
                    code=FaultCode.OPTION_VALUE_REQUIRED,
                    hint="pass a value after %s (for example: %s <value>)" % (self._label, self._label),
                    input=self._label,
                    argument=self._switch,
                    docs=getdoc(FaultCode.OPTION_VALUE_REQUIRED),
                )
            else:
                fault = NotEnoughValuesError(
                    messages.expected_values % (self._pending, self._label, self._received),
                    title="not enough values",
                    code=FaultCode.NOT_ENOUGH_VALUES,
                    hint="%s takes exactly %d values" % (self._label, self._pending),
                    input=self._label,
                    argument=self._switch,
                    docs=getdoc(FaultCode.NOT_ENOUGH_VALUES),
                )
            self._fail(fault)
            return None

        self._emit(EventKind.VALUE, argument=self._switch, label=self._label, value=self._argv[self._index])
        self._index += 1
        self._received += 1
        return self._values if self._received < self._pending else self._argument

    def _positional(self):
        if self._index == len(self._argv):
            return self._argument

        token = self._argv[self._index]
        if self._greedy:
            argument = self._greedy
        else:
            available = self._available()
            for cursor in range(self._cursor, len(self._positionals)):
                argument = self._positionals[cursor]
                if self._filled[argument] < _need(argument):
                    break
                # optional slots only take tokens the later positionals can spare
                owed = sum(map(_need, self._positionals[cursor + 1:]))
                if _spare(self._filled, argument) and available > owed:
                    break
            else:
                self._fail(self._unexpected(token))
                return None
            self._cursor = cursor

        self._emit(EventKind.ARGUMENT, argument=argument, label=argument.name)
        self._emit(EventKind.VALUE, argument=argument, label=argument.name, value=token)
        self._filled[argument] += 1
        self._index += 1

        if argument.unbounded:
            self._greedy = argument
            return self._positional
        return self._argument

    # --- faults -------------------------------------------------------------------

    def _unknown(self, spelling):
        suggestions = difflib.get_close_matches(
            spelling, [*self._command._spellings, *self._parser.helpers], 5
        )
        try:
            hint = "did you mean %r? you can also run '%s %s' to see all switches" % (
                suggestions[0], self._command.route, self._parser.helper
            )
        except IndexError:
            hint = "run '%s %s' to see all switches" % (self._command.route, self._parser.helper)
        return UnknownSwitchError(
            self._parser.messages.unknown_switch % (spelling, _ordinal(self._index + 1)),
            title="unknown switch",
            code=FaultCode.UNKNOWN_SWITCH,
            hint=hint,
            input=spelling,
            index=self._index,
            suggestions=suggestions,
            docs=getdoc(FaultCode.UNKNOWN_SWITCH),
        )

    def _unexpected(self, token):
        command = self._command
        if command.children and not self._positionals and not self._terminated:
            typeof = "subcommand" if command.parent else "command"
            code = FaultCode.UNKNOWN_SUBCOMMAND if command.parent else FaultCode.UNKNOWN_COMMAND
            exception = UnknownSubcommandError if command.parent else UnknownCommandError
            suggestions = difflib.get_close_matches(token, list(command.children), 5)
            try:
                hint = "did you mean %r? you can also run '%s %s' to see available %s" % (
                    suggestions[0], command.route, self._parser.helper, pluralize(typeof)
                )
            except IndexError:
                hint = "run '%s %s' to see available %s" % (command.route, self._parser.helper, pluralize(typeof))
            return exception(
                self._parser.messages.unknown_command % (typeof, token, _ordinal(self._index + 1)),
                title="unknown %s" % typeof,
                code=code,
                hint=hint,
                input=token,
                index=self._index,
                suggestions=suggestions,
                docs=getdoc(code),
            )
        return UnexpectedPositionalError(
            self._parser.messages.unexpected_positional % (token, _ordinal(self._index + 1)),
            title="unexpected positional",
            code=FaultCode.UNEXPECTED_POSITIONAL,
            hint="remove this extra value or run '%s %s' to see the expected usage" % (command.route, self._parser.helper),
            input=token,
            index=self._index,
            docs=getdoc(FaultCode.UNEXPECTED_POSITIONAL),
        )


def _wrap(messages, fault, argument, label, index):
    # re-issue a binding fault with the switch or positional that was being processed
    return type(fault)(
        messages.while_parsing % (label, fault.message),
        **fault.options | {
            "input": label,
            "value": fault.options.get("input"),
            "argument": argument,
            "index": index,
        }
    )


def aggregate(parser, events, /):
    """
    consume parse events and build the ParseResult.

    behavior
    - ARGUMENT: mark argument.dest seen on the active command; a zero-arity switch is
      stored right away through seen_without_value().
    - VALUE: parse the text into the pending argument; binding faults are re-issued
      with the argument label in front of the message.
    - DESCEND: remember the active command as an ancestor and move to the child.
    - HELP / ERROR: stop and report.
    - end of stream: re-check required positionals, then propagate inherit switches
      along ancestors + triggered command.
    """
    command, ancestors = parser.root, []
    messages = parser.messages
    pending = label = None
    counts = {}

    def result(error=None, help=False):
        return ParseResult(command, tuple(ancestors), error, help)

    for event in events:
        match event.kind:
            case EventKind.ARGUMENT:
                pending, label = event.argument, event.label
                command._seen.add(pending.dest)
                if pending.nargs == 0:
                    try:
                        pending.value.seen_without_value(messages)
                    except CommandException as fault:
                        return result(_wrap(messages, fault, pending, label, event.position))
            case EventKind.VALUE:
                if pending is None:
                    raise RuntimeError("value event without a pending argument")
                try:
                    pending.value.parse(messages, event.value)
                except CommandException as fault:
                    return result(_wrap(messages, fault, pending, label, event.position))
                if pending.positional:
                    counts[pending] = counts.get(pending, 0) + 1
            case EventKind.DESCEND:
                command._commands_seen.add(event.command.name)
                ancestors.append(command)
                command, pending, label, counts = event.command, None, None, {}
            case EventKind.HELP:
                return result(help=True)
            case EventKind.ERROR:
                return result(event.fault)

    if (fault := _missing(parser, command, counts)) is not None:
        return result(fault)

    chain = (*ancestors, command)
    for current, successor in zip(chain, chain[1:]):
        current._propagate(successor)
    return result()


__all__ = (
    "EventKind",
    "Event",
    "ParseResult",
    "Scanner",
    "aggregate",
)
