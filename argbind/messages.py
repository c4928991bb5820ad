"""
argbind message catalog.

Every user-facing string produced by the value layer, the scanner and the help
renderer comes from a Messages instance. The catalog is passed explicitly (the
parser owns one and hands it down), so a host can ship a translated catalog with
Messages(...) or DEFAULT_MESSAGES._replace(...).

Format fields
- printf-style placeholders (%s / %r / %d); the arguments each template receives are
  listed next to its default below.
"""
from typing import NamedTuple


class Messages(NamedTuple):
    # help sections
    usage: str = "usage"
    options: str = "options"
    positionals: str = "positionals"
    subcommands: str = "subcommands"
    help_description: str = "show this help message and exit"

    # value conversion: (text,)
    cannot_parse_boolean: str = "cannot convert %r to a boolean"
    cannot_parse_integer: str = "cannot convert %r to an integer"
    cannot_parse_float: str = "cannot convert %r to a float"
    cannot_parse_duration: str = "cannot convert %r to a duration"
    # (text, kind)
    out_of_range: str = "value %r is out of range for %s"
    # (kind,)
    choices_of_wrong_type: str = "choices should be a sequence of %s"
    # (text, choices)
    should_be_a_valid_choice: str = "%r is not a valid choice; should be one of: %s"
    # (kind,)
    needs_a_value: str = "a %s destination cannot be set without a value"

    # scanning: (spelling, ordinal)
    unknown_switch: str = "unknown switch %r at %s position"
    flag_assignment: str = "switch %r at %s position does not take a value"
    expected_value: str = "expected a value after %s"
    # (count, spelling, received)
    expected_values: str = "expected %d values after %s, got %d"
    # (switch, cluster, ordinal)
    malformed_cluster: str = "cannot resolve %r in the switch cluster %r at %s position"
    # (token, ordinal)
    unexpected_positional: str = "unexpected positional argument %r at %s position"
    # (kind, token, ordinal)
    unknown_command: str = "unknown %s %r at %s position"
    # (name,)
    missing_positional: str = "expected a required %r argument"
    # (label, message)
    while_parsing: str = "%s: %s"

    # runner: (route,)
    missing_command: str = "nothing to run for %r"
    # (route, error)
    delegated_error: str = "%r failed: %s"


DEFAULT_MESSAGES = Messages()


__all__ = (
    "Messages",
    "DEFAULT_MESSAGES",
)
