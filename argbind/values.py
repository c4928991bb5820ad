"""
argbind value bindings.

A Value ties one attribute of a destination object to a (Kind, Storage) pair and knows
how to turn command-line text into that attribute's value. The family is closed:
six kinds times two storages, dispatched through tables keyed on Kind rather than
through subclasses.

Kinds
- BOOL      1 t T TRUE true True / 0 f F FALSE false False
- STRING    stored as given
- INT       "0x" hexadecimal, "0o" octal, leading "0" octal, otherwise decimal;
            signed 64-bit range
- INT64     same grammar as INT; selected with the Int64 annotation
- FLOAT     Python float literals without whitespace or underscores; finite unless
            spelled as inf/nan
- DURATION  compound "[+-](number unit)+" with units ns, us, µs, ms, s, m, h, or a
            bare "0"; stored as Duration (integer nanoseconds)

Storages
- SCALAR    each parse overwrites the attribute
- SLICE     each parse appends to the attribute (a new list is assigned every time, so
            a list shared at class level is never mutated in place)

Every operation that can produce user-facing text receives the Messages catalog as
an explicit argument. Conversion and choice failures raise CommandException
subclasses; the aggregator adds the switch or positional name to them.
"""
import datetime
import math
import re
import types
import typing
from enum import Enum
from fractions import Fraction

from .faults import FaultCode, UncastableValueError, InvalidChoiceError, OptionValueRequiredError, getdoc
from .utils import Unset, mirror

Int64 = typing.NewType("Int64", int)

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class Kind(Enum):
    BOOL = "bool"
    STRING = "str"
    INT = "int"
    INT64 = "int64"
    FLOAT = "float"
    DURATION = "duration"


class Storage(Enum):
    SCALAR = "scalar"
    SLICE = "slice"


_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60_000_000_000,
    "h": 3_600_000_000_000,
}

_COMPONENT = r"([0-9]+(?:\.[0-9]*)?|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)"


class Duration(int):
    """
    Signed elapsed time in integer nanoseconds.

    Duration subclasses int, so it compares and sorts like the nanosecond count it
    holds; arithmetic gives back plain ints. str() uses the compact unit form
    ("1h2m3s", "1.5s", "300ms", "0s").
    """
    NANOSECOND = 1
    MICROSECOND = 1_000
    MILLISECOND = 1_000_000
    SECOND = 1_000_000_000
    MINUTE = 60 * SECOND
    HOUR = 60 * MINUTE

    @classmethod
    def parse(cls, text, /):
        """
        Parse the compound duration grammar.

        - an optional sign applies to the whole text ("-1h30m" is minus ninety minutes).
        - each component is a decimal number (fractions allowed) followed by a unit;
          fractional parts are truncated toward zero at nanosecond precision.
        - "0", "+0" and "-0" are accepted without a unit.
        - the total must fit in a signed 64-bit integer.

        Raises
        - ValueError: malformed text or overflow.
        """
        if not isinstance(text, str):
            raise TypeError("Duration.parse() argument must be a string")

        sign, body = (text[0], text[1:]) if text[:1] in ("+", "-") else ("", text)
        if body == "0":
            return cls(0)
        if not body or not re.fullmatch(f"(?:{_COMPONENT})+", body):
            raise ValueError("invalid duration %r" % text)

        total = 0
        for number, unit in re.findall(_COMPONENT, body):
            total += int(Fraction(number) * _UNITS[unit])

        if sign == "-":
            total = -total
        if not _INT64_MIN <= total <= _INT64_MAX:
            raise ValueError("duration %r overflows" % text)
        return cls(total)

    def total_seconds(self):
        return int(self) / self.SECOND

    def to_timedelta(self):
        """Convert to datetime.timedelta (microsecond precision, truncated)."""
        microseconds = abs(int(self)) // self.MICROSECOND
        return datetime.timedelta(microseconds=-microseconds if self < 0 else microseconds)

    def __str__(self):
        nanoseconds = abs(int(self))
        sign = "-" if self < 0 else ""
        if not nanoseconds:
            return "0s"
        if nanoseconds < self.MICROSECOND:
            return f"{sign}{nanoseconds}ns"
        if nanoseconds < self.MILLISECOND:
            return f"{sign}{_decimal(nanoseconds, self.MICROSECOND)}µs"
        if nanoseconds < self.SECOND:
            return f"{sign}{_decimal(nanoseconds, self.MILLISECOND)}ms"

        hours, rest = divmod(nanoseconds, self.HOUR)
        minutes, rest = divmod(rest, self.MINUTE)
        text = f"{_decimal(rest, self.SECOND)}s"
        if hours or minutes:
            text = f"{minutes}m{text}"
        if hours:
            text = f"{hours}h{text}"
        return sign + text

    def __repr__(self):
        return f"Duration({str(self)!r})"


def _decimal(value, size):
    whole, fraction = divmod(value, size)
    if not fraction:
        return str(whole)
    return f"{whole}.{str(fraction).rjust(len(str(size)) - 1, '0').rstrip('0')}"


def _uncastable(message, text, kind):
    return UncastableValueError(
        message,
        title="uncastable value",
        code=FaultCode.UNCASTABLE_VALUE,
        hint="pass a valid %s value" % kind.value,
        input=text,
        kind=kind,
        docs=getdoc(FaultCode.UNCASTABLE_VALUE),
    )


def _to_bool(messages, text):
    if text in ("1", "t", "T", "TRUE", "true", "True"):
        return True
    if text in ("0", "f", "F", "FALSE", "false", "False"):
        return False
    raise _uncastable(messages.cannot_parse_boolean % text, text, Kind.BOOL)


def _to_string(messages, text):
    return text


def _to_integer(messages, text, kind=Kind.INT):
    sign, body = (text[0], text[1:]) if text[:1] in ("+", "-") else ("", text)
    if body.startswith(("0x", "0X")):
        digits, base, pattern = body[2:], 16, r"[0-9a-fA-F]+"
    elif body.startswith(("0o", "0O")):
        digits, base, pattern = body[2:], 8, r"[0-7]+"
    elif len(body) > 1 and body.startswith("0"):
        digits, base, pattern = body[1:], 8, r"[0-7]+"
    else:
        digits, base, pattern = body, 10, r"[0-9]+"

    if not re.fullmatch(pattern, digits):
        raise _uncastable(messages.cannot_parse_integer % text, text, kind)
    if not _INT64_MIN <= (number := int(sign + digits, base)) <= _INT64_MAX:
        raise _uncastable(messages.out_of_range % (text, kind.value), text, kind)
    return number


def _to_int64(messages, text):
    return _to_integer(messages, text, Kind.INT64)


def _to_float(messages, text):
    if not text or text != text.strip() or "_" in text:
        raise _uncastable(messages.cannot_parse_float % text, text, Kind.FLOAT)
    try:
        number = float(text)
    except ValueError:
        raise _uncastable(messages.cannot_parse_float % text, text, Kind.FLOAT) from None
    # "1e400" overflows to inf; only an explicit inf/infinity spelling may produce it
    if math.isinf(number) and "inf" not in text.lower():
        raise _uncastable(messages.out_of_range % (text, Kind.FLOAT.value), text, Kind.FLOAT)
    return number


def _to_duration(messages, text):
    try:
        return Duration.parse(text)
    except ValueError:
        raise _uncastable(messages.cannot_parse_duration % text, text, Kind.DURATION) from None


_converters = {
    Kind.BOOL: _to_bool,
    Kind.STRING: _to_string,
    Kind.INT: _to_integer,
    Kind.INT64: _to_int64,
    Kind.FLOAT: _to_float,
    Kind.DURATION: _to_duration,
}

_annotations = {
    bool: Kind.BOOL,
    str: Kind.STRING,
    int: Kind.INT,
    Int64: Kind.INT64,
    float: Kind.FLOAT,
    Duration: Kind.DURATION,
}


def _accepts(kind, object):
    match kind:
        case Kind.BOOL:
            return isinstance(object, bool)
        case Kind.STRING:
            return isinstance(object, str)
        case Kind.INT | Kind.INT64 | Kind.DURATION:
            return isinstance(object, int) and not isinstance(object, bool)
        case Kind.FLOAT:
            return isinstance(object, int | float) and not isinstance(object, bool)
    return False


def _display(choices):
    return "[%s]" % ", ".join(repr(choice) if isinstance(choice, str) else str(choice) for choice in choices)


class Value:
    """
    Typed accessor for one attribute of a destination object.

    Operations
    - parse(messages, text): convert, check choices, store (overwrite or append).
    - seen_without_value(messages): only a scalar BOOL accepts this (stores True).
    - default_arity(): 0 for a scalar BOOL, 1 for everything else.
    - set_choices(messages, choices): restrict accepted values; the choices must all
      belong to the bound kind.
    - get()/set(object): raw access used when an inherited value is copied forward.
    """
    __slots__ = ("_target", "_field", "_kind", "_storage", "_choices")

    field = mirror("field")
    kind = mirror("kind")
    storage = mirror("storage")
    choices = mirror("choices")

    def __init__(self, target, field, kind, storage):
        if not isinstance(field, str) or not field.isidentifier():
            raise TypeError("value field must be an identifier")
        if not isinstance(kind, Kind):
            raise TypeError("value kind must be a Kind")
        if not isinstance(storage, Storage):
            raise TypeError("value storage must be a Storage")
        self._target = target
        self._field = field
        self._kind = kind
        self._storage = storage
        self._choices = ()

    @property
    def typename(self):
        if self._storage is Storage.SLICE:
            return "list[%s]" % self._kind.value
        return self._kind.value

    def default_arity(self):
        return 0 if self._kind is Kind.BOOL and self._storage is Storage.SCALAR else 1

    def set_choices(self, messages, choices, /):
        choices = tuple(choices)
        for choice in choices:
            if not _accepts(self._kind, choice):
                raise TypeError(messages.choices_of_wrong_type % self._kind.value)
        self._choices = choices

    def parse(self, messages, text, /):
        if not isinstance(text, str):
            raise TypeError("value text must be a string")
        object = _converters[self._kind](messages, text)
        if self._choices and object not in self._choices:
            raise InvalidChoiceError(
                messages.should_be_a_valid_choice % (text, _display(self._choices)),
                title="invalid choice",
                code=FaultCode.INVALID_CHOICE,
                hint="pick one of %s" % _display(self._choices),
                input=text,
                choices=self._choices,
                docs=getdoc(FaultCode.INVALID_CHOICE),
            )
        if self._storage is Storage.SLICE:
            object = [*(getattr(self._target, self._field, None) or ()), object]
        setattr(self._target, self._field, object)

    def seen_without_value(self, messages, /):
        if self._kind is Kind.BOOL and self._storage is Storage.SCALAR:
            setattr(self._target, self._field, True)
            return
        raise OptionValueRequiredError(
            messages.needs_a_value % self.typename,
            title="value required",
            code=FaultCode.OPTION_VALUE_REQUIRED,
            hint="pass a %s value" % self._kind.value,
            docs=getdoc(FaultCode.OPTION_VALUE_REQUIRED),
        )

    def get(self):
        object = getattr(self._target, self._field, None)
        if self._storage is Storage.SLICE and object is not None:
            return list(object)
        return object

    def set(self, object, /):
        if self._storage is Storage.SLICE and object is not None:
            object = list(object)
        setattr(self._target, self._field, object)

    def __repr__(self):
        return "Value(%s.%s, kind=%s, storage=%s)" % (
            type(self._target).__name__, self._field, self._kind.name, self._storage.name
        )


def _optional(annotation):
    # X | None and Optional[X] narrow to X
    if isinstance(annotation, types.UnionType) or typing.get_origin(annotation) is typing.Union:
        arguments = [argument for argument in typing.get_args(annotation) if argument is not type(None)]
        if len(arguments) == 1:
            return arguments[0]
    return annotation


def _lookup(annotation):
    try:
        return _annotations[annotation]
    except (KeyError, TypeError):
        return Unset


def _infer(target, field):
    # unannotated attributes: fall back to the runtime type of the current value
    current = getattr(target, field, None)
    if isinstance(current, list):
        kinds = {_lookup(type(item)) for item in current}
        if len(kinds) == 1 and Unset not in kinds:
            return kinds.pop(), Storage.SLICE
    elif (kind := _lookup(type(current))) is not Unset:
        return kind, Storage.SCALAR
    return Unset, Unset


def hints(target, /):
    """
    Resolved class annotations of a destination object ({} when they cannot be resolved).
    """
    try:
        return typing.get_type_hints(type(target))
    except (NameError, TypeError):
        return {}


def bind(target, field, /):
    """
    Build the Value for target.field.

    Resolution
    - the class annotation wins (typing.get_type_hints, so string annotations work);
      list[X] selects SLICE storage and X | None is narrowed to X.
    - without an annotation, the kind comes from the runtime type of the current
      value (a non-empty homogeneous list selects SLICE storage).

    Raises
    - TypeError: the kind cannot be determined or is not supported.
    """
    if (annotation := hints(target).get(field, Unset)) is Unset:
        kind, storage = _infer(target, field)
    else:
        annotation, storage = _optional(annotation), Storage.SCALAR
        if annotation is list or typing.get_origin(annotation) is list:
            storage = Storage.SLICE
            arguments = typing.get_args(annotation)
            if arguments:
                kind = _lookup(_optional(arguments[0]))
            else:
                kind, _ = _infer(target, field)
        else:
            kind = _lookup(annotation)

    if kind is Unset:
        raise TypeError(
            "field %r of %s has no supported kind (annotate it with bool, str, int, Int64, float, "
            "Duration or a list of one of them)" % (field, type(target).__name__)
        )
    return Value(target, field, kind, storage)


__all__ = (
    "Int64",
    "Kind",
    "Storage",
    "Duration",
    "Value",
    "bind",
)
