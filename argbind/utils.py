"""
argbind utilities (small building blocks shared by every layer)

Scope
- UnsetType / Unset
  • Singleton sentinel for "not provided", kept apart from None because None can be a
    legitimate destination value.
- coalesce(value, default=None)
  • Materialize Unset into a default while preserving falsy user values.
- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated accessors (clean tracebacks and reprs).
- mirror("attr")
  • Read-only property over a private "_attr" field; containers are handed out as copies
    so the registration bookkeeping cannot be mutated through the public surface.
- pluralize(text)
  • Label pluralization for hints ("command" -> "commands").
- identifiers(text)
  • Destination field candidates derived from a switch spelling or a positional name.

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> identifiers("--no-checkout")
    ('no_checkout', 'NoCheckout')
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for values that were not provided.

    Characteristics
    - bool(Unset) is False, but Unset is neither None nor 0.
    - repr(Unset) is "Unset".
    - UnsetType() always returns the same instance and the type cannot be subclassed.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case default is returned.

    None, 0, "" and [] are kept as they are: only the sentinel is replaced.
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Assign __name__/__qualname__ on a callable.

    Forms
    - rename(callable, name) -> callable, renamed in place.
    - rename(name) -> decorator doing the same later.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy containers (sequences to lists, mappings to dicts, sets to sets).

    Strings and leaf objects such as Commands or Arguments are returned untouched.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Build a read-only property reading self._<name> through _immortalize().
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def pluralize(text, /):
    """
    Best-effort English pluralizer for labels ("command" -> "commands").

    Only the last word of a phrase is pluralized; the rest is kept as is.
    """
    if not isinstance(text, str):
        raise TypeError("pluralize() argument must be a string")
    if not (match := re.search(r"(\S+)(\s*)$", text)):
        return text

    head, word, trail = text[:match.start(1)], match.group(1), match.group(2)
    lower = word.lower()
    if lower.endswith(("s", "sh", "ch", "x", "z")):
        plural = word + "es"
    elif lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        plural = word[:-1] + "ies"
    else:
        plural = word + "s"
    if word.isupper():
        plural = plural.upper()
    return head + plural + trail


@functools.cache
def identifiers(text, /):
    """
    Derive destination field candidates from a switch spelling or positional name.

    Behavior
    - leading dashes are dropped ("--no-checkout" -> "no-checkout").
    - words are split on '-', '.' and '_'.
    - the snake_case candidate joins the words with '_' and keeps their case
      ("no_checkout", "PosBool1").
    - the CapWords candidate upper-cases the first letter of every word and joins
      them without separators ("NoCheckout").
    - candidates that are not valid identifiers are dropped; duplicates are folded.

    Returns
    - tuple[str, ...]: candidates in lookup order (snake_case first).
    """
    if not isinstance(text, str):
        raise TypeError("identifiers() argument must be a string")

    words = [word for word in re.split(r"[-._]+", text.lstrip("-")) if word]
    candidates = []
    for candidate in ("_".join(words), "".join(word[:1].upper() + word[1:] for word in words)):
        if candidate.isidentifier() and candidate not in candidates:
            candidates.append(candidate)
    return tuple(candidates)


__all__ = (
    "UnsetType",
    "Unset",
    "coalesce",
    "rename",
    "mirror",
    "pluralize",
    "identifiers",
)
