r"""
cmdtree argument specifications.

Overview
- Specs
  • Positional[_T]: an argument identified by position. Single or collection,
    required or optional, expressed through nargs:
      Unset → one token, required
      "?"   → one token, optional
      "+"   → one or more tokens
      "*"   → zero or more tokens
  • Option[_T]: a value-consuming flag with one or more aliases (e.g. -o/--output);
    takes the next token, or an inline value (--output=file).
  • Flag: a toggle with one or more aliases (e.g. -v/--verbose); binds True when present.

- Declaration
  Specs are used as parameter defaults of a command callback:

      def ls(files=Positional("FILE", nargs="*"), /,
             width=Option("-w --width", metavar="COLS", type=integer),
             *, all=Flag("-a --all")): ...

  Positional-only parameters take Positional specs, standard parameters take
  Option specs and keyword-only parameters take Flag specs.

- Introspection & representation
  • ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes the
    fields listed in __introspectable__ as read-only properties.

Validation highlights
- Aliases must match r"--?[^\W\d_](-?[^\W_]+)*" ("-v", "--verbose", "-name") and be
  unique within a spec. They may be given one per argument or as a single
  space-separated string ("-v --verbose").
- metavar/descr strings are trimmed; empty strings are rejected.
- type must be callable (see cmdtree.values for the stock converters).
"""
import functools
import operator
import re

from .faults import MalformedNameError, DuplicateNameError
from .utils import *
from .values import string

NAME = re.compile(r"--?[^\W\d_](-?[^\W_]+)*")
LONGFORM = re.compile(r"-[^-].+")


def split_names(owner, field, names, /):
    """
    Flatten and validate a collection of aliases.

    Each item may hold several space-separated aliases; the result keeps the
    declaration order.

    Raises
    - TypeError: a non-string alias.
    - MalformedNameError: no alias at all, or an alias that is not a valid
      shell-style name ("", "hello", "---verbose").
    - DuplicateNameError: the same alias twice.
    """
    if isinstance(names, str):
        names = (names,)

    flattened = []
    for item in names:
        if not isinstance(item, str):
            raise TypeError(f"{owner} {field} must be strings")
        for name in item.split():
            if not NAME.fullmatch(name):
                raise MalformedNameError(f"{owner} name {name!r} is not a valid shell-style option name")
            elif name in flattened:
                raise DuplicateNameError(f"{owner} name {name!r} is given twice")
            flattened.append(name)

    if not flattened:
        raise MalformedNameError(f"{owner} {field} must specify at least one name")
    return tuple(flattened)


class ArgumentType(type):
    """
    Metaclass giving specs a typename, read-only properties and stable reprs.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - Every name in __introspectable__ becomes a property mirroring self._{name}.
    """
    __introspectable__ = ()

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
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize the fields shared by every spec (descr, hidden).
    """
    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)
    metadata["hidden"] = bool(metadata["hidden"])


def _sanitize_parametric_metadata(cls, metadata, /):
    """
    Internal: normalize the fields of value-bearing specs (metavar, type).

    An Unset metavar stays Unset; the command derives one from the parameter
    name when the spec is attached.
    """
    if not isinstance(metavar := metadata["metavar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'metavar' must be a string")
    elif isinstance(metavar, str) and not (metavar := metavar.strip()):
        raise ValueError(f"{cls.__typename__} 'metavar' cannot be empty")
    metadata["metavar"] = metavar

    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be callable")


class Positional[_T](metaclass=ArgumentType):
    """
    Positional argument specification.

    Properties
    - metavar: display name used in usage lines and error messages.
    - optional: the slot may be left unset.
    - collection: the slot absorbs a variable number of tokens, in order.
    """

    __introspectable__ = (
        "metavar",
        "type",
        "nargs",
        "default",
        "descr",
        "hidden",
    )

    def __new__(
            cls,
            metavar=Unset,
            /,
            type=string,
            nargs=Unset,
            default=Unset,
            descr=Unset,
            *,
            hidden=False
    ):
        metadata = {
            "metavar": metavar,
            "type": type,
            "nargs": nargs,
            "default": default,
            "descr": descr,
            "hidden": hidden,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_parametric_metadata(cls, metadata)

        if not isinstance(nargs, str | Unset):
            raise TypeError(f"{cls.__typename__} 'nargs' must be a string")
        elif isinstance(nargs, str) and nargs not in ("?", "+", "*"):
            raise ValueError(f"{cls.__typename__} 'nargs' must be one of '?', '+', or '*'")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def optional(self):
        return self._nargs in ("?", "*")

    @property
    def collection(self):
        return self._nargs in ("+", "*")

    def unset(self):
        """
        Value bound when the slot receives no token: a copy of the declared
        default, otherwise None for single slots and a fresh empty list for
        collections.
        """
        if self._default is not Unset:
            return self.default
        return [] if self.collection else None

    def __replace__(self, **overrides):
        return type(self)(
            overrides.get("metavar", self._metavar),
            type=overrides.get("type", self._type),
            nargs=overrides.get("nargs", self._nargs),
            default=overrides.get("default", self._default),
            descr=overrides.get("descr", Unset if self._descr is None else self._descr),
            hidden=overrides.get("hidden", self._hidden),
        )

    def __positional__(self):
        return self


class Option[_T](metaclass=ArgumentType):
    """
    Value-consuming flag specification.

    The value is the next token ("--width 80") or the inline part of
    "--width=80"; it is converted with ``type`` once tokenizing finished.
    A repeated option keeps its last value; an absent one binds ``default``.
    """

    __introspectable__ = (
        "names",
        "metavar",
        "type",
        "default",
        "descr",
        "hidden",
    )

    def __new__(
            cls,
            *names,
            metavar=Unset,
            type=string,
            default=None,
            descr=Unset,
            hidden=False
    ):
        metadata = {
            "names": split_names(cls.__typename__, "names", names),
            "metavar": metavar,
            "type": type,
            "default": default,
            "descr": descr,
            "hidden": hidden,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_parametric_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __replace__(self, **overrides):
        return type(self)(
            *overrides.get("names", self._names),
            metavar=overrides.get("metavar", self._metavar),
            type=overrides.get("type", self._type),
            default=overrides.get("default", self._default),
            descr=overrides.get("descr", Unset if self._descr is None else self._descr),
            hidden=overrides.get("hidden", self._hidden),
        )

    def __option__(self):
        return self


class Flag(metaclass=ArgumentType):
    """
    Toggle specification: False unless one of its aliases appears.
    """

    __introspectable__ = (
        "names",
        "descr",
        "hidden",
    )

    def __new__(cls, *names, descr=Unset, hidden=False):
        metadata = {
            "names": split_names(cls.__typename__, "names", names),
            "descr": descr,
            "hidden": hidden,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __flag__(self):
        return self


__all__ = (
    # Classes (specifications)
    "Positional",
    "Option",
    "Flag",
)

# Remove the internal metaclass from the module namespace; not part of the public API.
del ArgumentType
