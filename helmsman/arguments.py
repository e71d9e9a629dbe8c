r"""
Helmsman declarations attached to command nodes.

Overview
- Argument: a typed positional slot (`type:name`), optionally optional,
  variadic (absorbs the remaining tokens), or with its type label hidden.
- Flag: a named, order-independent switch (`-f,--force` or `int:--count`);
  always optional, never variadic.
- ContextProvider: a named supplier of a value derived from the actor rather
  than from typed input; absence aborts the invocation.
- SenderKind: which kind of actor may run a node.

Introspection & representation
- ArgumentType metaclass provides stable __repr__/__rich_repr__ and exposes
  selected fields via read-only properties declared in __introspectable__.
- str() renders the usage label shown in help (`<int:amount>`, `[player:target]`,
  `[--count int]`).

Metadata (sanitized on construction)
- names: no whitespace; flag names must match r"--?[^\W\d_](-?[^\W_]+)*".
- position: non-negative integer shared between arguments and flags of a node.
- default: callable(actor) or None; only optional arguments may carry one.

Quick example:
    >>> from helmsman.argtypes import TypeRegistry
    >>> types = TypeRegistry()
    >>> amount = Argument(types["int"], "amount", 0)
    >>> str(amount)
    '<int:amount>'
"""
import builtins
import functools
import operator
import re
from enum import Enum

from .argtypes import ArgType
from .utils import *


class ArgumentType(type):
    """
    Metaclass that turns declarations into introspectable value objects.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and pretty printing of command trees.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in error messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
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
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(type='int', name='amount', position=0, ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                value = getattr(self, name)
                # types are shown by name; their converters are noise in a tree dump
                yield name, value.name if isinstance(value, ArgType) else value
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_identifier(cls, metadata, key, /):
    if not isinstance(value := metadata[key], str):
        raise TypeError(f"{cls.__typename__} '{key}' must be a string")
    elif not value:
        raise ValueError(f"{cls.__typename__} '{key}' cannot be empty")
    elif re.search(r"\s", value):
        raise ValueError(f"{cls.__typename__} '{key}' cannot contain whitespace")


def _sanitize_typed_metadata(cls, metadata, /):
    """
    Internal: validate the shared fields of arguments and flags.

    - type: must be an ArgType.
    - position: non-negative integer (bools rejected).
    - default: None or a callable taking the actor.
    """
    if not isinstance(metadata["type"], ArgType):
        raise TypeError(f"{cls.__typename__} 'type' must be an arg-type")

    if not isinstance(position := metadata["position"], int) or isinstance(position, bool):
        raise TypeError(f"{cls.__typename__} 'position' must be an integer")
    elif position < 0:
        raise ValueError(f"{cls.__typename__} 'position' cannot be negative")

    if metadata["default"] is not None and not callable(metadata["default"]):
        raise TypeError(f"{cls.__typename__} 'default' must be callable")


def _sanitize_flag_names(cls, metadata, /):
    r"""
    Internal: validate flag aliases.

    Each name must be a non-empty string matching r"--?[^\W\d_](-?[^\W_]+)*"
    ("-f", "-long-name", "--force"); unicode letters are allowed and duplicates
    are rejected. Declaration order is kept, the first name is the primary one.
    """
    names = []
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"--?[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(f"{cls.__typename__} names must be valid shell-style option names (unicodes are allowed)")
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)

    metadata["names"] = tuple(names)


class Argument(metaclass=ArgumentType):
    """
    Positional, typed argument declaration.

    Properties
    - type: ArgType used to convert the token.
    - name: label shown in help (`<type:name>`).
    - position: index among the node's header tokens (shared with flags).
    - optional: may be dropped by the matcher when tokens are scarce.
    - variadic: absorbs every remaining token, rejoined with single spaces.
    - hidden: hide the type label in help (`<name>` instead of `<type:name>`).
    """

    __introspectable__ = (
        "type",
        "name",
        "position",
        "optional",
        "variadic",
        "hidden",
        "default",
    )

    __displayable__ = (
        "type",
        "name",
        "position",
        "optional",
        "variadic",
        "hidden",
    )

    def __init__(self, type, name, position, /, *, optional=False, variadic=False, hidden=False, default=None):
        metadata = {
            "type": type,
            "name": name,
            "position": position,
            "optional": bool(optional),
            "variadic": bool(variadic),
            "hidden": bool(hidden),
            "default": default,
        }
        _sanitize_typed_metadata(builtins.type(self), metadata)
        _sanitize_identifier(builtins.type(self), metadata, "name")

        if metadata["default"] is not None and not metadata["optional"]:
            raise ValueError(f"required {builtins.type(self).__typename__} cannot have a 'default'")

        for key, object in metadata.items():
            setattr(self, "_" + key, object)

    def fallback(self, actor, /):
        """
        Value used when the argument was dropped: the declared default or None.
        """
        if self._default is None:
            return None
        return self._default(actor)

    def __str__(self):
        label = self._name if self._hidden else f"{self._type.name}:{self._name}"
        if self._variadic:
            label += "..."
        return f"[{label}]" if self._optional else f"<{label}>"


class Flag(metaclass=ArgumentType):
    """
    Named, order-independent switch declaration.

    A boolean flag is present/absent (`-f` yields True, absence yields the
    default, False unless declared otherwise); any other flag consumes the
    next token (`--count 3`) or an inline value (`--count=3`).
    """

    __introspectable__ = (
        "type",
        "names",
        "position",
        "default",
    )

    __displayable__ = (
        "type",
        "names",
        "position",
    )

    def __init__(self, type, names, position, /, *, default=None):
        metadata = {
            "type": type,
            "names": (names,) if isinstance(names, str) else names,
            "position": position,
            "default": default,
        }
        _sanitize_typed_metadata(builtins.type(self), metadata)
        _sanitize_flag_names(builtins.type(self), metadata)

        for key, object in metadata.items():
            setattr(self, "_" + key, object)

    @property
    def name(self):
        return self._names[0]

    @property
    def boolean(self):
        return self._type.name == "boolean"

    def matches(self, token, /):
        return token in self._names

    def fallback(self, actor, /):
        if self._default is not None:
            return self._default(actor)
        return False if self.boolean else None

    def __str__(self):
        names = ",".join(self._names)
        return f"[{names}]" if self.boolean else f"[{names} {self._type.name}]"


class ContextProvider(metaclass=ArgumentType):
    """
    Named supplier of a value derived from the actor.

    supply(actor) returns the value, or None when it is absent; absence aborts
    the invocation and the actor gets `error` (or the node's help when no error
    message was declared).
    """

    __introspectable__ = (
        "name",
        "error",
    )

    def __init__(self, name, supply, /, error=None):
        metadata = {"name": name, "error": error}
        _sanitize_identifier(builtins.type(self), metadata, "name")
        if not callable(supply):
            raise TypeError(f"{builtins.type(self).__typename__} supplier must be callable")
        if error is not None and not isinstance(error, str):
            raise TypeError(f"{builtins.type(self).__typename__} 'error' must be a string")

        self._supply = supply
        for key, object in metadata.items():
            setattr(self, "_" + key, object)

    def provide(self, actor, /):
        return self._supply(actor)

    def map(self, name, func, /, error=None):
        """
        Derive a provider yielding func(value); absence stays absence.
        """
        def supply(actor):
            if (value := self.provide(actor)) is None:
                return None
            return func(value)
        return type(self)(name, supply, error)

    @classmethod
    def asserting(cls, name, predicate, /, error=None):
        """
        Build a provider used by `assert`: present (True) when predicate(actor) holds.
        """
        return cls(name, lambda actor: True if predicate(actor) else None, error)


class SenderKind(Enum):
    """
    Which kind of actor may run a node.
    """
    EVERYONE = "everyone"
    PLAYER = "player"
    CONSOLE = "console"

    @classmethod
    def parse(cls, text, /):
        """
        Read a `users` directive value; anything unrecognized admits everyone.
        """
        match text.strip().lower():
            case "player" | "players":
                return cls.PLAYER
            case "console" | "server":
                return cls.CONSOLE
            case _:
                return cls.EVERYONE

    def admits(self, kind, /):
        return self is SenderKind.EVERYONE or kind is self



__all__ = (
    # Public API surface for consumers of helmsman.arguments.

    # Classes (declarations)
    "Argument",
    "Flag",
    "ContextProvider",

    # Enumerations
    "SenderKind",
)

del ArgumentType
