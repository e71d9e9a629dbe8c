"""
Helmsman argument types and the type registry.

Overview
- ArgType[_T]: a named converter from a raw token to a value, plus an optional
  completion supplier. A converter signals failure by returning None or by
  raising; both are treated the same way by the matcher.
- TypeRegistry: the ordered, read-only-after-startup mapping of type names used
  while reading command definitions. Built-ins are registered first; adding a
  name twice is an error.

Built-ins
- int, long     -> int
- double, float -> float
- string        -> str (identity)
- boolean       -> bool ("true"/"false", case-insensitive; completes to both)

Quick example:
    >>> from helmsman.argtypes import ArgType, TypeRegistry
    >>> color = ArgType.of("color", "red", "green", "blue")
    >>> registry = TypeRegistry(color)
    >>> registry["color"].convert(None, "red")
    'red'
"""
import functools
import operator
import re
from collections.abc import Iterable, Iterator, Mapping
from enum import Enum

from .utils import *


def _sanitize_name(cls, name, /):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} name must be a string")
    elif not name:
        raise ValueError(f"{cls.__typename__} name cannot be empty")
    elif re.search(r"\s", name):
        raise ValueError(f"{cls.__typename__} name cannot contain whitespace")
    return name


class ArgType[_T]:
    """
    Named converter used by argument and flag declarations.

    Parameters
    - name: str
      Identifier used in definitions (`int:amount`); no whitespace allowed.
    - convert: Callable
      `convert(token)` or, when contextual is True, `convert(actor, token)`.
      Returning None means "this token is not a valid value".
    - complete: Callable | None
      `complete(actor)` returning candidate strings for completion.
    - contextual: bool
      Whether the converter needs the acting entity.
    """
    __typename__ = "arg-type"

    name = mirror("name")
    contextual = mirror("contextual")

    def __init__(self, name, convert, complete=None, /, *, contextual=False):
        self._name = _sanitize_name(type(self), name)
        if not callable(convert):
            raise TypeError(f"{self.__typename__} converter must be callable")
        if complete is not None and not callable(complete):
            raise TypeError(f"{self.__typename__} completer must be callable")
        self._converter = convert
        self._completer = complete
        self._contextual = bool(contextual)

    def __repr__(self):
        return f"{self.__typename__}({
            ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
        })"

    def __rich_repr__(self):
        yield "name", self.name
        yield "contextual", self.contextual

    def convert(self, actor, token, /):
        """
        Convert a token, forwarding the actor only to contextual converters.

        Exceptions raised by the converter propagate; callers decide whether a
        failure is fatal (definition defaults) or a plain mismatch (matching).
        """
        if self._contextual:
            return self._converter(actor, token)
        return self._converter(token)

    def complete(self, actor, /):
        """
        Return the completion candidates for this actor (empty when unsupported).
        """
        if self._completer is None:
            return []
        if (values := self._completer(actor)) is None:
            return []
        return list(values)

    def map(self, name, func, /, complete=None, *, contextual=False):
        """
        Derive a new type whose values are `func(value)` of this type's values.

        The derived converter short-circuits on None so a failed conversion of
        the base type is still a failure. With contextual=True, func receives
        `(actor, value)`.
        """
        if not callable(func):
            raise TypeError(f"{self.__typename__} mapper must be callable")

        @rename(f"{name}_converter")
        def convert(actor, token):
            if (value := self.convert(actor, token)) is None:
                return None
            return func(actor, value) if contextual else func(value)

        return type(self)(name, convert, complete, contextual=True)

    @classmethod
    def of(cls, name, /, *values):
        """
        Build a type from a fixed vocabulary.

        Forms
        - ArgType.of(name, "a", "b", ...): accepts exactly the given strings.
        - ArgType.of(name, mapping): accepts the mapping keys, yields the values.
        - ArgType.of(name, EnumClass): accepts member names, yields members.
        """
        match values:
            case [Mapping() as mapping]:
                return cls(name, mapping.get, lambda actor: list(mapping.keys()))
            case [type() as enum] if issubclass(enum, Enum):
                return cls(name, lambda token: enum.__members__.get(token), lambda actor: list(enum.__members__))
            case [*choices] if choices and all(isinstance(choice, str) for choice in choices):
                choices = tuple(dict.fromkeys(choices))
                return cls(name, lambda token: token if token in choices else None, lambda actor: list(choices))
            case _:
                raise TypeError(f"{cls.__typename__} vocabulary must be strings, a mapping, or an enum")


def _boolean(token):
    return {"true": True, "false": False}.get(token.lower())


def _builtins():
    yield ArgType("int", int)
    yield ArgType("long", int)
    yield ArgType("double", float)
    yield ArgType("float", float)
    yield ArgType("string", str)
    yield ArgType("boolean", _boolean, lambda actor: ["true", "false"])


class TypeRegistry(Mapping):
    """
    Ordered mapping of type name -> ArgType, seeded with the built-ins.

    The registry is filled during startup and only read afterwards; it is
    threaded explicitly through definition parsing.
    """
    __typename__ = "type-registry"

    def __init__(self, *types):
        self._types = {}
        self.register(*_builtins())
        self.register(*types)

    def register(self, *types):
        """
        Add types; a name that is already registered raises ValueError.
        """
        for type in types:
            if not isinstance(type, ArgType):
                raise TypeError(f"{self.__typename__} entries must be arg-types")
            if type.name in self._types:
                raise ValueError(f"{self.__typename__} already has a type named {type.name!r}")
            self._types[type.name] = type
        return self

    def derive(self, *types):
        """
        Return a new registry with this registry's custom types plus `types`.
        """
        builtin = {type.name for type in _builtins()}
        return TypeRegistry(*(type for name, type in self._types.items() if name not in builtin), *types)

    def __getitem__(self, name):
        return self._types[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self):
        return len(self._types)

    def __repr__(self):
        return f"{self.__typename__}({", ".join(map(repr, self._types))})"


def registry_of(types=Unset, /):
    """
    Normalize a `types` argument: Unset, an existing registry, or an iterable of ArgType.
    """
    if types is Unset:
        return TypeRegistry()
    if isinstance(types, TypeRegistry):
        return types
    if isinstance(types, Iterable):
        return TypeRegistry(*types)
    raise TypeError("types must be a type-registry or an iterable of arg-types")


__all__ = (
    # Classes
    "ArgType",
    "TypeRegistry",

    # Functions
    "registry_of",
)
