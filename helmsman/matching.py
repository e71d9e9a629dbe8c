"""
Helmsman matcher: decide which declarations the actor's tokens fill.

match(command, actor, tokens) never raises for bad input; it answers with a
Match whose verdict is one of

- MATCHED: `values` holds one slot per header position (arguments and flags
  share positions), followed by the context values in declared order.
- MISMATCHED: the tokens do not fit this node; the dispatcher may try children
  or siblings.
- ABORTED: the tokens fit but an assert or context provider came back empty;
  `message` is the provider's error, or None when help should be shown.
- FAILED: a default callable or a provider raised; the error is logged here.

Pipeline
1. tokens are rejoined and re-split with quote/escape rules.
2. flag tokens (`-f`, `--count 3`, `--count=3`) are pulled out of the stream.
3. positional matching drops optional declarations when tokens are scarce:
   for every token whose declared slot is optional, the adjacent run of
   optional declarations is tried; candidates that fail to convert are
   discarded, string candidates lose against any more specific candidate,
   and the first unused candidate wins (nearest slot first, leftwards, then
   rightwards).
4. a trailing variadic declaration absorbs the rest of the tokens.
5. dropped optionals receive their default.
6. asserts, then context providers, are resolved against the actor.

Converter errors are treated as failed conversions. Errors raised by default
callables or providers are logged and answered with FAILED; match() itself
never raises.
"""
import logging
from enum import IntEnum
from typing import NamedTuple, Any

from .tokens import tokenize
from .utils import Unset

logger = logging.getLogger(__name__)


class Verdict(IntEnum):
    MATCHED = 1
    MISMATCHED = 2
    ABORTED = 3
    FAILED = 4


class Match(NamedTuple):
    verdict: Verdict
    values: tuple[Any, ...] = ()
    message: str | None = None

    def __bool__(self):
        return self.verdict is Verdict.MATCHED


MISMATCH = Match(Verdict.MISMATCHED)
FAILURE = Match(Verdict.FAILED)


def attempt(type, actor, token, /):
    """
    Convert a token, answering Unset when the converter refuses it (None or raise).
    """
    try:
        value = type.convert(actor, token)
    except Exception as exception:  # converters signal refusal by raising
        logger.debug("%s refused %r: %r", type.name, token, exception)
        return Unset
    return Unset if value is None else value


def _lookup(flags, name):
    for flag in flags:
        if flag.matches(name):
            return flag
    return None


def _strip_flags(flags, actor, tokens):
    """
    Split flag tokens from positional ones; None when a flag is unusable.
    """
    remaining = []
    values = {}
    iterator = iter(tokens)

    for token in iterator:
        name, inline, raw = token.partition("=")
        if (flag := _lookup(flags, token)) is not None:
            raw = True if flag.boolean else next(iterator, Unset)
        elif not inline or (flag := _lookup(flags, name)) is None:
            remaining.append(token)
            continue

        if flag in values:
            logger.debug("flag %s given twice", flag.name)
            return None
        if raw is Unset:
            logger.debug("flag %s is missing its value", flag.name)
            return None
        if raw is not True and (raw := attempt(flag.type, actor, raw)) is Unset:
            return None
        values[flag] = raw

    for flag in flags:
        if flag not in values:
            values[flag] = flag.fallback(actor)
    return remaining, values


def _candidates(declared, index):
    """
    The optional declaration at `index` plus its adjacent optional run: leftwards, then rightwards.
    """
    candidates = [declared[index]]
    for cursor in range(index - 1, -1, -1):
        if not declared[cursor].optional:
            break
        candidates.append(declared[cursor])
    for cursor in range(index + 1, len(declared)):
        if not declared[cursor].optional:
            break
        candidates.append(declared[cursor])
    return candidates


def _retain(declared, actor, tokens):
    """
    Choose which declarations survive when there are more declarations than tokens.
    """
    if len(declared) <= len(tokens):
        return declared
    # optional declarations that can stay: one per token not taken by a required one
    keep = len(tokens) - sum(not argument.optional for argument in declared)
    if keep < 0:
        return declared

    slots = [None if argument.optional else argument for argument in declared]
    used = []

    for index, token in enumerate(tokens):
        if keep <= 0:
            break
        if not declared[index].optional:
            continue

        candidates = [
            candidate for candidate in _candidates(declared, index)
            if attempt(candidate.type, actor, token) is not Unset
        ]
        if len(candidates) > 1 and not all(candidate.type.name == "string" for candidate in candidates):
            candidates = [candidate for candidate in candidates if candidate.type.name != "string"]
        candidates = [candidate for candidate in candidates if not any(candidate is other for other in used)]
        if not candidates:
            continue

        used.append(chosen := candidates[0])
        slots[index] = chosen
        keep -= 1

    return [argument for argument in slots if argument is not None]


def _match_positionals(declared, actor, tokens):
    retained = _retain(declared, actor, tokens)
    consuming = bool(retained) and retained[-1].variadic

    if len(retained) != len(tokens) and not consuming:
        return None
    # a variadic declaration still needs at least one token
    if len(retained) > len(tokens):
        return None

    values = {}
    for index, argument in enumerate(retained):
        raw = " ".join(tokens[index:]) if argument.variadic else tokens[index]
        if (value := attempt(argument.type, actor, raw)) is Unset:
            return None
        values[argument] = value

    for argument in declared:
        if argument not in values:
            values[argument] = argument.fallback(actor)
    return values


def match(command, actor, tokens, /):
    """
    Match tokens against a node's declarations (see module docstring).
    """
    try:
        return _resolve(command, actor, tokenize(" ".join(tokens)))
    except Exception:
        logger.exception("resolving %r failed for %r", command.expanded_name, actor)
        return FAILURE


def _resolve(command, actor, tokens):

    if (stripped := _strip_flags(command.flags, actor, tokens)) is None:
        return MISMATCH
    remaining, flagged = stripped

    if (positional := _match_positionals(command.arguments, actor, remaining)) is None:
        return MISMATCH

    declarations = {**positional, **flagged}
    values = [None] * (max((declaration.position for declaration in declarations), default=-1) + 1)
    for declaration, value in declarations.items():
        values[declaration.position] = value

    for provider in command.asserts:
        if provider.provide(actor) is None:
            logger.debug("assert %s failed for %r", provider.name, actor)
            return Match(Verdict.ABORTED, message=provider.error)

    for provider in command.context:
        if (value := provider.provide(actor)) is None:
            logger.debug("context %s is absent for %r", provider.name, actor)
            return Match(Verdict.ABORTED, message=provider.error)
        values.append(value)

    return Match(Verdict.MATCHED, tuple(values))


__all__ = (
    "Verdict",
    "Match",
    "match",
    "attempt",
)
