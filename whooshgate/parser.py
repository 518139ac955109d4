"""Parsers for transformer scripts such as ``ReplaceHeader(`Host`, `x`) ; DeleteQuery(`k`)``.

Scripts are one or more transformer calls separated by ``;``. Parsing stops
at the first text that does not continue the script; that rest is ignored.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Sequence

from whooshgate.models import (
    AppendHeader,
    AppendQuery,
    ChainRequestTransformer,
    ChainResponseTransformer,
    DeleteHeader,
    DeleteQuery,
    ReplaceHeader,
    ReplaceQuery,
    RequestTransformer,
    ResponseTransformer,
)
from whooshgate.registry import (
    ParseError,
    parse_custom_request_transformers,
    parse_custom_response_transformers,
)

_SPACE = " \t\r\n"
_WS = "[ \t\r\n]*"
_QUOTED = "`([^`]*)`"
_SEPARATOR = re.compile(_WS + ";")

Builtin = tuple["re.Pattern[str]", Callable[..., Any]]


def _two_args(name: str) -> "re.Pattern[str]":
    return re.compile(name + _WS + r"\(" + _QUOTED + _WS + "," + _WS + _QUOTED + r"\)")


def _one_arg(name: str) -> "re.Pattern[str]":
    return re.compile(name + _WS + r"\(" + _QUOTED + r"\)")


_HEADER_BUILTINS: list[Builtin] = [
    (_two_args("ReplaceHeader"), ReplaceHeader),
    (_two_args("AppendHeader"), AppendHeader),
    (_one_arg("DeleteHeader"), DeleteHeader),
]

_REQUEST_BUILTINS: list[Builtin] = _HEADER_BUILTINS + [
    (_two_args("ReplaceQuery"), ReplaceQuery),
    (_two_args("AppendQuery"), AppendQuery),
    (_one_arg("DeleteQuery"), DeleteQuery),
]


def _parse_one(
    text: str,
    builtins: Sequence[Builtin],
    custom: Callable[[str], tuple[Any, str]],
) -> tuple[Any, str]:
    text = text.lstrip(_SPACE)
    for pattern, factory in builtins:
        match = pattern.match(text)
        if match is None:
            continue
        try:
            return factory(*match.groups()), text[match.end():]
        except ValueError:
            continue
    return custom(text)


def _parse_script(
    text: str,
    builtins: Sequence[Builtin],
    custom: Callable[[str], tuple[Any, str]],
) -> list[Any]:
    try:
        first, rest = _parse_one(text, builtins, custom)
    except ParseError as exc:
        raise ParseError(f"Parse error: {exc}") from exc
    items = [first]
    while (sep := _SEPARATOR.match(rest)) is not None:
        try:
            item, remaining = _parse_one(rest[sep.end():], builtins, custom)
        except ParseError:
            break
        items.append(item)
        rest = remaining
    return items


def parse_transformers(text: str) -> RequestTransformer:
    """Parse a request transformer script; several steps become a chain."""
    items = _parse_script(text, _REQUEST_BUILTINS, parse_custom_request_transformers)
    return items[0] if len(items) == 1 else ChainRequestTransformer(items)


def parse_response_transformers(text: str) -> ResponseTransformer:
    """Parse a response transformer script; several steps become a chain."""
    items = _parse_script(text, _HEADER_BUILTINS, parse_custom_response_transformers)
    return items[0] if len(items) == 1 else ChainResponseTransformer(items)