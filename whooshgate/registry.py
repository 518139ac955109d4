"""Process-wide registries of custom transformer parsers.

A parser is a callable taking the remaining input text and returning a
``(transformer, rest)`` pair, or raising ParseError if it does not match.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

Parser = Callable[[str], "tuple[Any, str]"]


class ParseError(ValueError):
    """Input text could not be parsed."""


_lock = threading.Lock()
_request_parsers: tuple[Parser, ...] = ()
_response_parsers: tuple[Parser, ...] = ()


def register_request_transformer(parser: Parser) -> Parser:
    """Add a custom request transformer parser; returns it for decorator use."""
    global _request_parsers
    with _lock:
        _request_parsers = _request_parsers + (parser,)
    return parser


def register_response_transformer(parser: Parser) -> Parser:
    """Add a custom response transformer parser; returns it for decorator use."""
    global _response_parsers
    with _lock:
        _response_parsers = _response_parsers + (parser,)
    return parser


def _try_parsers(parsers: tuple[Parser, ...], text: str) -> tuple[Any, str]:
    last_error: Optional[ParseError] = None
    for parser in parsers:
        try:
            return parser(text)
        except ParseError as exc:
            last_error = exc
    if last_error is not None:
        raise last_error
    raise ParseError("no custom transformer matched")


def parse_custom_request_transformers(text: str) -> tuple[Any, str]:
    """Try registered request parsers in order; the first match wins."""
    return _try_parsers(_request_parsers, text)


def parse_custom_response_transformers(text: str) -> tuple[Any, str]:
    """Try registered response parsers in order; the first match wins."""
    return _try_parsers(_response_parsers, text)


def clear_registries() -> None:
    """Forget every registered custom parser."""
    global _request_parsers, _response_parsers
    with _lock:
        _request_parsers = ()
        _response_parsers = ()