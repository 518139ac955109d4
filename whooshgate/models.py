"""HTTP header containers and the built-in request/response transformers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional
from urllib.parse import parse_qsl, quote_plus, urlencode, urlsplit

# Relative request targets are resolved against this base before editing.
BASE_URL = "http://placeholder.com"

_TOKEN_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789!#$%&'*+-.^_`|~"
)


def _header_name(name: str) -> str:
    """Validate an HTTP header name and return its canonical lower-case form."""
    if not name or any(ch not in _TOKEN_CHARS for ch in name):
        raise ValueError(f"invalid header name: {name!r}")
    return name.lower()


def _header_value(value: str) -> str:
    """Validate an HTTP header value."""
    for ch in value:
        code = ord(ch)
        if ch != "\t" and (code < 32 or code == 127):
            raise ValueError(f"invalid header value: {value!r}")
    return value


class HeaderMap:
    """An ordered, case-insensitive multimap of HTTP headers."""

    def __init__(self, items: Optional[Iterable[tuple[str, str]]] = None) -> None:
        self._items: list[tuple[str, str]] = []
        for name, value in items or ():
            self.append(name, value)

    def get(self, name: str) -> Optional[str]:
        """The first value stored under ``name``, or None."""
        key = name.lower()
        return next((value for stored, value in self._items if stored == key), None)

    def get_all(self, name: str) -> list[str]:
        key = name.lower()
        return [value for stored, value in self._items if stored == key]

    def insert(self, name: str, value: str) -> None:
        """Set ``name`` to a single value, dropping any earlier values."""
        key = _header_name(name)
        _header_value(value)
        self._items = [item for item in self._items if item[0] != key]
        self._items.append((key, value))

    def append(self, name: str, value: str) -> None:
        """Add a value under ``name``, keeping earlier values."""
        self._items.append((_header_name(name), _header_value(value)))

    def remove(self, name: str) -> list[str]:
        """Remove every value under ``name`` and return them."""
        key = name.lower()
        removed = [value for stored, value in self._items if stored == key]
        self._items = [item for item in self._items if item[0] != key]
        return removed

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"HeaderMap({self._items!r})"


@dataclass
class RequestHeader:
    """The request line and headers of an HTTP request."""

    method: str = "GET"
    uri: str = "/"
    headers: HeaderMap = field(default_factory=HeaderMap)


@dataclass
class ResponseHeader:
    """The status and headers of an HTTP response."""

    status: int = 200
    headers: HeaderMap = field(default_factory=HeaderMap)


class RequestTransformer:
    """Rewrites a request header in place; the default does nothing."""

    def transform_request(self, req: RequestHeader) -> None:
        return None


class ResponseTransformer:
    """Rewrites a response header in place; the default does nothing."""

    def transform_response(self, res: ResponseHeader) -> None:
        return None


# --- Header transformers ---


@dataclass
class ReplaceHeader(RequestTransformer, ResponseTransformer):
    """Set a header to one value, replacing whatever was there."""

    name: str
    value: str

    def __post_init__(self) -> None:
        self.name = _header_name(self.name)
        self.value = _header_value(self.value)

    def transform_request(self, req: RequestHeader) -> None:
        req.headers.insert(self.name, self.value)

    def transform_response(self, res: ResponseHeader) -> None:
        res.headers.insert(self.name, self.value)


@dataclass
class AppendHeader(RequestTransformer, ResponseTransformer):
    """Add a header value, keeping existing ones."""

    name: str
    value: str

    def __post_init__(self) -> None:
        self.name = _header_name(self.name)
        self.value = _header_value(self.value)

    def transform_request(self, req: RequestHeader) -> None:
        req.headers.append(self.name, self.value)

    def transform_response(self, res: ResponseHeader) -> None:
        res.headers.append(self.name, self.value)


@dataclass
class DeleteHeader(RequestTransformer, ResponseTransformer):
    """Remove every value of a header."""

    name: str

    def __post_init__(self) -> None:
        self.name = _header_name(self.name)

    def transform_request(self, req: RequestHeader) -> None:
        req.headers.remove(self.name)

    def transform_response(self, res: ResponseHeader) -> None:
        res.headers.remove(self.name)


# --- Query transformers (request only) ---

QueryPairs = list[tuple[str, str]]


def _rewrite_query(req: RequestHeader, edit: Callable[[QueryPairs], QueryPairs]) -> None:
    """Apply ``edit`` to the request's query pairs and store path plus new query.

    Requests whose target cannot be read as a URL are left unchanged.
    """
    full = BASE_URL + req.uri if req.uri.startswith("/") else req.uri
    try:
        parts = urlsplit(full)
    except ValueError:
        return
    if not parts.scheme or not parts.netloc:
        return
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    query = urlencode(edit(pairs), quote_via=quote_plus, safe="*")
    path = parts.path or "/"
    req.uri = f"{path}?{query}" if query else path


@dataclass
class ReplaceQuery(RequestTransformer):
    """Replace every occurrence of a query parameter with a single value."""

    key: str
    value: str

    def transform_request(self, req: RequestHeader) -> None:
        def edit(pairs: QueryPairs) -> QueryPairs:
            kept = [(k, v) for k, v in pairs if k != self.key]
            return kept + [(self.key, self.value)]

        _rewrite_query(req, edit)


@dataclass
class AppendQuery(RequestTransformer):
    """Add a query parameter, keeping existing ones."""

    key: str
    value: str

    def transform_request(self, req: RequestHeader) -> None:
        _rewrite_query(req, lambda pairs: pairs + [(self.key, self.value)])


@dataclass
class DeleteQuery(RequestTransformer):
    """Remove every occurrence of a query parameter."""

    key: str

    def transform_request(self, req: RequestHeader) -> None:
        _rewrite_query(req, lambda pairs: [(k, v) for k, v in pairs if k != self.key])


# --- Chains ---


@dataclass
class ChainRequestTransformer(RequestTransformer):
    """Run several request transformers in order."""

    transformers: list[RequestTransformer] = field(default_factory=list)

    def transform_request(self, req: RequestHeader) -> None:
        for transformer in self.transformers:
            transformer.transform_request(req)


@dataclass
class ChainResponseTransformer(ResponseTransformer):
    """Run several response transformers in order."""

    transformers: list[ResponseTransformer] = field(default_factory=list)

    def transform_response(self, res: ResponseHeader) -> None:
        for transformer in self.transformers:
            transformer.transform_response(res)