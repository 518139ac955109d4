from urllib.parse import parse_qs, parse_qsl, urlsplit

import pytest

from whooshgate.models import (
    AppendHeader,
    AppendQuery,
    ChainRequestTransformer,
    ChainResponseTransformer,
    DeleteHeader,
    DeleteQuery,
    HeaderMap,
    ReplaceHeader,
    ReplaceQuery,
    RequestHeader,
    RequestTransformer,
    ResponseHeader,
    ResponseTransformer,
)


def test_header_map_is_case_insensitive():
    headers = HeaderMap()
    headers.insert("Host", "example.com")
    assert headers.get("host") == "example.com"
    assert headers.get("HOST") == "example.com"
    assert "hOsT" in headers


def test_header_map_append_and_insert():
    headers = HeaderMap()
    headers.append("X-Tag", "a")
    headers.append("x-tag", "b")
    assert headers.get_all("X-Tag") == ["a", "b"]
    assert headers.get("X-Tag") == "a"
    headers.insert("X-Tag", "c")
    assert headers.get_all("x-tag") == ["c"]
    assert len(headers) == 1


def test_header_map_remove_returns_values():
    headers = HeaderMap([("X-One", "1"), ("X-One", "2"), ("X-Two", "3")])
    assert headers.remove("x-one") == ["1", "2"]
    assert headers.get("X-One") is None
    assert headers.remove("X-One") == []
    assert headers.get("X-Two") == "3"


def test_header_map_rejects_invalid_input():
    headers = HeaderMap()
    with pytest.raises(ValueError):
        headers.insert("bad name", "v")
    with pytest.raises(ValueError):
        headers.append("X-Ok", "line\nbreak")
    assert len(headers) == 0


def test_header_transformer_validation():
    with pytest.raises(ValueError):
        ReplaceHeader("bad name", "x")
    with pytest.raises(ValueError):
        AppendHeader("X-Ok", "a\rb")
    with pytest.raises(ValueError):
        DeleteHeader("")


def test_replace_header_request_and_response():
    req = RequestHeader()
    req.headers.append("Host", "original")
    req.headers.append("Host", "second")
    ReplaceHeader("Host", "new-host").transform_request(req)
    assert req.headers.get_all("host") == ["new-host"]

    res = ResponseHeader()
    res.headers.insert("Server", "original")
    ReplaceHeader("Server", "new-server").transform_response(res)
    assert res.headers.get("Server") == "new-server"


def test_append_and_delete_header():
    res = ResponseHeader()
    res.headers.insert("X-Old", "remove-me")
    AppendHeader("X-New", "value").transform_response(res)
    DeleteHeader("X-Old").transform_response(res)
    assert res.headers.get("X-New") == "value"
    assert res.headers.get("X-Old") is None

    req = RequestHeader()
    AppendHeader("X-New", "value").transform_request(req)
    AppendHeader("X-New", "more").transform_request(req)
    assert req.headers.get_all("x-new") == ["value", "more"]


def test_replace_query():
    req = RequestHeader(uri="/path?foo=bar&baz=qux&foo=other")
    ReplaceQuery("foo", "updated").transform_request(req)
    parts = urlsplit(req.uri)
    assert parts.path == "/path"
    pairs = parse_qsl(parts.query)
    assert [v for k, v in pairs if k == "foo"] == ["updated"]
    assert ("baz", "qux") in pairs


def test_append_query_keeps_existing_values():
    req = RequestHeader(uri="/p?k=1")
    AppendQuery("k", "2").transform_request(req)
    assert parse_qsl(urlsplit(req.uri).query) == [("k", "1"), ("k", "2")]


def test_append_query_without_existing_query():
    req = RequestHeader(uri="/p")
    AppendQuery("new", "param").transform_request(req)
    assert urlsplit(req.uri).path == "/p"
    assert parse_qs(urlsplit(req.uri).query) == {"new": ["param"]}


def test_append_query_encoding_round_trip():
    req = RequestHeader(uri="/search")
    AppendQuery("q", "a b&c=d").transform_request(req)
    assert parse_qs(urlsplit(req.uri).query) == {"q": ["a b&c=d"]}


def test_delete_query():
    req = RequestHeader(uri="/path?foo=bar&baz=qux")
    DeleteQuery("baz").transform_request(req)
    assert "baz=" not in req.uri
    assert parse_qsl(urlsplit(req.uri).query) == [("foo", "bar")]


def test_query_on_absolute_uri_keeps_path_only():
    req = RequestHeader(uri="http://example.com/a?x=1")
    AppendQuery("y", "2").transform_request(req)
    assert req.uri.startswith("/a?")
    assert parse_qsl(urlsplit(req.uri).query) == [("x", "1"), ("y", "2")]


def test_query_on_unparseable_target_is_unchanged():
    req = RequestHeader(uri="*")
    DeleteQuery("x").transform_request(req)
    assert req.uri == "*"


def test_chain_request_runs_in_order():
    req = RequestHeader()
    chain = ChainRequestTransformer(
        [AppendHeader("X-A", "1"), DeleteHeader("X-A"), AppendHeader("X-A", "2")]
    )
    chain.transform_request(req)
    assert req.headers.get_all("X-A") == ["2"]


def test_chain_response_runs_in_order():
    res = ResponseHeader()
    chain = ChainResponseTransformer([ReplaceHeader("X-A", "1"), ReplaceHeader("X-A", "2")])
    chain.transform_response(res)
    assert res.headers.get_all("x-a") == ["2"]


def test_base_transformers_do_nothing():
    req = RequestHeader(uri="/x", headers=HeaderMap([("X-A", "1")]))
    RequestTransformer().transform_request(req)
    assert req == RequestHeader(uri="/x", headers=HeaderMap([("X-A", "1")]))

    res = ResponseHeader(headers=HeaderMap([("X-B", "2")]))
    ResponseTransformer().transform_response(res)
    assert res == ResponseHeader(headers=HeaderMap([("X-B", "2")]))