import pytest

from whooshgate.registry import (
    ParseError,
    clear_registries,
    parse_custom_request_transformers,
    parse_custom_response_transformers,
    register_request_transformer,
    register_response_transformer,
)


@pytest.fixture(autouse=True)
def _clean():
    clear_registries()
    yield
    clear_registries()


def _keyword_parser(keyword, result):
    def parse(text):
        if not text.startswith(keyword):
            raise ParseError(f"expected {keyword}")
        return result, text[len(keyword):]

    return parse


def test_empty_registry_raises():
    with pytest.raises(ParseError):
        parse_custom_request_transformers("Anything()")
    with pytest.raises(ParseError):
        parse_custom_response_transformers("Anything()")


def test_registered_parser_matches_and_returns_rest():
    marker = object()
    register_request_transformer(_keyword_parser("MyReqTransformer()", marker))
    result, rest = parse_custom_request_transformers("MyReqTransformer() ; tail")
    assert result is marker
    assert rest == " ; tail"


def test_first_matching_parser_wins():
    first, second = object(), object()
    register_request_transformer(_keyword_parser("Nope", first))
    register_request_transformer(_keyword_parser("Go", second))
    register_request_transformer(_keyword_parser("Go", first))
    result, rest = parse_custom_request_transformers("Go")
    assert result is second
    assert rest == ""


def test_last_error_is_raised():
    register_request_transformer(_keyword_parser("Alpha", object()))
    register_request_transformer(_keyword_parser("Beta", object()))
    with pytest.raises(ParseError, match="expected Beta"):
        parse_custom_request_transformers("Gamma")


def test_request_and_response_registries_are_separate():
    marker = object()
    register_response_transformer(_keyword_parser("MyResTransformer()", marker))
    result, _ = parse_custom_response_transformers("MyResTransformer()")
    assert result is marker
    with pytest.raises(ParseError):
        parse_custom_request_transformers("MyResTransformer()")


def test_register_returns_parser_for_decorator_use():
    parser = _keyword_parser("X", object())
    assert register_request_transformer(parser) is parser
    assert register_response_transformer(parser) is parser


def test_clear_registries_forgets_parsers():
    register_request_transformer(_keyword_parser("X", object()))
    clear_registries()
    with pytest.raises(ParseError):
        parse_custom_request_transformers("X")