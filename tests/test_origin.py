import pytest

from conftest import ALLOWED_ORIGIN, make_request

from leadcapture.security.origin import OriginValidator, origin_of


@pytest.fixture
def validator():
    return OriginValidator([ALLOWED_ORIGIN], development=False)


def test_allowed_origin_is_valid(validator):
    result = validator.check(make_request({"Origin": "http://localhost:3000"}))
    assert result.valid is True
    assert result.reason is None


def test_foreign_origin_is_rejected(validator):
    result = validator.check(make_request({"Origin": "http://evil.example"}))
    assert result.valid is False
    assert result.reason == "Rejected origin: http://evil.example"


def test_origin_must_match_exactly(validator):
    result = validator.check(make_request({"Origin": "http://localhost:3000/"}))
    assert result.valid is False


def test_missing_headers_are_rejected(validator):
    result = validator.check(make_request())
    assert result.valid is False
    assert result.reason == "Missing Origin and Referer headers"


def test_referer_fallback_accepts_allowed_origin(validator):
    result = validator.check(make_request({"Referer": "http://localhost:3000/contacto?x=1"}))
    assert result.valid is True


def test_referer_fallback_rejects_foreign_origin(validator):
    result = validator.check(make_request({"Referer": "https://evil.example/page"}))
    assert result.valid is False
    assert result.reason == "Rejected referer origin: https://evil.example"


@pytest.mark.parametrize("referer", ["not a url", "/relative/path", "http://host:notaport/"])
def test_malformed_referer(validator, referer):
    result = validator.check(make_request({"Referer": referer}))
    assert result.valid is False
    assert result.reason == "Malformed referer header"


def test_origin_takes_precedence_over_referer(validator):
    result = validator.check(
        make_request({"Origin": "http://evil.example", "Referer": "http://localhost:3000/"})
    )
    assert result.valid is False
    assert result.reason == "Rejected origin: http://evil.example"


def test_development_mode_skips_check():
    validator = OriginValidator([ALLOWED_ORIGIN], development=True)
    assert validator.check(make_request({"Origin": "http://evil.example"})).valid is True
    assert validator.check(make_request()).valid is True


@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://localhost:3000/a/b", "http://localhost:3000"),
        ("HTTPS://Example.COM/path", "https://example.com"),
        ("https://example.com:443/", "https://example.com"),
        ("http://example.com:80", "http://example.com"),
        ("http://[::1]:8080/", "http://[::1]:8080"),
        ("example.com", None),
        ("", None),
    ],
)
def test_origin_of(url, expected):
    assert origin_of(url) == expected
