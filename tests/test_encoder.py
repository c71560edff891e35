import gzip
from email.utils import parsedate_to_datetime

import pytest

from staticserver.encoder import ResponseEncoder
from staticserver.models import Method, Request


def make_request(method=Method.GET, gzip_ok=False):
    headers = {"accept-encoding": "gzip"} if gzip_ok else {}
    token = method.value if method is not Method.UNSUPPORTED else "POST"
    return Request(method=method, token=token, path="/", version="HTTP/1.1", headers=headers)


@pytest.fixture
def encoder():
    return ResponseEncoder(server_name="test")


@pytest.mark.parametrize("path, expected", [
    ("/srv/index.html", "text/html"),
    ("/srv/INDEX.HTM", "text/html"),
    ("/srv/style.css", "text/css"),
    ("/srv/app.js", "application/javascript"),
    ("/srv/logo.png", "image/png"),
    ("/srv/archive.tar.xyz", "application/octet-stream"),
    ("/srv/noext", "application/octet-stream"),
    ("/srv/.hidden", "application/octet-stream"),
])
def test_content_type(encoder, path, expected):
    assert encoder.content_type(path) == expected


def test_custom_content_types():
    encoder = ResponseEncoder(content_types={".md": "text/markdown"})
    assert encoder.content_type("README.md") == "text/markdown"
    assert encoder.content_type("index.html") == "application/octet-stream"


def test_plain_file(encoder):
    resp = encoder.file(make_request(), "/srv/index.html", b"hello")
    assert resp.status == 200
    assert resp.reason == "OK"
    assert resp.body == b"hello"
    assert resp.headers["Content-Type"] == "text/html"
    assert resp.headers["Content-Length"] == "5"
    assert "Content-Encoding" not in resp.headers
    assert resp.headers["Connection"] == "close"


def test_gzip_file(encoder):
    resp = encoder.file(make_request(gzip_ok=True), "/srv/index.html", b"hello")
    assert resp.headers["Content-Encoding"] == "gzip"
    assert resp.headers["Content-Length"] == str(len(resp.body))
    assert gzip.decompress(resp.body) == b"hello"


def test_header_order(encoder):
    resp = encoder.file(make_request(gzip_ok=True), "/srv/a.css", b"x")
    assert list(resp.headers)[:3] == ["Content-Type", "Content-Length", "Content-Encoding"]


@pytest.mark.parametrize("payload", [b"", bytes(range(256)) * 4, b"a" * 100000])
def test_gzip_round_trip(encoder, payload):
    resp = encoder.file(make_request(gzip_ok=True), "/srv/f.bin", payload)
    assert gzip.decompress(resp.body) == payload


def test_head_matches_get(encoder, monkeypatch):
    monkeypatch.setattr(ResponseEncoder, "_http_date", staticmethod(lambda: "Mon, 19 Oct 2026 00:00:00 GMT"))
    for gzip_ok in (False, True):
        get = encoder.file(make_request(Method.GET, gzip_ok), "/srv/index.html", b"hello")
        head = encoder.file(make_request(Method.HEAD, gzip_ok), "/srv/index.html", b"hello")
        assert head.headers == get.headers
        assert head.head_only
        assert head.to_bytes() == get.to_bytes()[:-len(get.body)]


def test_not_found_default_body(encoder):
    resp = encoder.not_found(make_request())
    assert resp.status == 404
    assert resp.body == b"404 Not Found"
    assert resp.headers["Content-Type"] == "text/plain"


def test_not_found_custom_page(encoder):
    resp = encoder.not_found(make_request(gzip_ok=True), b"<p>gone</p>", "text/html")
    assert resp.status == 404
    assert resp.headers["Content-Type"] == "text/html"
    assert gzip.decompress(resp.body) == b"<p>gone</p>"


def test_method_not_allowed(encoder):
    resp = encoder.error(405, make_request(Method.UNSUPPORTED))
    assert resp.status == 405
    assert resp.reason == "Method Not Allowed"
    assert resp.headers["Allow"] == "GET, HEAD"
    assert resp.body == b"405 Method Not Allowed"
    assert not resp.head_only


def test_error_is_never_compressed(encoder):
    resp = encoder.error(500, make_request(gzip_ok=True))
    assert "Content-Encoding" not in resp.headers
    assert resp.body == b"500 Internal Server Error"


def test_error_without_request(encoder):
    resp = encoder.error(400)
    assert resp.to_bytes().startswith(b"HTTP/1.1 400 Bad Request\r\n")
    assert resp.headers["Content-Length"] == str(len(resp.body))


def test_date_header(encoder):
    for resp in (encoder.file(make_request(), "/srv/a.txt", b"x"), encoder.error(400)):
        date = resp.headers["Date"]
        assert date.endswith(" GMT")
        assert parsedate_to_datetime(date).tzinfo is not None
