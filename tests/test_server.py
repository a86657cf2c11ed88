import threading
import urllib.error
import urllib.request

import pytest

from mandelview.server import content_type, make_server, resolve_path


@pytest.fixture
def site(tmp_path):
    (tmp_path / "index.html").write_text("<h1>mandelbrot</h1>")
    (tmp_path / "app.js").write_text("console.log(1)")
    (tmp_path / "assets").mkdir()
    httpd = make_server(str(tmp_path), port=0)
    t = threading.Thread(target=httpd.serve_forever, daemon=True)
    t.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def _get(url):
    with urllib.request.urlopen(url, timeout=5) as r:
        return r.status, r.headers["Content-Type"], r.read()


def test_root_serves_index(site):
    status, ctype, body = _get(site + "/")
    assert status == 200
    assert ctype == "text/html"
    assert b"mandelbrot" in body


def test_mime_by_extension(site):
    assert _get(site + "/app.js")[1] == "application/javascript"


def test_missing_file_is_404(site):
    with pytest.raises(urllib.error.HTTPError) as e:
        _get(site + "/nope.png")
    assert e.value.code == 404
    assert e.value.read() == b"File not found"


def test_other_read_errors_are_500_with_code(site):
    with pytest.raises(urllib.error.HTTPError) as e:
        _get(site + "/assets")
    assert e.value.code == 500
    assert e.value.read() == b"Server error: EISDIR"


def test_paths_cannot_escape_root(tmp_path):
    assert resolve_path(str(tmp_path), "/../etc/passwd") in (None, str(tmp_path / "etc" / "passwd"))
    assert resolve_path(str(tmp_path), "/a/../../x") in (None, str(tmp_path / "x"))
    assert resolve_path(str(tmp_path), "/") == str(tmp_path / "index.html")


def test_content_type_fallback():
    assert content_type("frame.PNG") == "image/png"
    assert content_type("data.bin") == "application/octet-stream"
