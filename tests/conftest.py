import socket
import threading

import pytest

import httpd

INFORMATION_TEMPLATE = "<p>{{method}} {{path}}</p><pre>{{query}}</pre>"
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


@pytest.fixture
def site(tmp_path):
    """A public root and templates directory laid out like a deployment."""
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>Home</h1>")
    (public / "style.css").write_text("body { margin: 0; }")
    (public / "logo.png").write_bytes(PNG_BYTES)

    files = public / "files"
    files.mkdir()
    (files / "a.txt").write_text("a")
    (files / "b.txt").write_text("b")

    docs = public / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<h1>Docs</h1>")

    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "information.html").write_text(INFORMATION_TEMPLATE)
    return tmp_path


def make_server(site, **kwargs):
    return httpd.HTTPServer(
        host="127.0.0.1",
        port=0,
        max_threads=4,
        public_dir=str(site / "public"),
        templates_dir=str(site / "templates"),
        **kwargs,
    )


@pytest.fixture
def start_server(site):
    started = []

    def _start(**kwargs):
        server = make_server(site, **kwargs)
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()
        assert server.ready.wait(5)
        started.append((server, thread))
        return server

    yield _start

    for server, thread in started:
        server.stop()
        thread.join(5)


@pytest.fixture
def server(start_server):
    return start_server()


def send_raw(port, raw, timeout=5):
    """Send raw bytes and read until the server closes the connection."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(raw)
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def parse_response(data):
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        key, value = line.split(":", 1)
        headers[key.strip().lower()] = value.strip()
    return status, headers, body


@pytest.fixture
def fetch(server):
    def _fetch(target, method="GET"):
        raw = (f"{method} {target} HTTP/1.1\r\n"
               "Host: localhost\r\n"
               "Connection: close\r\n\r\n").encode()
        return parse_response(send_raw(server.port, raw))

    return _fetch
