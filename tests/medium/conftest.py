import sys
import threading
from collections.abc import Iterator
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path

import pytest

from mockserver_launcher.process import Process

FAKE_MOCKSERVER = Path(__file__).resolve().parent.parent / "fixtures" / "fake_mockserver.py"
JAR_BYTES = b"PK\x03\x04fake-mockserver-jar"


def fake_mockserver_spawn(args: list[str], show_output: bool) -> Process:
    """Run the fake server with the port flags that follow `-jar <path>`."""
    jar_index = args.index("-jar")
    return Process.start_in_background(
        [sys.executable, str(FAKE_MOCKSERVER), *args[jar_index + 2:]],
        show_output,
    )


class _RepositoryHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        if self.path.endswith("-jar-with-dependencies.jar") and "/3.10.8/" in self.path:
            self.send_response(200)
            self.send_header("Content-Type", "application/java-archive")
            self.send_header("Content-Length", str(len(JAR_BYTES)))
            self.end_headers()
            self.wfile.write(JAR_BYTES)
        else:
            self.send_response(404)
            self.send_header("Content-Length", "0")
            self.end_headers()

    def log_message(self, format: str, *args: object) -> None:
        # Silence the default logging to keep test output clean
        return


@pytest.fixture()
def repository_url() -> Iterator[str]:
    """Serve a fake artifact repository on an ephemeral localhost port."""
    server = HTTPServer(("127.0.0.1", 0), _RepositoryHandler)
    host, port = server.server_address[0], server.server_address[1]

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    try:
        yield f"http://{host}:{port}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=1)
