"""Preview server for quickstatic.

Serves the built site for local authoring while a WatchSession rebuilds it:
- Directory listings and missing paths get a 404 (serving 404.html when present).
- Responses are marked uncacheable so a reload always shows the latest build.

The server and the watch loop share only the output directory. A request made
during a rebuild may see a mix of old and new files.

Key members:
- PreviewServer: Threaded static file server over the output directory.
- serve_site: Builds, watches and serves a project until interrupted.
- _PreviewHandler: HTTP request handler enforcing 404s.
"""

from __future__ import annotations

import functools
import logging
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from .build import build_site
from .config import OUTPUT_DIRNAME
from .watcher import DEBOUNCE_SECONDS, WatchSession

logger = logging.getLogger(__name__)

DEFAULT_PORT = 2020


class _PreviewHandler(SimpleHTTPRequestHandler):
    """Static file handler that never lists directories."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_404()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.is_file():
            encoded = error_page.read_bytes()
            self.send_response(404)
            self.send_header("Content-type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(encoded)))
            self.end_headers()
            self.wfile.write(encoded)
            return None
        self.send_error(404, "File not found")
        return None

    def send_head(self):
        path = Path(self.translate_path(self.path))
        if path.is_dir():
            if not (path / "index.html").is_file():
                return self._serve_404()
        elif not path.is_file():
            return self._serve_404()
        return super().send_head()


class PreviewServer:
    """Serves a directory over HTTP from a background thread.

    Attributes:
        directory: Directory whose files are served.
        port: TCP port to listen on.
        host: Interface to bind, all interfaces by default.
    """

    def __init__(self, directory: Path, port: int = DEFAULT_PORT, host: str = ""):
        self.directory = directory
        self.port = port
        self.host = host
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        handler = functools.partial(_PreviewHandler, directory=str(self.directory))
        self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)
        self._thread.start()
        logger.info(
            "Serving %s at http://localhost:%d", self.directory, self._httpd.server_address[1]
        )

    def stop(self) -> None:
        if self._httpd is None:
            return
        self._httpd.shutdown()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._httpd.server_close()
        self._httpd = None


def serve_site(
    project_root: Path,
    port: int = DEFAULT_PORT,
    debounce: float = DEBOUNCE_SECONDS,
) -> None:  # pragma: no cover - integration path
    """Build the site, then rebuild on every change while serving it.

    The first build runs synchronously. Failed builds, the first included,
    are reported and the session keeps watching.
    """
    output_dir = project_root / OUTPUT_DIRNAME
    session = WatchSession(
        project_root, output_dir, lambda: build_site(project_root), debounce
    )
    session.rebuild_now()
    server = PreviewServer(output_dir, port)
    server.start()
    session.start()
    try:
        session.run()
    except KeyboardInterrupt:
        logger.info("Stopping")
    finally:
        session.stop()
        server.stop()
