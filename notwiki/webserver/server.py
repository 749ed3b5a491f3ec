"""
Not-Wikipedia local site server.

Serves a generated site directory (pages, fragments and the JSON artifacts the
client fetches) over HTTP for local browsing and end-to-end checks.
"""

import logging
import threading
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from flask import Flask, abort, jsonify, send_file
from werkzeug.serving import BaseWSGIServer, make_server

logger = logging.getLogger(__name__)

INDEX_PAGE = "index.html"
ARTIFACT_DIRS = ("api", "fragments", "pages", "wiki", "categories")


class SiteServer:
    """Web server for a pre-built Not-Wikipedia site."""

    def __init__(self, site_root: str):
        """
        Initialize the site server.

        Args:
            site_root: Directory produced by the site build
        """
        self.site_root = Path(site_root).resolve()
        if not self.site_root.is_dir():
            raise ValueError(f"Site directory does not exist: {self.site_root}")
        self.app = Flask(__name__, static_folder=None)
        self.server_thread: Optional[threading.Thread] = None
        self.is_running = False
        self.host = "127.0.0.1"
        self.port = 0
        self._server: Optional[BaseWSGIServer] = None

        self._setup_routes()

    def _setup_routes(self):
        """Setup Flask routes."""

        @self.app.route("/")
        def index():
            """Serve the site home page."""
            return self._serve_file(INDEX_PAGE)

        @self.app.route("/health")
        def health():
            missing = [name for name in ARTIFACT_DIRS if not (self.site_root / name).is_dir()]
            return jsonify({"ok": True, "site_root": str(self.site_root), "missing": missing})

        @self.app.route("/<path:file_path>")
        def site_file(file_path: str):
            """Serve any file of the built site."""
            return self._serve_file(unquote(file_path))

    def _serve_file(self, rel_path: str):
        """
        Send one file from the site directory.

        Args:
            rel_path: Path relative to the site root

        Returns:
            Flask response for the file
        """
        full_path = (self.site_root / rel_path).resolve()

        # Security check - ensure file is within the site
        try:
            full_path.relative_to(self.site_root)
        except ValueError:
            logger.warning(f"Refusing path outside site root: {rel_path}")
            abort(403)

        if full_path.is_dir():
            full_path = full_path / INDEX_PAGE
        if not full_path.exists() or not full_path.is_file():
            abort(404)

        return send_file(str(full_path))

    def start(self, host: str = "127.0.0.1", port: int = 0) -> tuple[str, int]:
        """
        Start serving on a background thread.

        Args:
            host: Host to bind to (default: 127.0.0.1)
            port: Port to bind to (0 = any free port)

        Returns:
            Tuple of (bound_host, bound_port)
        """
        if self.is_running:
            logger.warning(f"Site server already running at {self.get_url()}")
            return self.host, self.port

        self._server = make_server(host, port, self.app, threaded=True)
        self.host = host
        self.port = self._server.server_port

        if host not in ("127.0.0.1", "localhost"):
            logger.warning(f"Site is reachable from the network at {host}:{self.port}")

        self.server_thread = threading.Thread(
            target=self._server.serve_forever,
            name="notwiki-site-server",
            daemon=True,
        )
        self.server_thread.start()
        self.is_running = True
        logger.info(f"Site server started: {self.get_url()}")
        return self.host, self.port

    def stop(self, timeout: float = 5.0) -> None:
        """Shut the server down and wait for its thread to exit."""
        if not self.is_running or self._server is None:
            return

        self._server.shutdown()
        if self.server_thread is not None:
            self.server_thread.join(timeout)
        self._server.server_close()
        self._server = None
        self.is_running = False
        logger.info(f"Site server stopped: {self.host}:{self.port}")

    def get_url(self) -> Optional[str]:
        """Get the server URL if running."""
        if not self.is_running:
            return None
        return f"http://{self.host}:{self.port}/"
