"""
Development preview server: serves dist/ with livereload and reloads
connected browsers whenever anything in the output tree changes.
"""

import logging
import threading
import webbrowser
from pathlib import Path
from typing import Optional

from livereload import Server
from tornado.ioloop import IOLoop

logger = logging.getLogger(__name__)


class PreviewServer:
    """Static file server with a reload broadcast for the output tree."""

    def __init__(self, root: Path, host: str = "127.0.0.1", port: int = 3000,
                 start_path: str = "html/index.html", open_browser: bool = True,
                 reload_delay: float = 0.5):
        self.root = Path(root)
        self.host = host
        self.port = port
        self.start_path = start_path.lstrip("/")
        self.open_browser = open_browser
        self.reload_delay = reload_delay
        self.server: Optional[Server] = None
        self._ioloop: Optional[IOLoop] = None
        self._browser_timer: Optional[threading.Timer] = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/{self.start_path}"

    def create_server(self) -> Server:
        server = Server()
        # Any change under the output tree reloads every attached page.
        server.watch(str(self.root), delay=self.reload_delay)
        return server

    def serve(self) -> None:
        """Serve until close() is called or the process is interrupted."""
        self.root.mkdir(parents=True, exist_ok=True)
        self.server = self.create_server()
        self._ioloop = IOLoop.current()

        if self.open_browser:
            self._browser_timer = threading.Timer(1.0, webbrowser.open, args=[self.url])
            self._browser_timer.daemon = True
            self._browser_timer.start()

        logger.info(f"Serving {self.root} at {self.url} with live reload")
        self.server.serve(root=str(self.root), host=self.host, port=self.port, open_url_delay=None)

    def close(self) -> None:
        """Stop the IO loop and close the reload channel."""
        if self._browser_timer is not None:
            self._browser_timer.cancel()
            self._browser_timer = None
        if self._ioloop is not None:
            self._ioloop.add_callback(self._ioloop.stop)
            self._ioloop = None
        self.server = None
