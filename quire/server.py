"""Local preview server for Quire.

Serves the built site for local authoring:
- Resolves extensionless URLs (``/about``) to ``about.html``.
- Rejects directory listings and missing paths with a 404 (serving 404.html when present).
- Watches the source directory and rebuilds when content changes.

Key classes:
- DevServer: Builds the site, serves it and rebuilds on change.
- _PreviewHandler: HTTP request handler resolving pretty URLs and enforcing 404s.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import functools
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import build_site
from .config import destination_dir, load_config
from .errors import QuireError


class _PreviewHandler(SimpleHTTPRequestHandler):
    """HTTP request handler for previewing the built site."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def list_directory(self, path):  # pragma: no cover - exercised via send_head
        return self._serve_404()

    def _serve_404(self):
        """Serve 404.html (when present) with a 404 status."""
        error_page = Path(self.directory) / "404.html"
        if error_page.exists():
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
        path_obj = Path(self.translate_path(self.path))
        if path_obj.is_dir():
            if not (path_obj / "index.html").exists():
                return self._serve_404()
        elif not path_obj.exists():
            with_ext = path_obj.with_name(path_obj.name + ".html")
            if not with_ext.exists():
                return self._serve_404()
            self.path = self.path.split("?", 1)[0].split("#", 1)[0] + ".html"
        return super().send_head()

    def log_message(self, format, *args):  # pragma: no cover - console noise
        pass


class DevServer:
    """Preview server that rebuilds the site when its source changes.

    Attributes:
        source: Source directory of the site.
        config: Site configuration.
        output_dir: Directory the built site is served from.
        host: Interface to bind.
        port: Port for the HTTP server.
    """

    def __init__(
        self,
        source: Path,
        host: str | None = None,
        port: int | None = None,
        include_drafts: bool = False,
        future: bool | None = None,
    ):
        self.source = source.resolve()
        self.config = load_config(self.source)
        self.output_dir = destination_dir(self.source, self.config)
        self.host = host or str(self.config.get("host", "127.0.0.1"))
        self.port = int(port or self.config.get("port", 4000))
        self.include_drafts = include_drafts
        self.future = future
        self._observer: Observer | None = None
        self._rebuilding = False
        self._last_rebuild_at = 0.0
        self._last_signature: tuple | None = None
        self._debounce_seconds = 0.2

    def start(self) -> None:  # pragma: no cover - integration path
        self.build()
        self._last_signature = self._compute_signature()
        threading.Thread(target=self._start_http, daemon=True).start()
        self._start_watcher()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()

    def build(self):
        return build_site(
            self.source, include_drafts=self.include_drafts, future=self.future
        )

    def _start_http(self) -> None:  # pragma: no cover - integration path
        handler = functools.partial(_PreviewHandler, directory=str(self.output_dir))
        httpd = ThreadingHTTPServer((self.host, self.port), handler)
        print(f"Serving {self.output_dir} at http://{self.host}:{self.port}")
        httpd.serve_forever()

    def _start_watcher(self) -> None:
        observer = Observer()
        observer.schedule(_ChangeHandler(self), str(self.source), recursive=True)
        observer.start()
        self._observer = observer

    def rebuild(self) -> None:
        now = time.time()
        if self._rebuilding or (now - self._last_rebuild_at) < self._debounce_seconds:
            return
        signature = self._compute_signature()
        if signature is not None and signature == self._last_signature:
            return
        self._rebuilding = True
        try:
            print("Change detected; rebuilding...")
            try:
                result = self.build()
            except QuireError as exc:
                # Keep serving the previous build until the source is fixed.
                print(f"Build failed: {exc}")
                return
            for warning in result.warnings:
                print(f"Warning: {warning}")
            self._last_signature = signature
        finally:
            self._rebuilding = False
            self._last_rebuild_at = time.time()

    def _compute_signature(self) -> tuple | None:
        entries: list[tuple] = []
        for path in sorted(self.source.rglob("*")):
            if path.is_dir() or self._is_output(path):
                continue
            try:
                stat = path.stat()
            except OSError:
                continue
            rel = path.relative_to(self.source)
            entries.append((str(rel), stat.st_mtime_ns, stat.st_size))
        return tuple(entries) if entries else None

    def _is_output(self, path: Path) -> bool:
        try:
            path.resolve().relative_to(self.output_dir)
            return True
        except ValueError:
            return False


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(event.src_path)
        if self.server._is_output(path):
            return
        self.server.rebuild()
