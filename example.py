"""Serve a directory with Hestia.

Run ``uv sync`` once, then ``uv run example.py`` to serve ``./public`` (or the
directory named by ``HESTIA_ROOT``) on Granian. Pre-compressed ``.br`` and
``.gz`` siblings are picked up automatically; hashed assets under ``/assets``
get a year-long ``Cache-Control`` while HTML is always revalidated.

Override ``HESTIA_HOST`` and ``HESTIA_PORT`` to change the listening address.
Set ``HESTIA_TLS_CERT`` and ``HESTIA_TLS_KEY`` to serve over HTTPS.
"""

from __future__ import annotations

import logging
import os

from hestia import FileServer, FileServerConfig, StaticFilesApp
from hestia.server import ServerConfig, run


def create_app() -> StaticFilesApp:
    """Build the static files application for the configured root."""

    config = FileServerConfig(
        root=os.getenv("HESTIA_ROOT", "public"),
        dotfiles="deny",
        headers={"X-Content-Type-Options": "nosniff"},
        cache_control={
            r"/assets/": "public, max-age=31536000, immutable",
            r"\.html$": "no-cache",
        },
    )
    return StaticFilesApp(FileServer(config))


def main() -> None:
    """Boot the Granian development server."""

    logging.basicConfig(level=logging.INFO)
    app = create_app()
    host = os.getenv("HESTIA_HOST", "127.0.0.1")
    port = int(os.getenv("HESTIA_PORT", "8000"))
    config = ServerConfig(
        host=host,
        port=port,
        certificate_path=os.getenv("HESTIA_TLS_CERT") or None,
        private_key_path=os.getenv("HESTIA_TLS_KEY") or None,
    )
    scheme = "https" if config.certificate_path else "http"
    print("Serving %s on Granian at %s://%s:%d" % (app.server.settings.root, scheme, host, port))
    run(app, config)


if __name__ == "__main__":
    main()
