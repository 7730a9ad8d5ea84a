"""Serve a :class:`~hestia.asgi.StaticFilesApp` with Granian."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import msgspec
from granian import Granian

from .asgi import StaticFilesApp

logger = logging.getLogger(__name__)


class ServerConfig(msgspec.Struct, frozen=True):
    host: str = "127.0.0.1"
    port: int = 8000
    interface: str = "asgi"
    loop: str = "auto"
    workers: int = 1
    certificate_path: str | None = None
    private_key_path: str | None = None

    def tls_paths(self) -> tuple[Path, Path] | None:
        """Return the certificate and key to serve HTTPS with, if configured."""

        if self.certificate_path is None and self.private_key_path is None:
            return None
        if self.certificate_path is None or self.private_key_path is None:
            raise RuntimeError("TLS needs both certificate_path and private_key_path")
        pair = (Path(self.certificate_path), Path(self.private_key_path))
        missing = [str(path) for path in pair if not path.exists()]
        if missing:
            raise RuntimeError(f"TLS assets not found: {', '.join(missing)}")
        return pair


class AppLoader:
    """Callable Granian workers use to fetch the application being served."""

    target = "hestia.server:loader"

    def __init__(self) -> None:
        self.app: StaticFilesApp | None = None

    def __call__(self) -> StaticFilesApp:
        if self.app is None:
            raise RuntimeError("no static files application registered for Granian")
        return self.app


loader = AppLoader()


def create_server(app: StaticFilesApp, config: ServerConfig | None = None) -> Granian:
    cfg = config or ServerConfig()
    options: dict[str, Any] = {
        "address": cfg.host,
        "port": cfg.port,
        "interface": cfg.interface,
        "loop": cfg.loop,
        "workers": cfg.workers,
    }
    tls = cfg.tls_paths()
    if tls is not None:
        options["ssl_cert"], options["ssl_key"] = tls
    loader.app = app
    return Granian(loader.target, **options)


def run(app: StaticFilesApp, config: ServerConfig | None = None) -> None:
    server = create_server(app, config)
    logger.info("Serving %s with Granian", app.server.settings.root)
    try:
        server.serve(target_loader=loader, wrap_loader=False)
    finally:
        loader.app = None


__all__ = ["AppLoader", "ServerConfig", "create_server", "loader", "run"]
