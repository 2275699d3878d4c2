"""Connection and application settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

from .models.namespace_tree import DEFAULT_DELIMITER

if TYPE_CHECKING:
    import tkinter as tk

DEFAULT_LABEL = "localhost"
DEFAULT_URL = "redis://127.0.0.1"
DEFAULT_PORT = 6379
URL_SCHEMES = ("redis", "rediss")


@dataclass(frozen=True)
class ConnectionConfig:
    """Where and how to reach one Redis server."""

    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    db: int = 0
    username: str | None = None
    password: str | None = None
    ssl: bool = False
    socket_timeout: float | None = 5.0

    @classmethod
    def from_url(cls, url: str, socket_timeout: float | None = 5.0) -> ConnectionConfig:
        """Parse a ``redis://[user[:password]@]host[:port][/db]`` URL.

        Raises:
            ValueError: If the scheme, port or database index is invalid.
        """
        url = url.strip()
        if "://" not in url:
            url = f"redis://{url}"
        parsed = urlparse(url)
        if parsed.scheme not in URL_SCHEMES:
            raise ValueError(f"Unsupported URL scheme: {parsed.scheme!r}")

        try:
            port = parsed.port or DEFAULT_PORT
        except ValueError as e:
            raise ValueError(f"Invalid port in {url!r}") from e

        db_text = parsed.path.lstrip("/")
        if db_text:
            if not db_text.isdigit():
                raise ValueError(f"Invalid database index: {db_text!r}")
            db = int(db_text)
        else:
            db = 0

        return cls(
            host=parsed.hostname or "127.0.0.1",
            port=port,
            db=db,
            username=unquote(parsed.username) if parsed.username else None,
            password=unquote(parsed.password) if parsed.password else None,
            ssl=parsed.scheme == "rediss",
            socket_timeout=socket_timeout,
        )

    @property
    def display_address(self) -> str:
        """Address without credentials, for logs and status lines."""
        return f"{self.host}:{self.port}/{self.db}"


class AppSettings:
    """Application settings and connection form variables."""

    def __init__(self, delimiter: str = DEFAULT_DELIMITER):
        import tkinter as tk

        self.label_var: tk.StringVar = tk.StringVar(value=DEFAULT_LABEL)
        self.url_var: tk.StringVar = tk.StringVar(value=DEFAULT_URL)
        self.delimiter = delimiter

    @property
    def label(self) -> str:
        """Get the session label, falling back to the default."""
        return self.label_var.get().strip() or DEFAULT_LABEL

    @property
    def url(self) -> str:
        """Get the connection URL."""
        return self.url_var.get().strip() or DEFAULT_URL

    def connection_config(self) -> ConnectionConfig:
        """Parse the form URL into a ConnectionConfig."""
        return ConnectionConfig.from_url(self.url)
