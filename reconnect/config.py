"""
Configuration

Environment-based settings for the persistence server and the client.

Environment Variables (server):
    RECONNECT_ROOT: Project root holding data/ and img/ (default: working directory)
    RECONNECT_HOST: Bind address (default 127.0.0.1)
    RECONNECT_PORT: Bind port (default 3000)
    RECONNECT_MAX_BODY_MB: Largest accepted request body (default 10)
    RECONNECT_CORS_ORIGINS: Comma-separated allowed origins (default *)

Environment Variables (client):
    RECONNECT_SERVER_URL: Persistence server base URL (default http://localhost:3000)
    RECONNECT_PAGE_SIZE: Results per page (default 6)
    RECONNECT_CACHE_DIR: Local cache directory (unset disables the cache)
    RECONNECT_TIMEOUT: HTTP timeout in seconds (default 10)

A --root command line flag takes precedence over RECONNECT_ROOT.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class ServerConfig:
    """Persistence server settings."""
    root: Path = field(default_factory=Path.cwd)
    host: str = "127.0.0.1"
    port: int = 3000
    max_body_mb: int = 10
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def max_body_bytes(self) -> int:
        return self.max_body_mb * 1024 * 1024

    @classmethod
    def from_env(cls, root_override: Optional[str] = None) -> "ServerConfig":
        """
        Load configuration from environment variables.

        Args:
            root_override: Value of the --root flag, if given
        """
        root = root_override or os.getenv("RECONNECT_ROOT")
        origins = os.getenv("RECONNECT_CORS_ORIGINS", "*")
        return cls(
            root=Path(root).resolve() if root else Path.cwd(),
            host=os.getenv("RECONNECT_HOST", "127.0.0.1"),
            port=int(os.getenv("RECONNECT_PORT", "3000")),
            max_body_mb=int(os.getenv("RECONNECT_MAX_BODY_MB", "10")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


@dataclass
class ClientConfig:
    """Client-side settings."""
    server_url: str = "http://localhost:3000"
    page_size: int = 6
    cache_dir: Optional[Path] = None
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "ClientConfig":
        cache_dir = os.getenv("RECONNECT_CACHE_DIR")
        return cls(
            server_url=os.getenv("RECONNECT_SERVER_URL", "http://localhost:3000").rstrip("/"),
            page_size=int(os.getenv("RECONNECT_PAGE_SIZE", "6")),
            cache_dir=Path(cache_dir).expanduser() if cache_dir else None,
            timeout=float(os.getenv("RECONNECT_TIMEOUT", "10")),
        )
