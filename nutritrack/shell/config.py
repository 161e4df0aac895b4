"""Configuration - Settings read from the environment.

The core never reads the environment; everything configurable is gathered
here and passed down.
"""

import os
from dataclasses import dataclass, field

from .firestore_client import FirestoreConfig


DEFAULT_ALLOWED_HOSTS = ["localhost:*", "127.0.0.1:*"]
DEFAULT_CORS_ORIGINS = ["http://localhost:5173"]


@dataclass
class AppConfig:
    """Runtime settings for the server.

    Attributes:
        store: Storage backend, "firestore" or "memory"
        firestore: Firestore connection settings
        user_id: Account the MCP tools act for
        allowed_hosts: Host headers accepted by the MCP transport
        cors_origins: Browser origins allowed to call the HTTP routes
        host: Bind address for uvicorn
        port: Bind port for uvicorn
    """

    store: str = "firestore"
    firestore: FirestoreConfig = field(default_factory=FirestoreConfig)
    user_id: str = "default"
    allowed_hosts: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_HOSTS))
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    host: str = "0.0.0.0"
    port: int = 8080


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config() -> AppConfig:
    """Build the configuration from environment variables."""
    store = os.environ.get("NUTRITRACK_STORE", "firestore").strip().lower()
    if store not in ("firestore", "memory"):
        raise ValueError(f"NUTRITRACK_STORE must be 'firestore' or 'memory', got {store!r}")

    allowed_hosts = _split(os.environ.get("ALLOWED_HOSTS", "")) or list(DEFAULT_ALLOWED_HOSTS)
    cors_origins = _split(os.environ.get("CORS_ORIGINS", "")) or list(DEFAULT_CORS_ORIGINS)

    return AppConfig(
        store=store,
        firestore=FirestoreConfig(
            project_id=os.environ.get("FIRESTORE_PROJECT"),
            database=os.environ.get("FIRESTORE_DATABASE", "nutritrack"),
        ),
        user_id=os.environ.get("NUTRITRACK_USER_ID", "default"),
        allowed_hosts=allowed_hosts,
        cors_origins=cors_origins,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8080")),
    )
