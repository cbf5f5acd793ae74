"""
Database Bootstrap — Process-wide connection opened with resolved credentials.

Resolves the database URL and auth token through the credential vault, then
opens the connection exactly once. The SQL layer itself is external: callers
provide a ``connect(url, auth_token)`` factory returning the client.

Security Note:
    Credentials are resolved once per process and handed to ``connect``
    unchanged. They are never logged or stored on this object.
"""
import asyncio
import logging
import threading
from typing import Any, Callable, Optional

from .vault.config import VaultConfig
from .vault.exceptions import SecretUnavailable
from .vault.resolver import ConfigResolver, Provenance

logger = logging.getLogger("cms.database")

ConnectFactory = Callable[[str, Optional[str]], Any]


class Database:
    """Initialize-once holder for the CMS database client.

    ``initialize()`` may be called any number of times, from any thread;
    only the first call opens a connection. ``close()`` releases it and
    allows a later ``initialize()`` to open a new one.
    """

    def __init__(
        self,
        connect: Optional[ConnectFactory] = None,
        config: Optional[VaultConfig] = None,
    ):
        self._connect = connect
        self._config = config
        self._client: Any = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._client is not None

    def configure(
        self,
        connect: ConnectFactory,
        config: Optional[VaultConfig] = None,
    ) -> None:
        """Set the connection factory (and optionally the config)."""
        with self._lock:
            if self._client is not None:
                raise RuntimeError("Database is already initialized")
            self._connect = connect
            if config is not None:
                self._config = config

    def _resolve_credentials(
        self,
        url: Optional[str],
        auth_token: Optional[str],
    ) -> tuple[str, Optional[str]]:
        config = self._config if self._config is not None else VaultConfig.from_env()
        resolver = ConfigResolver(config)
        resolver.check_passphrase()

        if not url:
            resolved = resolver.database_url()
            if resolved.provenance is Provenance.DECRYPTED:
                logger.info("Decrypted database URL")
            url = resolved.get_secret_value()

        if not auth_token:
            try:
                resolved = resolver.auth_token()
            except SecretUnavailable:
                logger.info("No database auth token configured")
            else:
                if resolved.provenance is Provenance.DECRYPTED:
                    logger.info("Decrypted database auth token")
                auth_token = resolved.get_secret_value()
        return url, auth_token

    def initialize(
        self,
        url: Optional[str] = None,
        auth_token: Optional[str] = None,
    ) -> Any:
        """Open the database connection if it is not open yet.

        Args:
            url: Database URL; resolved from configuration when omitted.
            auth_token: Auth token; resolved from configuration when omitted.

        Returns:
            The database client returned by the connection factory.

        Raises:
            RuntimeError: If no connection factory was configured.
            VaultError: If the credentials cannot be resolved.
        """
        with self._lock:
            if self._client is not None:
                return self._client
            if self._connect is None:
                raise RuntimeError("No database connection factory configured")
            try:
                url, auth_token = self._resolve_credentials(url, auth_token)
                client = self._connect(url, auth_token)
            except Exception as err:
                logger.error(
                    "Database connection failed: %s", type(err).__name__,
                )
                raise
            self._client = client
        logger.info("Database connection initialized")
        return client

    async def initialize_async(
        self,
        url: Optional[str] = None,
        auth_token: Optional[str] = None,
    ) -> Any:
        """Run :meth:`initialize` in a worker thread.

        Key derivation is CPU-bound; this keeps it off the event loop.
        """
        return await asyncio.to_thread(self.initialize, url, auth_token)

    def get(self) -> Any:
        """Return the client, initializing it on first use."""
        client = self._client
        if client is None:
            return self.initialize()
        return client

    def close(self) -> None:
        """Close the client (if it has a ``close()``) and reset the holder."""
        with self._lock:
            client, self._client = self._client, None
        if client is None:
            return
        close = getattr(client, "close", None)
        if callable(close):
            close()
        logger.info("Database connection closed")


# Process-wide instance used by the CMS.
_database = Database()


def configure_database(
    connect: ConnectFactory,
    config: Optional[VaultConfig] = None,
) -> Database:
    _database.configure(connect, config)
    return _database


def initialize_database(
    url: Optional[str] = None,
    auth_token: Optional[str] = None,
) -> Any:
    return _database.initialize(url, auth_token)


def get_database() -> Any:
    return _database.get()


def close_database() -> None:
    _database.close()
