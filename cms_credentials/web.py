"""aiohttp integration: open the CMS database before serving requests."""
from typing import Optional

from aiohttp import web

from .database import ConnectFactory, Database
from .vault.config import VaultConfig

DATABASE_KEY = web.AppKey("database", Database)


def setup_database(
    app: web.Application,
    connect: ConnectFactory,
    config: Optional[VaultConfig] = None,
) -> Database:
    """Register startup/cleanup handlers managing the database connection.

    The connection is opened during application startup; a credential
    error aborts startup. The handle is reachable as ``app[DATABASE_KEY]``.
    """
    database = Database(connect, config=config)
    app[DATABASE_KEY] = database

    async def _open_database(app: web.Application) -> None:
        await database.initialize_async()

    async def _close_database(app: web.Application) -> None:
        database.close()

    app.on_startup.append(_open_database)
    app.on_cleanup.append(_close_database)
    return database
