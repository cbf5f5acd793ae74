"""CMS Credentials.

Encrypted storage and bootstrap-time resolution of the CMS database
credentials.
"""
from .version import __version__
from .vault import (
    ConfigResolver,
    VaultConfig,
    decrypt,
    encrypt,
)
from .database import Database

__all__ = (
    "__version__",
    "ConfigResolver",
    "VaultConfig",
    "Database",
    "decrypt",
    "encrypt",
)
