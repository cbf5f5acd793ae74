"""
Vault Configuration — Passphrase and credential sources from the environment.

Reads the CMS credential settings from environment variables:
    ENCRYPTION_KEY = <passphrase, 64 hex chars from the setup tool>
    TURSO_DATABASE_URL_ENCRYPTED = <envelope>
    TURSO_DATABASE_URL = <plaintext fallback>
    TURSO_AUTH_TOKEN_ENCRYPTED = <envelope>
    TURSO_AUTH_TOKEN = <plaintext fallback>

Values may also come from a ``.env`` file; variables already present in the
process environment take precedence over the file.

Security Note:
    Never log key material. Only log variable names and which ones are set.
"""
import os
import logging
from collections.abc import Mapping
from typing import Optional

from dotenv import dotenv_values
from pydantic import BaseModel, SecretStr, field_validator

logger = logging.getLogger("cms.vault")

ENCRYPTION_KEY_ENV = "ENCRYPTION_KEY"

# secret name -> (encrypted variable, plaintext variable)
SECRET_ENV_VARS: dict[str, tuple[str, str]] = {
    "database_url": ("TURSO_DATABASE_URL_ENCRYPTED", "TURSO_DATABASE_URL"),
    "auth_token": ("TURSO_AUTH_TOKEN_ENCRYPTED", "TURSO_AUTH_TOKEN"),
}


class VaultConfig(BaseModel):
    """Validated credential configuration, read once at bootstrap."""

    encryption_key: Optional[SecretStr] = None
    database_url_encrypted: Optional[str] = None
    database_url: Optional[str] = None
    auth_token_encrypted: Optional[str] = None
    auth_token: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator(
        "database_url_encrypted",
        "database_url",
        "auth_token_encrypted",
        "auth_token",
        mode="before",
    )
    @classmethod
    def empty_as_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank variables as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("encryption_key", mode="before")
    @classmethod
    def empty_key_as_missing(cls, v):
        """Treat a blank passphrase as not configured."""
        if isinstance(v, str) and not v:
            return None
        return v

    @property
    def passphrase(self) -> Optional[str]:
        """Raw passphrase, or None when ENCRYPTION_KEY is unset."""
        if self.encryption_key is None:
            return None
        return self.encryption_key.get_secret_value()

    @property
    def has_encrypted_sources(self) -> bool:
        """True if any secret is configured in encrypted form."""
        return bool(self.database_url_encrypted or self.auth_token_encrypted)

    def sources(self, name: str) -> tuple[Optional[str], Optional[str]]:
        """Return ``(encrypted, plaintext)`` sources for a named secret.

        Raises:
            KeyError: If name is not a known secret.
        """
        if name not in SECRET_ENV_VARS:
            raise KeyError(f"Unknown secret: {name}")
        return (
            getattr(self, f"{name}_encrypted"),
            getattr(self, name),
        )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[str] = None,
    ) -> "VaultConfig":
        """Create VaultConfig from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            env_file: Optional ``.env`` file whose values fill in
                variables missing from ``environ``.

        Returns:
            Populated VaultConfig instance.
        """
        values: dict[str, Optional[str]] = {}
        if env_file is not None:
            values.update(dotenv_values(env_file))
        values.update(os.environ if environ is None else environ)

        fields = {"encryption_key": values.get(ENCRYPTION_KEY_ENV)}
        for name, (encrypted_var, plain_var) in SECRET_ENV_VARS.items():
            fields[f"{name}_encrypted"] = values.get(encrypted_var)
            fields[name] = values.get(plain_var)
        config = cls(**fields)
        logger.debug(
            "Loaded credential config: key=%s encrypted=%s",
            "set" if config.encryption_key else "unset",
            sorted(
                name for name in SECRET_ENV_VARS if config.sources(name)[0]
            ),
        )
        return config
