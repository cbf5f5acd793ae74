"""
Vault Resolver — Ordered-source resolution of named credentials.

For each secret the resolver tries, in order:
1. the encrypted source, decrypted with the process passphrase;
2. the plaintext source, with an advisory that an unencrypted value is used;
3. nothing: ``SecretUnavailable``.

A present encrypted source that fails to decrypt is a configuration defect
(wrong passphrase or corrupted storage). Its error is raised to the caller
and the plaintext source is never consulted.

Security Note:
    Resolved values are wrapped in ``SecretStr``. Log lines carry secret
    names and provenance only.
"""
import logging
import threading
from enum import Enum
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import SecretStr

from .config import VaultConfig, ENCRYPTION_KEY_ENV
from .crypto import decrypt, validate_passphrase_strength, Passphrase
from .exceptions import VaultError, SecretUnavailable

logger = logging.getLogger("cms.vault")


class Provenance(str, Enum):
    """Which source supplied a resolved secret."""

    DECRYPTED = "decrypted"
    PLAINTEXT_FALLBACK = "plaintext-fallback"


@dataclass(frozen=True)
class ResolvedSecret:
    """Outcome of a successful resolution.

    Unpacks as ``value, provenance`` with the raw string value.
    """

    name: str
    value: SecretStr
    provenance: Provenance
    advisory: Optional[str] = None

    def get_secret_value(self) -> str:
        return self.value.get_secret_value()

    def __iter__(self):
        yield self.get_secret_value()
        yield self.provenance


def resolve_secret(
    name: str,
    encrypted_source: Optional[str],
    plaintext_source: Optional[str],
    passphrase: Optional[Passphrase],
) -> ResolvedSecret:
    """Resolve one named secret from its encrypted and plaintext sources.

    Args:
        name: Secret name, used in log lines and errors.
        encrypted_source: Envelope string, or None/empty if not configured.
        plaintext_source: Raw value, or None/empty if not configured.
        passphrase: Process passphrase for the encrypted source.

    Returns:
        ResolvedSecret with provenance ``decrypted`` or ``plaintext-fallback``.

    Raises:
        DecryptionFailure, MalformedEnvelope, MissingInput: If the encrypted
            source is present but cannot be decrypted.
        SecretUnavailable: If neither source is configured.
    """
    if encrypted_source:
        try:
            value = decrypt(encrypted_source, passphrase)
        except VaultError as err:
            err.secret_name = name
            logger.error("Failed to decrypt %s: %s", name, err)
            raise
        logger.debug("Resolved %s from encrypted source", name)
        return ResolvedSecret(
            name=name,
            value=SecretStr(value),
            provenance=Provenance.DECRYPTED,
        )
    if plaintext_source:
        advisory = (
            f"Using unencrypted {name}; "
            "run the credential setup tool to encrypt it"
        )
        logger.warning(advisory)
        return ResolvedSecret(
            name=name,
            value=SecretStr(plaintext_source),
            provenance=Provenance.PLAINTEXT_FALLBACK,
            advisory=advisory,
        )
    raise SecretUnavailable(name)


def validate_process_passphrase(
    passphrase: Optional[Passphrase],
    encrypted_configured: bool = True,
) -> Optional[str]:
    """Warn when encrypted sources rely on a weak passphrase.

    Never blocks startup; the caller decides what to do with the warning.

    Returns:
        Warning text if a warning was emitted, otherwise None.
    """
    if not encrypted_configured or validate_passphrase_strength(passphrase):
        return None
    warning = (
        f"Weak or missing {ENCRYPTION_KEY_ENV} detected! "
        "Generate a strong key with: python -m cms_credentials.setup_credentials"
    )
    logger.warning(warning)
    return warning


class ConfigResolver:
    """Resolves the CMS credentials described by a VaultConfig.

    Each secret is resolved at most once; later calls return the same
    result, or raise the same error.
    """

    def __init__(self, config: VaultConfig):
        self._config = config
        self._results: dict[str, Union[ResolvedSecret, VaultError]] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> VaultConfig:
        return self._config

    def check_passphrase(self) -> Optional[str]:
        return validate_process_passphrase(
            self._config.passphrase,
            encrypted_configured=self._config.has_encrypted_sources,
        )

    def resolve(self, name: str) -> ResolvedSecret:
        """Resolve a named secret (``database_url`` or ``auth_token``)."""
        with self._lock:
            if name not in self._results:
                encrypted, plaintext = self._config.sources(name)
                try:
                    self._results[name] = resolve_secret(
                        name, encrypted, plaintext, self._config.passphrase,
                    )
                except VaultError as err:
                    self._results[name] = err
            result = self._results[name]
        if isinstance(result, VaultError):
            raise result.with_traceback(None)
        return result

    def database_url(self) -> ResolvedSecret:
        return self.resolve("database_url")

    def auth_token(self) -> ResolvedSecret:
        return self.resolve("auth_token")
