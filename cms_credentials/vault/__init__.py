"""Credential Vault — Encrypted CMS credentials kept in plaintext configuration.

Security Note (Threat Model):
    The passphrase (ENCRYPTION_KEY) lives in the same configuration surface
    as the envelopes it protects. Anyone able to read both the environment
    and the key can recover the credentials. This is an accepted limitation;
    the vault keeps credentials out of plain sight, backups and logs, and
    detects tampering.
"""

from .crypto import (
    Envelope,
    encrypt,
    decrypt,
    derive_key,
    validate_passphrase_strength,
    generate_passphrase,
)
from .config import VaultConfig
from .resolver import (
    ConfigResolver,
    Provenance,
    ResolvedSecret,
    resolve_secret,
    validate_process_passphrase,
)
from .exceptions import (
    VaultError,
    MissingInput,
    MalformedEnvelope,
    EncryptionFailure,
    DecryptionFailure,
    SecretUnavailable,
)

__all__ = [
    "Envelope",
    "encrypt",
    "decrypt",
    "derive_key",
    "validate_passphrase_strength",
    "generate_passphrase",
    "VaultConfig",
    "ConfigResolver",
    "Provenance",
    "ResolvedSecret",
    "resolve_secret",
    "validate_process_passphrase",
    "VaultError",
    "MissingInput",
    "MalformedEnvelope",
    "EncryptionFailure",
    "DecryptionFailure",
    "SecretUnavailable",
]
