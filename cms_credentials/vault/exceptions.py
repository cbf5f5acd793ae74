"""
Vault Exceptions — Error taxonomy for credential encryption and resolution.

Security Note:
    Exception messages never include plaintext, passphrases, derived keys
    or envelope contents. Only secret names and structural facts (field
    counts, byte lengths) may appear.
"""
from typing import Optional


class VaultError(Exception):
    """Base class for all credential vault errors.

    ``secret_name`` is filled in by the resolver when the error concerns
    a named secret.
    """

    secret_name: Optional[str] = None


class MissingInput(VaultError, ValueError):
    """A required value (plaintext, envelope or passphrase) was empty."""


class MalformedEnvelope(VaultError, ValueError):
    """The envelope is not four ``:``-delimited hex fields of valid length."""


class EncryptionFailure(VaultError):
    """The cipher or the random source failed while encrypting."""


class DecryptionFailure(VaultError):
    """Authenticated decryption failed.

    Raised for a wrong passphrase and for corrupted or tampered data alike;
    callers cannot tell the two apart.
    """


class SecretUnavailable(VaultError, LookupError):
    """Neither an encrypted nor a plaintext source exists for a secret."""

    def __init__(self, secret_name: str, message: Optional[str] = None):
        self.secret_name = secret_name
        super().__init__(
            message or f"No encrypted or plaintext value configured for {secret_name}"
        )
