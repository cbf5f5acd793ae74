"""
Credential Setup — Encrypt the CMS database credentials into an env file.

Usage:
    python -m cms_credentials.setup_credentials [--env-file .env]

Generates a fresh ENCRYPTION_KEY and SESSION_SECRET, encrypts the database
URL and auth token with the key, and writes everything to the env file.
Missing values are prompted for interactively.

Security Note:
    The env file holds both the key and the envelopes. Keep it out of
    version control and readable by the service account only.
"""
import os
import sys
import argparse
import getpass
from typing import Optional

from .vault.crypto import encrypt, generate_passphrase
from .vault.config import ENCRYPTION_KEY_ENV, SECRET_ENV_VARS
from .vault.exceptions import VaultError


def encrypt_credentials(
    database_url: str,
    auth_token: str,
    passphrase: Optional[str] = None,
) -> dict[str, str]:
    """Encrypt both credentials, generating a passphrase if none is given.

    Returns:
        Mapping of environment variable name to value: the passphrase and
        the two envelopes.
    """
    passphrase = passphrase or generate_passphrase()
    return {
        ENCRYPTION_KEY_ENV: passphrase,
        SECRET_ENV_VARS["database_url"][0]: encrypt(database_url, passphrase),
        SECRET_ENV_VARS["auth_token"][0]: encrypt(auth_token, passphrase),
    }


def build_env_content(
    credentials: dict[str, str],
    session_secret: str,
    admin_username: str = "admin",
    port: int = 3000,
) -> str:
    """Render the env file for encrypted credentials."""
    url_var = SECRET_ENV_VARS["database_url"][0]
    token_var = SECRET_ENV_VARS["auth_token"][0]
    return (
        "# Server Configuration\n"
        f"PORT={port}\n"
        "\n"
        "# Session Secret (IMPORTANT: Keep this secure!)\n"
        f"SESSION_SECRET={session_secret}\n"
        "\n"
        "# Encryption Key (CRITICAL: Never share or commit this!)\n"
        f"{ENCRYPTION_KEY_ENV}={credentials[ENCRYPTION_KEY_ENV]}\n"
        "\n"
        "# Encrypted Database Configuration\n"
        f"{url_var}={credentials[url_var]}\n"
        f"{token_var}={credentials[token_var]}\n"
        "\n"
        "# Admin Account\n"
        f"ADMIN_USERNAME={admin_username}\n"
        "\n"
        "# IMPORTANT NOTES:\n"
        "# 1. Never commit this file to version control\n"
        f"# 2. Keep {ENCRYPTION_KEY_ENV} secure - if lost, credentials cannot be decrypted\n"
        "# 3. Backup this file in a secure location\n"
    )


def write_env_file(path: str, content: str, force: bool = False) -> None:
    """Write the env file with owner-only permissions.

    Raises:
        FileExistsError: If the file exists and force is False.
    """
    flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
    if not force:
        flags |= os.O_EXCL
    fd = os.open(path, flags, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as fh:
        fh.write(content)
    os.chmod(path, 0o600)


def _ask(prompt: str, secret: bool = False) -> str:
    value = getpass.getpass(prompt) if secret else input(prompt)
    return value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cms-setup-credentials",
        description="Encrypt CMS database credentials into an env file",
    )
    parser.add_argument("--env-file", default=".env")
    parser.add_argument("--database-url", default=None)
    parser.add_argument("--auth-token", default=None)
    parser.add_argument("--admin-username", default=None)
    parser.add_argument(
        "--force", action="store_true",
        help="Overwrite an existing env file",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        database_url = args.database_url or _ask("Enter your database URL: ")
        if not database_url:
            raise ValueError("Database URL is required")
        auth_token = args.auth_token or _ask(
            "Enter your database auth token: ", secret=True,
        )
        if not auth_token:
            raise ValueError("Auth token is required")
        admin_username = (
            args.admin_username
            or _ask("Enter admin username (default: admin): ")
            or "admin"
        )

        credentials = encrypt_credentials(database_url, auth_token)
        content = build_env_content(
            credentials,
            session_secret=generate_passphrase(),
            admin_username=admin_username,
        )
        write_env_file(args.env_file, content, force=args.force)
    except (ValueError, OSError, EOFError, VaultError) as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1

    print(f"Encrypted credentials written to {args.env_file}")
    print(f"Keep {ENCRYPTION_KEY_ENV} secure: without it the credentials cannot be decrypted.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
