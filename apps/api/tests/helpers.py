"""Shared test helpers (importable from test modules)."""

import secrets

PUBKEY_HEADER = "x-user-pubkey"
SUPER_ADMIN_PUBKEY = "02" + "ad" * 32


def make_pubkey() -> str:
    """Random 66-char lowercase hex pubkey (compressed-key shaped)."""
    return "02" + secrets.token_hex(32)


def auth_headers(pubkey: str) -> dict[str, str]:
    return {PUBKEY_HEADER: pubkey}
