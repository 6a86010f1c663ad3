# =============================================================================
# Auth Service — API Key Generation & Hashing
# =============================================================================
#
# Pure functions for API key management, shared by the auth dependency,
# the admin endpoints, and the create-key CLI.
#
# Keys are 32 random bytes, so a plain SHA-256 digest is enough for storage
# and lets the auth dependency look keys up by hash.
# =============================================================================

from __future__ import annotations

import hashlib
import secrets

SCOPES = ("chat", "upload", "admin")


def generate_api_key() -> tuple[str, str, str]:
    """
    Generate a new API key.

    Returns:
        (raw_key, key_prefix, key_hash):
        - raw_key: Full key to return to the user (only visible once)
        - key_prefix: First 8 chars for identification in logs/admin
        - key_hash: SHA-256 hex digest for storage in the database
    """
    raw_key = f"sk-{secrets.token_hex(32)}"
    key_prefix = raw_key[:8]
    key_hash = hash_api_key(raw_key)
    return raw_key, key_prefix, key_hash


def hash_api_key(raw_key: str) -> str:
    """Hash an API key using SHA-256. Returns 64-char hex digest."""
    return hashlib.sha256(raw_key.encode()).hexdigest()
