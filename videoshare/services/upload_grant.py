"""
Short-lived ImageKit upload grants for direct-to-CDN uploads.
Stateless: a grant is valid iff the CDN recomputes the same signature before expires_at.
"""
import hashlib
import hmac
import logging
import secrets
import time
from dataclasses import dataclass

from videoshare.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

GRANT_TTL_SECONDS = 2400  # 40 minutes
TOKEN_BYTES = 16  # 128 bits, hex-encoded to 32 chars


@dataclass(frozen=True)
class UploadGrant:
    token: str
    expires_at: int  # unix seconds
    signature: str


def compute_signature(private_key: str, token: str, expires_at: int) -> str:
    """HMAC-SHA1 over token + decimal expiry, hex digest (ImageKit client-side upload scheme)."""
    message = f"{token}{expires_at}".encode()
    return hmac.new(private_key.encode(), message, hashlib.sha1).hexdigest()


def issue_upload_grant(
    private_key: str | None,
    ttl_seconds: int = GRANT_TTL_SECONDS,
    now: float | None = None,
) -> UploadGrant:
    if not private_key:
        logger.error("ImageKit private key not found in configuration")
        raise ConfigurationError("ImageKit private key not configured")
    issued_at = int(time.time() if now is None else now)
    token = secrets.token_hex(TOKEN_BYTES)
    expires_at = issued_at + ttl_seconds
    grant = UploadGrant(token=token, expires_at=expires_at, signature=compute_signature(private_key, token, expires_at))
    logger.info("Upload grant issued, expires at %s", expires_at)
    return grant


def verify_upload_grant(private_key: str, grant: UploadGrant, now: float | None = None) -> bool:
    """What the CDN checks on upload: signature matches and the grant has not expired."""
    expected = compute_signature(private_key, grant.token, grant.expires_at)
    if not hmac.compare_digest(expected, grant.signature):
        return False
    current = time.time() if now is None else now
    return current < grant.expires_at
