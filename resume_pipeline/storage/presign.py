"""Time-limited write credentials for direct-to-store uploads.

The client PUTs the file bytes to the signed URL itself; the orchestrator
only ever sees the resulting object key.
"""

from __future__ import annotations

import hashlib
import hmac
import re
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import parse_qs, quote, unquote, urlencode, urlsplit

# Characters kept in uploaded file names; everything else becomes "_"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

UPLOAD_PREFIX = "uploads"


class PresignedUrlError(Exception):
    """A PUT to a presigned URL was refused."""


@dataclass(frozen=True)
class PresignedUpload:
    """A signed PUT URL and the object key it writes to."""

    url: str
    bucket: str
    key: str
    content_type: str
    expires_at: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "url": self.url,
            "key": self.key,
            "expiresAt": self.expires_at.isoformat(),
        }


def sanitize_filename(filename: str) -> str:
    """Reduce a client file name to a safe object-key segment."""
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    return name or "upload"


def user_upload_prefix(user_id: str) -> str:
    return f"{UPLOAD_PREFIX}/{user_id}/"


def build_upload_key(user_id: str, filename: str, now_ms: int | None = None) -> str:
    """Build the object key for a user's upload.

    Keys look like ``uploads/<user_id>/<epoch-ms>-<filename>`` so uploads of
    the same file name never collide.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{user_upload_prefix(user_id)}{now_ms}-{sanitize_filename(filename)}"


def _signature(
    secret: str, bucket: str, key: str, content_type: str, expires: int
) -> str:
    message = "\n".join(["PUT", bucket, key, content_type, str(expires)])
    return hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def presign_put(
    *,
    secret: str,
    base_url: str,
    bucket: str,
    key: str,
    content_type: str,
    expires_in: int,
    now: float | None = None,
) -> PresignedUpload:
    """Create a signed PUT URL for one object.

    Args:
        secret: HMAC signing secret shared with the upload endpoint.
        base_url: Public base URL of the object endpoint.
        bucket: Target bucket.
        key: Target object key.
        content_type: Content type the client must send.
        expires_in: Lifetime of the URL in seconds.
        now: Current UNIX time (defaults to ``time.time()``).

    Returns:
        The presigned upload.
    """
    if expires_in <= 0:
        raise ValueError("expires_in must be > 0")
    issued = time.time() if now is None else now
    expires = int(issued) + expires_in
    query = urlencode(
        {
            "contentType": content_type,
            "expires": expires,
            "signature": _signature(secret, bucket, key, content_type, expires),
        }
    )
    url = f"{base_url.rstrip('/')}/{quote(bucket)}/{quote(key)}?{query}"
    return PresignedUpload(
        url=url,
        bucket=bucket,
        key=key,
        content_type=content_type,
        expires_at=datetime.fromtimestamp(expires, tz=UTC),
    )


def verify_presigned_put(
    *,
    secret: str,
    bucket: str,
    key: str,
    content_type: str,
    expires: int,
    signature: str,
    now: float | None = None,
) -> bool:
    """Check a presigned PUT request before accepting its bytes.

    Returns:
        True if the signature matches and the URL has not expired.
    """
    current = time.time() if now is None else now
    if current > expires:
        return False
    expected = _signature(secret, bucket, key, content_type, expires)
    return hmac.compare_digest(expected, signature)


def parse_presigned_url(url: str, base_url: str) -> tuple[str, str, str, int, str]:
    """Split a presigned URL into its signed fields.

    Returns:
        ``(bucket, key, content_type, expires, signature)``.

    Raises:
        PresignedUrlError: If the URL was not issued for ``base_url`` or is
            missing a signed field.
    """
    base = base_url.rstrip("/") + "/"
    parts = urlsplit(url)
    location = f"{parts.scheme}://{parts.netloc}{parts.path}"
    if not location.startswith(base):
        raise PresignedUrlError("URL was not issued by this store")

    raw_bucket, _, raw_key = location[len(base):].partition("/")
    query = parse_qs(parts.query)
    try:
        content_type = query["contentType"][0]
        expires = int(query["expires"][0])
        signature = query["signature"][0]
    except (KeyError, ValueError) as e:
        raise PresignedUrlError(f"Malformed presigned URL: {e}") from e
    return unquote(raw_bucket), unquote(raw_key), content_type, expires, signature
