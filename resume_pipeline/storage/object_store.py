"""Blob storage for raw uploaded files."""

from pathlib import Path, PurePosixPath
from typing import Protocol

import aiofiles
import aiofiles.os

from resume_pipeline.storage.presign import (
    PresignedUpload,
    PresignedUrlError,
    parse_presigned_url,
    presign_put,
    verify_presigned_put,
)


class ObjectNotFoundError(Exception):
    """Raised when a requested object does not exist."""

    def __init__(self, bucket: str, key: str):
        super().__init__(f"Object not found: {bucket}/{key}")
        self.bucket = bucket
        self.key = key


class ObjectStore(Protocol):
    """Byte storage addressed by ``(bucket, key)``."""

    async def put(self, bucket: str, key: str, data: bytes) -> None: ...

    async def get(self, bucket: str, key: str) -> bytes: ...

    def presign_put(
        self, bucket: str, key: str, content_type: str, expires_in: int
    ) -> PresignedUpload: ...

    async def put_presigned(
        self, url: str, content_type: str, data: bytes
    ) -> tuple[str, str]: ...


class LocalObjectStore:
    """Object store on the local filesystem.

    Each bucket is a directory under ``root``; object keys map to relative
    paths inside it.
    """

    def __init__(self, root: Path | str, *, secret: str, base_url: str):
        """Initialize the store.

        Args:
            root: Directory holding one sub-directory per bucket.
            secret: HMAC secret for presigned URLs.
            base_url: Public base URL presigned URLs point at.
        """
        self.root = Path(root)
        self.secret = secret
        self.base_url = base_url

    def _path_for(self, bucket: str, key: str) -> Path:
        for part in (bucket, key):
            pure = PurePosixPath(part)
            if not part or pure.is_absolute() or ".." in pure.parts:
                raise ValueError(f"Invalid object location: {bucket}/{key}")
        return self.root / bucket / PurePosixPath(key)

    async def put(self, bucket: str, key: str, data: bytes) -> None:
        """Store bytes under ``bucket/key``, replacing any existing object."""
        path = self._path_for(bucket, key)
        await aiofiles.os.makedirs(path.parent, exist_ok=True)
        async with aiofiles.open(path, "wb") as out_file:
            await out_file.write(data)

    async def get(self, bucket: str, key: str) -> bytes:
        """Read the bytes stored under ``bucket/key``.

        Raises:
            ObjectNotFoundError: If no such object exists.
        """
        path = self._path_for(bucket, key)
        try:
            async with aiofiles.open(path, "rb") as in_file:
                return await in_file.read()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(bucket, key) from e

    def presign_put(
        self, bucket: str, key: str, content_type: str, expires_in: int
    ) -> PresignedUpload:
        """Issue a signed URL that lets a client upload ``bucket/key`` directly."""
        self._path_for(bucket, key)
        return presign_put(
            secret=self.secret,
            base_url=self.base_url,
            bucket=bucket,
            key=key,
            content_type=content_type,
            expires_in=expires_in,
        )

    async def put_presigned(
        self, url: str, content_type: str, data: bytes, *, now: float | None = None
    ) -> tuple[str, str]:
        """Accept a client PUT to a URL issued by ``presign_put``.

        Args:
            url: The presigned URL the client wrote to.
            content_type: Content type the client sent.
            data: Request body.
            now: Current UNIX time (defaults to ``time.time()``).

        Returns:
            The ``(bucket, key)`` the bytes were stored under.

        Raises:
            PresignedUrlError: If the URL is foreign, tampered with or
                expired, or the content type differs from the signed one.
        """
        bucket, key, signed_type, expires, signature = parse_presigned_url(
            url, self.base_url
        )
        if content_type != signed_type:
            raise PresignedUrlError(
                f"Content type {content_type!r} does not match signed {signed_type!r}"
            )
        if not verify_presigned_put(
            secret=self.secret,
            bucket=bucket,
            key=key,
            content_type=content_type,
            expires=expires,
            signature=signature,
            now=now,
        ):
            raise PresignedUrlError("Invalid or expired presigned URL")
        await self.put(bucket, key, data)
        return bucket, key
