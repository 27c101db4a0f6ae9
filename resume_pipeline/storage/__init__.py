"""Object storage for uploaded resume files.

Public API:
- ObjectStore: Protocol for blob storage
- LocalObjectStore: Filesystem-backed object store
- ObjectNotFoundError: Raised for missing objects
- PresignedUpload: Signed direct-upload credential
- PresignedUrlError: Raised when a PUT to a presigned URL is refused
"""

from resume_pipeline.storage.object_store import (
    LocalObjectStore,
    ObjectNotFoundError,
    ObjectStore,
)
from resume_pipeline.storage.presign import (
    PresignedUpload,
    PresignedUrlError,
    build_upload_key,
    verify_presigned_put,
)

__all__ = [
    "LocalObjectStore",
    "ObjectNotFoundError",
    "ObjectStore",
    "PresignedUpload",
    "PresignedUrlError",
    "build_upload_key",
    "verify_presigned_put",
]
