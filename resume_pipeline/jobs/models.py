"""Queue message models."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class UploadJob:
    """A stored upload that still needs text extraction and optimisation.

    Created by the upload orchestrator, consumed by a worker loop, never
    mutated.
    """

    resume_id: str
    bucket: str
    object_key: str
    filename: str
    user_id: str

    def __post_init__(self) -> None:
        for name in ("resume_id", "bucket", "object_key", "filename", "user_id"):
            if not getattr(self, name):
                raise ValueError(f"{name} is required")

    def to_dict(self) -> dict[str, str]:
        """Serialize using the wire field names shared with other producers."""
        return {
            "resumeId": self.resume_id,
            "bucket": self.bucket,
            "key": self.object_key,
            "filename": self.filename,
            "userId": self.user_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UploadJob:
        return cls(
            resume_id=str(data["resumeId"]),
            bucket=str(data["bucket"]),
            object_key=str(data["key"]),
            filename=str(data["filename"]),
            user_id=str(data["userId"]),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, payload: str | bytes) -> UploadJob:
        """Parse a queue payload.

        Raises:
            ValueError: If the payload is not a valid job.
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid job payload: {e}") from e
        if not isinstance(data, dict):
            raise ValueError("Job payload must be a JSON object")
        try:
            return cls.from_dict(data)
        except KeyError as e:
            raise ValueError(f"Job payload missing field: {e}") from e
