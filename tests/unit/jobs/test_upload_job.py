"""Tests for the UploadJob queue message."""

import json

import pytest

from resume_pipeline.jobs.models import UploadJob


@pytest.fixture
def job() -> UploadJob:
    return UploadJob(
        resume_id="r1",
        bucket="resume-uploads",
        object_key="uploads/u1/file.txt",
        filename="file.txt",
        user_id="u1",
    )


class TestUploadJob:
    """Test validation and the wire format."""

    def test_uses_wire_field_names(self, job):
        assert job.to_dict() == {
            "resumeId": "r1",
            "bucket": "resume-uploads",
            "key": "uploads/u1/file.txt",
            "filename": "file.txt",
            "userId": "u1",
        }

    def test_parses_payload_from_other_producers(self):
        payload = json.dumps(
            {
                "resumeId": "r9",
                "bucket": "b",
                "key": "uploads/u2/cv.pdf",
                "filename": "cv.pdf",
                "userId": "u2",
            }
        )

        job = UploadJob.from_json(payload)
        assert job.resume_id == "r9"
        assert job.object_key == "uploads/u2/cv.pdf"

    def test_from_json_inverts_to_json(self, job):
        assert UploadJob.from_json(job.to_json()) == job

    def test_is_immutable(self, job):
        with pytest.raises(AttributeError):
            job.resume_id = "other"

    @pytest.mark.parametrize(
        "field", ["resume_id", "bucket", "object_key", "filename", "user_id"]
    )
    def test_rejects_empty_fields(self, field):
        values = {
            "resume_id": "r1",
            "bucket": "b",
            "object_key": "k",
            "filename": "f",
            "user_id": "u1",
        }
        values[field] = ""
        with pytest.raises(ValueError):
            UploadJob(**values)

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            "[1, 2]",
            json.dumps({"resumeId": "r1", "bucket": "b"}),
        ],
    )
    def test_from_json_rejects_malformed_payloads(self, payload):
        with pytest.raises(ValueError):
            UploadJob.from_json(payload)
