"""Unit tests for TranscriptionJob status tracking and provider status mapping."""

import pytest

from voxplan.core.models import AudioBlob, JobStatus, JobStatusSnapshot, TranscriptionJob

# ---------------------------------------------------------------------------
# JobStatus.from_provider
# ---------------------------------------------------------------------------


class TestJobStatusMapping:
    @pytest.mark.parametrize(
        ("provider_status", "expected"),
        [
            ("queued", JobStatus.queued),
            ("processing", JobStatus.processing),
            ("completed", JobStatus.completed),
            ("error", JobStatus.failed),
        ],
    )
    def test_known_statuses(self, provider_status, expected):
        assert JobStatus.from_provider(provider_status) == expected

    @pytest.mark.parametrize("provider_status", ["transcribing", "", None])
    def test_unknown_status_is_treated_as_processing(self, provider_status):
        assert JobStatus.from_provider(provider_status) == JobStatus.processing

    def test_terminal_statuses(self):
        assert JobStatus.completed.is_terminal
        assert JobStatus.failed.is_terminal
        assert not JobStatus.queued.is_terminal
        assert not JobStatus.processing.is_terminal


# ---------------------------------------------------------------------------
# TranscriptionJob.advance
# ---------------------------------------------------------------------------


class TestAdvance:
    def test_new_job_is_queued(self):
        job = TranscriptionJob(id="job-1")

        assert job.status == JobStatus.queued
        assert job.history == [JobStatus.queued]

    def test_forward_transitions_are_recorded(self):
        job = TranscriptionJob(id="job-1")

        assert job.advance(JobStatus.processing)
        assert job.advance(JobStatus.completed, result_text="hello")

        assert job.status == JobStatus.completed
        assert job.result_text == "hello"
        assert job.history == [JobStatus.queued, JobStatus.processing, JobStatus.completed]

    def test_queued_can_jump_to_completed(self):
        job = TranscriptionJob(id="job-1")

        assert job.advance(JobStatus.completed, result_text="hi")
        assert job.history == [JobStatus.queued, JobStatus.completed]

    def test_regression_is_ignored(self):
        job = TranscriptionJob(id="job-1")
        job.advance(JobStatus.processing)

        assert not job.advance(JobStatus.queued)
        assert job.status == JobStatus.processing
        assert job.history == [JobStatus.queued, JobStatus.processing]

    def test_repeated_status_is_not_a_change(self):
        job = TranscriptionJob(id="job-1")
        job.advance(JobStatus.processing)

        assert not job.advance(JobStatus.processing)
        assert job.history == [JobStatus.queued, JobStatus.processing]

    def test_terminal_status_is_final(self):
        job = TranscriptionJob(id="job-1")
        job.advance(JobStatus.failed, error="bad audio")

        assert not job.advance(JobStatus.completed, result_text="late")
        assert job.status == JobStatus.failed
        assert job.error == "bad audio"
        assert job.result_text is None


# ---------------------------------------------------------------------------
# Snapshots & blobs
# ---------------------------------------------------------------------------


class TestSnapshot:
    def test_from_provider_payload(self):
        payload = {"id": "job-1", "status": "error", "error": "Audio too short", "text": None}

        snap = JobStatusSnapshot.from_provider(payload)

        assert snap.status == JobStatus.failed
        assert snap.error == "Audio too short"
        assert snap.raw == payload

    def test_blob_size(self):
        assert AudioBlob(data=b"12345").size == 5
