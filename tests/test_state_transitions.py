"""State transition tests for GenerationJob model.

Tests focus on validating the job lifecycle state machine:
- processing -> completed and processing -> failed are the only transitions
- Terminal states reject any further transition with a clear error message
- Completed jobs mirror the first asset into the single-asset fields
"""

import pytest

from vizgen.models.generation_job import (
    MAX_ERROR_MESSAGE_LENGTH,
    GenerationJob,
    InvalidStateTransition,
    JobStatus,
    Modality,
)


def make_job(**overrides) -> GenerationJob:
    fields = {"user_id": 1, "modality": Modality.IMAGE, "prompt": "a red fox in snow"}
    fields.update(overrides)
    return GenerationJob(**fields)


def test_new_job_starts_processing():
    job = make_job()
    assert job.status == JobStatus.PROCESSING
    assert job.url is None
    assert job.error_message is None


def test_mark_completed_single_asset():
    job = make_job()

    job.mark_completed(["https://cdn.example.com/a.png"], ["https://cdn.example.com/a.png"])

    assert job.status == JobStatus.COMPLETED
    assert job.url == "https://cdn.example.com/a.png"
    assert job.thumbnail == "https://cdn.example.com/a.png"
    # Single asset keeps the list fields empty
    assert job.urls is None
    assert job.thumbnails is None


def test_mark_completed_multi_asset():
    job = make_job(modality=Modality.VIDEO)
    urls = ["https://cdn.example.com/1.mp4", "https://cdn.example.com/2.mp4"]
    thumbs = ["https://cdn.example.com/1.jpg", "https://cdn.example.com/2.jpg"]

    job.mark_completed(urls, thumbs)

    assert job.status == JobStatus.COMPLETED
    assert job.url == urls[0]
    assert job.thumbnail == thumbs[0]
    assert job.urls == urls
    assert job.thumbnails == thumbs


def test_mark_completed_requires_url():
    job = make_job()

    with pytest.raises(ValueError):
        job.mark_completed([], [])

    assert job.status == JobStatus.PROCESSING


def test_mark_completed_rejects_mismatched_thumbnails():
    job = make_job()

    with pytest.raises(ValueError, match="thumbnail count"):
        job.mark_completed(["https://a", "https://b"], ["https://t"])


def test_mark_failed_records_message():
    job = make_job()

    job.mark_failed("Provider rejected the prompt")

    assert job.status == JobStatus.FAILED
    assert job.error_message == "Provider rejected the prompt"
    assert job.url is None


@pytest.mark.parametrize("terminal", ["completed", "failed"])
def test_terminal_states_reject_transitions(terminal):
    """Once terminal, neither transition is allowed again."""
    job = make_job()
    if terminal == "completed":
        job.mark_completed(["https://cdn.example.com/a.png"], [])
    else:
        job.mark_failed("boom")

    with pytest.raises(InvalidStateTransition) as exc_info:
        job.mark_failed("late failure")
    assert f"terminal state {terminal}" in str(exc_info.value)

    with pytest.raises(InvalidStateTransition):
        job.mark_completed(["https://cdn.example.com/b.png"], [])

    assert job.status == JobStatus(terminal)


def test_is_terminal():
    assert not JobStatus.PROCESSING.is_terminal
    assert JobStatus.COMPLETED.is_terminal
    assert JobStatus.FAILED.is_terminal


def test_mark_failed_bounds_long_messages():
    """Provider error pages can be huge; the stored message fits its column."""
    job = make_job()
    column_length = GenerationJob.__table__.c.error_message.type.length

    job.mark_failed("<html>" + "x" * 5000 + "</html>")

    assert job.status == JobStatus.FAILED
    assert len(job.error_message) == MAX_ERROR_MESSAGE_LENGTH == column_length
    assert job.error_message.startswith("<html>xxx")
    assert job.error_message.endswith("...")
