"""Tests for the stale job recovery CLI."""

from datetime import timedelta

import pytest

from vizgen.cli.recover_jobs import async_main, parse_args
from vizgen.core.timezone import utc_now
from vizgen.models.generation_job import GenerationJob, JobStatus, Modality


def test_parse_args_defaults():
    args = parse_args([])
    assert args.older_than_minutes is None
    assert args.verbose is False


@pytest.mark.asyncio
async def test_recovers_jobs_older_than_threshold(
    tmp_path, session_factory, uow_factory, monkeypatch, capsys
):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'vizgen_test.db'}")
    # Keep structlog writing to the real stdout for later tests
    monkeypatch.setattr("vizgen.cli.recover_jobs.configure_logging", lambda settings: None)
    now = utc_now()
    async with await uow_factory() as uow:
        stale = await uow.jobs.add(
            GenerationJob(
                user_id=1,
                modality=Modality.VIDEO,
                prompt="stuck",
                created_at=now - timedelta(minutes=45),
            )
        )
        fresh = await uow.jobs.add(
            GenerationJob(user_id=1, modality=Modality.VIDEO, prompt="running", created_at=now)
        )

    exit_code = await async_main(["--older-than-minutes", "30"])

    assert exit_code == 0
    assert "Jobs marked failed: 1" in capsys.readouterr().out
    async with await uow_factory() as uow:
        assert (await uow.jobs.get_by_id(stale.id)).status == JobStatus.FAILED
        assert (await uow.jobs.get_by_id(fresh.id)).status == JobStatus.PROCESSING
