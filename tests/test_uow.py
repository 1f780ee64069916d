"""Unit of Work pattern tests.

Tests focus on transaction management:
- Successful commits persist changes
- Exceptions trigger rollback
- Multiple repository operations are atomic
"""

import pytest

from vizgen.models.generation_job import GenerationJob, Modality
from vizgen.models.template import Template


@pytest.mark.asyncio
async def test_uow_commits_on_successful_exit(uow_factory):
    """Changes made within the context persist after the context exits."""
    async with await uow_factory() as uow:
        job = await uow.jobs.add(
            GenerationJob(user_id=1, modality=Modality.IMAGE, prompt="paper boats")
        )
        job_id = job.id

    async with await uow_factory() as uow:
        found = await uow.jobs.get_by_id(job_id)
        assert found is not None
        assert found.prompt == "paper boats"


@pytest.mark.asyncio
async def test_uow_rollback_on_exception(uow_factory):
    """Exceptions roll back the transaction and propagate unchanged."""
    job_id = None

    with pytest.raises(RuntimeError, match="boom"):
        async with await uow_factory() as uow:
            job = await uow.jobs.add(
                GenerationJob(user_id=1, modality=Modality.IMAGE, prompt="paper boats")
            )
            job_id = job.id
            raise RuntimeError("boom")

    async with await uow_factory() as uow:
        assert await uow.jobs.get_by_id(job_id) is None


@pytest.mark.asyncio
async def test_uow_multiple_repositories_atomic(uow_factory):
    """Writes through different repositories commit or roll back together."""
    with pytest.raises(ValueError):
        async with await uow_factory() as uow:
            template = await uow.templates.add(Template(title="Koi", prompt="koi pond"))
            template_id = template.id
            await uow.jobs.add(
                GenerationJob(
                    user_id=1,
                    modality=Modality.IMAGE,
                    prompt="koi pond",
                    template_id=template_id,
                )
            )
            raise ValueError("abort")

    async with await uow_factory() as uow:
        assert await uow.templates.get_by_id(template_id) is None
        jobs, total = await uow.jobs.list_for_user(1)
        assert total == 0
