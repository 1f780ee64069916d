"""Template repository for vizgen."""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from vizgen.core.timezone import utc_now
from vizgen.models.template import Template


class TemplateRepository:
    """Repository for Template lookups and usage accounting."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, template: Template) -> Template:
        self.session.add(template)
        await self.session.flush()
        return template

    async def get_by_id(self, template_id: int) -> Template | None:
        return await self.session.get(Template, template_id)

    async def increment_usage(self, template_id: int) -> None:
        """Atomically bump usage_count (single UPDATE, no read-modify-write)."""
        await self.session.execute(
            update(Template)
            .where(Template.id == template_id)  # type: ignore[arg-type]
            .values(usage_count=Template.usage_count + 1, updated_at=utc_now())
        )
        await self.session.flush()
