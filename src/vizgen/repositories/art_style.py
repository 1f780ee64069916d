"""ArtStyle repository for vizgen."""

from sqlalchemy.ext.asyncio import AsyncSession

from vizgen.models.art_style import ArtStyle


class ArtStyleRepository:
    """Repository for ArtStyle lookups."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, style: ArtStyle) -> ArtStyle:
        self.session.add(style)
        await self.session.flush()
        return style

    async def get_by_id(self, style_id: int) -> ArtStyle | None:
        return await self.session.get(ArtStyle, style_id)
