"""Survey response repository for database operations"""
from uuid import UUID
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from app.db.models import SurveyResponse
from app.surveys.vocabulary import LEGACY_WAITING_TIME_MIGRATION


class SurveyResponseRepository:
    """Repository for survey response database operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, survey: SurveyResponse) -> SurveyResponse:
        """Insert a new survey response"""
        self.db.add(survey)
        await self.db.commit()
        await self.db.refresh(survey)
        return survey

    async def get_by_id(self, survey_id: UUID) -> Optional[SurveyResponse]:
        """Get survey response by ID"""
        stmt = select(SurveyResponse).where(SurveyResponse.id == survey_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self, ascending: bool = False) -> List[SurveyResponse]:
        """All survey responses ordered by creation time"""
        order = SurveyResponse.created_at.asc() if ascending else SurveyResponse.created_at.desc()
        stmt = select(SurveyResponse).order_by(order, SurveyResponse.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_with_comments(self) -> List[SurveyResponse]:
        """Responses carrying a non-empty comment, newest first"""
        stmt = select(SurveyResponse).where(
            SurveyResponse.additional_comments.is_not(None),
            func.trim(SurveyResponse.additional_comments) != "",
        ).order_by(SurveyResponse.created_at.desc(), SurveyResponse.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def migrate_legacy_waiting_times(self) -> int:
        """Rewrite retired waiting time values onto the current vocabulary; the caller commits."""
        migrated = 0
        for legacy, current in LEGACY_WAITING_TIME_MIGRATION.items():
            stmt = update(SurveyResponse).where(
                SurveyResponse.waiting_time == legacy
            ).values(waiting_time=current)
            result = await self.db.execute(stmt)
            migrated += result.rowcount or 0
        return migrated
