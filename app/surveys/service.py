"""Survey service layer for business logic"""
import logging
from uuid import UUID
from typing import List, Optional, Tuple
from datetime import datetime

from app.analytics.filters import SurveyFilter, apply_filters
from app.db.models import SurveyResponse
from app.surveys.exceptions import (
    DataFetchError,
    SurveyDataUnavailableException,
    SurveyNotFoundException,
    SurveySubmissionFailedException,
)
from app.surveys.schemas import CreateSurveyRequest
from app.surveys.store import ResponseStore

logger = logging.getLogger(__name__)


class SurveyService:
    """Service layer for survey submission and the staff response table"""

    def __init__(self, store: ResponseStore):
        self.store = store

    async def submit(self, request: CreateSurveyRequest) -> SurveyResponse:
        """
        Store one patient submission.

        The request has already been validated: ratings are in range and
        the "other" elaborations are present exactly when required.
        """
        try:
            survey = await self.store.insert(request)
        except DataFetchError:
            raise SurveySubmissionFailedException()

        logger.info(f"Survey {survey.id} submitted (nps={survey.nps_score})")
        return survey

    async def get_survey(self, survey_id: UUID) -> SurveyResponse:
        """Get one survey response by ID."""
        try:
            survey = await self.store.get(survey_id)
        except DataFetchError:
            raise SurveyDataUnavailableException()
        if not survey:
            raise SurveyNotFoundException(survey_id)
        return survey

    async def list_surveys(
        self,
        survey_filter: SurveyFilter,
        now: Optional[datetime] = None,
    ) -> List[SurveyResponse]:
        """Filter and sort every stored response."""
        try:
            responses = await self.store.fetch_all()
        except DataFetchError:
            raise SurveyDataUnavailableException()
        return apply_filters(responses, survey_filter, now)

    async def list_comments(
        self,
        survey_filter: SurveyFilter,
        now: Optional[datetime] = None,
    ) -> Tuple[List[SurveyResponse], List[SurveyResponse]]:
        """
        Commented responses for the comment browser.

        Returns:
            Tuple of (filtered comments, all commented responses)
        """
        try:
            commented = await self.store.fetch_with_comments()
        except DataFetchError:
            raise SurveyDataUnavailableException()
        return apply_filters(commented, survey_filter, now), commented
