"""Data access for survey responses, injected wherever responses are read or written"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional
from uuid import UUID, uuid4

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.analytics.aggregation import has_comment
from app.db.models import SurveyResponse
from app.db.postgres import get_db
from app.messaging.notifier import ChangeNotifier, InsertCallback
from app.surveys.exceptions import DataFetchError
from app.surveys.repository import SurveyResponseRepository
from app.surveys.schemas import CreateSurveyRequest
from app.utils.timezone import as_utc, utc_now

logger = logging.getLogger(__name__)


def build_survey(request: CreateSurveyRequest) -> SurveyResponse:
    """ORM row for a validated submission"""
    return SurveyResponse(**request.model_dump(mode="json"))


class ResponseStore(ABC):
    """Source of truth for survey responses"""

    @abstractmethod
    async def fetch_all(self, ascending: bool = False) -> List[SurveyResponse]:
        """Every response, ordered by creation time."""

    @abstractmethod
    async def fetch_with_comments(self) -> List[SurveyResponse]:
        """Responses with a non-blank comment, newest first."""

    @abstractmethod
    async def get(self, survey_id: UUID) -> Optional[SurveyResponse]:
        """One response, or None."""

    @abstractmethod
    async def insert(self, request: CreateSurveyRequest) -> SurveyResponse:
        """Persist one validated submission and notify subscribers."""

    @abstractmethod
    def subscribe(self, callback: InsertCallback) -> Callable[[], None]:
        """Call back after each insert; returns an unsubscribe function."""


class SqlResponseStore(ResponseStore):
    """Response store backed by PostgreSQL"""

    def __init__(self, db: AsyncSession, notifier: ChangeNotifier):
        self.repository = SurveyResponseRepository(db)
        self.notifier = notifier

    async def fetch_all(self, ascending: bool = False) -> List[SurveyResponse]:
        try:
            return await self.repository.list_all(ascending=ascending)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch survey responses: {e}")
            raise DataFetchError("Failed to fetch survey responses", e) from e

    async def fetch_with_comments(self) -> List[SurveyResponse]:
        try:
            return await self.repository.list_with_comments()
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch commented survey responses: {e}")
            raise DataFetchError("Failed to fetch commented survey responses", e) from e

    async def get(self, survey_id: UUID) -> Optional[SurveyResponse]:
        try:
            return await self.repository.get_by_id(survey_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch survey response {survey_id}: {e}")
            raise DataFetchError(f"Failed to fetch survey response {survey_id}", e) from e

    async def insert(self, request: CreateSurveyRequest) -> SurveyResponse:
        try:
            survey = await self.repository.create(build_survey(request))
        except SQLAlchemyError as e:
            logger.error(f"Failed to insert survey response: {e}")
            raise DataFetchError("Failed to insert survey response", e) from e
        self.notifier.notify(survey)
        return survey

    def subscribe(self, callback: InsertCallback) -> Callable[[], None]:
        return self.notifier.subscribe(callback)


class InMemoryResponseStore(ResponseStore):
    """List-backed response store for tests and local runs"""

    def __init__(self, responses: Optional[List[SurveyResponse]] = None):
        self._responses: List[SurveyResponse] = list(responses or [])
        self.notifier = ChangeNotifier()
        self.fail_with: Optional[Exception] = None

    def _check_available(self):
        if self.fail_with is not None:
            raise DataFetchError("In-memory store unavailable", self.fail_with)

    def _ordered(self, responses: List[SurveyResponse], ascending: bool) -> List[SurveyResponse]:
        return sorted(responses, key=lambda survey: as_utc(survey.created_at), reverse=not ascending)

    async def fetch_all(self, ascending: bool = False) -> List[SurveyResponse]:
        self._check_available()
        return self._ordered(self._responses, ascending)

    async def fetch_with_comments(self) -> List[SurveyResponse]:
        self._check_available()
        return self._ordered([survey for survey in self._responses if has_comment(survey)], ascending=False)

    async def get(self, survey_id: UUID) -> Optional[SurveyResponse]:
        self._check_available()
        return next((survey for survey in self._responses if survey.id == survey_id), None)

    async def insert(self, request: CreateSurveyRequest) -> SurveyResponse:
        self._check_available()
        survey = build_survey(request)
        survey.id = uuid4()
        survey.created_at = utc_now()
        self._responses.append(survey)
        self.notifier.notify(survey)
        return survey

    def subscribe(self, callback: InsertCallback) -> Callable[[], None]:
        return self.notifier.subscribe(callback)


def get_response_store(request: Request, db: AsyncSession = Depends(get_db)) -> ResponseStore:
    """Dependency to get the response store for a request"""
    return SqlResponseStore(db, request.app.state.notifier)
