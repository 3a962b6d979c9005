"""Survey custom exceptions"""
from uuid import UUID
from fastapi import HTTPException, status


class DataFetchError(Exception):
    """Raised by a response store when the backend cannot be read or written"""
    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class SurveyNotFoundException(HTTPException):
    """Raised when a survey response is not found"""
    def __init__(self, survey_id: UUID):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Survey response with id {survey_id} not found"
        )


class SurveyDataUnavailableException(HTTPException):
    """Raised when survey responses cannot be loaded from storage"""
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Survey responses are temporarily unavailable"
        )


class SurveySubmissionFailedException(HTTPException):
    """Raised when a valid survey could not be stored"""
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The survey could not be saved, please try again"
        )


class InvalidDateRangeException(HTTPException):
    """Raised when a date filter ends before it starts"""
    def __init__(self, date_from, date_to):
        super().__init__(
            status_code=422,
            detail=f"date_from ({date_from}) must not be after date_to ({date_to})"
        )
