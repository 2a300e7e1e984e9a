"""Custom exception hierarchy."""

from typing import Optional
from uuid import UUID


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class PipelineError(AppError):
    """Base exception for plan analysis errors."""
    pass


class TextExtractionError(PipelineError):
    """Text layer extraction failed for a page or document."""

    def __init__(
        self,
        message: str,
        page_number: Optional[int] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.page_number = page_number


class LinkPersistenceError(PipelineError):
    """Replacing the automatic link set failed."""
    pass


class AnalysisInProgressError(PipelineError):
    """Another analysis run already holds the lock for this plan."""

    def __init__(self, plan_id: UUID):
        super().__init__(f"Analysis already in progress for plan {plan_id}")
        self.plan_id = plan_id


class PlanNotFoundError(AppError):
    """Raised when a plan is not found."""
    pass
