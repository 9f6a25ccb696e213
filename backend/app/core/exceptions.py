"""
Workflow error taxonomy.

Each error is an HTTPException so services can raise them directly and the
API layer renders them without translation. Callers that are not HTTP
handlers catch them by class like any other exception.
"""

from typing import Optional

from fastapi import HTTPException, status


class WorkflowError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str, *, accommodation_id: Optional[int] = None):
        super().__init__(status_code=self.status_code, detail=detail)
        self.accommodation_id = accommodation_id


class InvalidStateTransition(WorkflowError):
    """Transition attempted from the wrong state."""

    status_code = status.HTTP_409_CONFLICT


class InvalidAssignment(WorkflowError):
    """Target hotel or room category is not eligible."""

    status_code = status.HTTP_400_BAD_REQUEST


class NoAvailability(WorkflowError):
    """No room left to reserve."""

    status_code = status.HTTP_409_CONFLICT


class NotFound(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND


class Unauthorized(WorkflowError):
    """Actor lacks the role or ownership required for the action."""

    status_code = status.HTTP_403_FORBIDDEN
