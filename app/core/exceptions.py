"""
Application error taxonomy.

Services raise these; the handler registered in ``main.py`` turns them into
``{"detail": ...}`` JSON responses with the matching status code.
"""

from fastapi import status


class CampusAssistantError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Request failed"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class AuthenticationFailure(CampusAssistantError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Could not validate credentials"


class ValidationFailure(CampusAssistantError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid request"


class NotFound(CampusAssistantError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class UpstreamFailure(CampusAssistantError):
    """The AI provider call failed, timed out or returned nothing usable."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "AI request failed"


class PersistenceFailure(CampusAssistantError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Failed to save data"
