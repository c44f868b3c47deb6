"""
Domain errors raised by the volunteer and skill services.

The HTTP layer maps each class to a status code in app.main.
"""

from typing import Any, Optional


class VolunteerServiceError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(VolunteerServiceError):
    """No record matches the given identifier or email."""

    status_code = 404
    error = "not_found"

    @classmethod
    def volunteer(cls, volunteer_id: int) -> "NotFoundError":
        return cls(f"Volunteer not found with id: {volunteer_id}", {"id": volunteer_id})

    @classmethod
    def volunteer_by_email(cls, email: str) -> "NotFoundError":
        return cls(f"Volunteer not found with email: {email}", {"email": email})

    @classmethod
    def skill(cls, skill_id: Any) -> "NotFoundError":
        return cls(f"Skill not found with id: {skill_id}", {"id": skill_id})


class DuplicateKeyError(VolunteerServiceError):
    """A unique key (volunteer email, skill name) is already taken."""

    status_code = 409
    error = "conflict"


class InvalidArgumentError(VolunteerServiceError):
    """Out-of-range coordinates, malformed paging or an inconsistent update."""

    status_code = 400
    error = "bad_request"
