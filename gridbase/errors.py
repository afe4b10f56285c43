"""
Application errors

Every error raised by the service layer maps to one HTTP status and a JSON
body of the form ``{"error": <message>, "details": <optional>}``.
"""
from __future__ import annotations

from typing import Any, Optional


class AppError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class Unauthenticated(AppError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(AppError):
    """Caller is not a member of the target, or the target does not exist."""

    status_code = 403
    message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    message = "Not found"


class ValidationError(AppError):
    status_code = 400
    message = "Invalid input"

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        details = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())),
                "message": err.get("msg", ""),
            }
            for err in exc.errors(include_url=False, include_context=False, include_input=False)
        ]
        return cls(details=details)


class ParseError(AppError):
    status_code = 400
    message = "CSV parsing error"


class PlanLimitExceeded(AppError):
    status_code = 402
    message = "Plan limit reached"

    def __init__(self, resource: str, limit: int, current: int):
        super().__init__(
            f"Plan limit reached for {resource} ({current}/{limit})",
            details={"resource": resource, "limit": limit, "current": current},
        )


class ConfigError(AppError):
    status_code = 500
    message = "Server misconfiguration"


class InvalidSignature(AppError):
    status_code = 400
    message = "Invalid signature"
