"""
Exception types raised by the planner services.

Each error carries the HTTP status the API layer answers with, so
app.py can register a single handler for the whole family.
"""


class PlannerError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(PlannerError):
    status_code = 400

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid input")

    def to_dict(self) -> dict:
        return {"error": self.message, "errors": self.errors}


class AuthenticationError(PlannerError):
    status_code = 401


class PermissionDeniedError(PlannerError):
    status_code = 403


class NotFoundError(PlannerError):
    status_code = 404


class InvitationError(PlannerError):
    """Invitation exists but cannot be used (processed, expired, wrong email)."""
    status_code = 409


class StoreError(PlannerError):
    """The document store backend failed."""
    status_code = 502


class ReportError(PlannerError):
    status_code = 500
