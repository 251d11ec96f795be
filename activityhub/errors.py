# Service-level errors. Routers translate them into HTTP responses.

from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    """Base error carrying a user-safe message and the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(ServiceError):
    """Malformed or out-of-range input, raised before any store access."""

    status_code = 400

    def __init__(self, message: str, details: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.details = details or []

    @classmethod
    def from_errors(cls, message: str, errors: List[Dict[str, Any]]) -> "ValidationError":
        """Build from pydantic-style error dicts (``loc`` tuple + ``msg``)."""
        details = []
        for err in errors:
            # drop the request-location prefix FastAPI adds
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            details.append({"path": ".".join(loc), "message": err.get("msg", "")})
        return cls(message, details)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}


class AuthError(ServiceError):
    """Missing or invalid identity, or a rejected sign-in."""

    status_code = 401

    def __init__(self, message: str, code: Optional[str] = None, provider: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.provider = provider

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.code:
            body["code"] = self.code
        if self.provider:
            body["provider"] = self.provider
        return body


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    """Invariant violation: duplicate participation, capacity exceeded, duplicate name."""

    status_code = 409


class StorageError(ServiceError):
    """Transaction or connectivity failure. Details go to the log, not the message."""

    status_code = 500
