"""
Error taxonomy shared by services and routers.

Every error carries a machine-readable ``code`` and the HTTP status it maps
to; the handlers in ``app.main`` render them as ``{"error": code, "details": ...}``.
"""

from typing import Any, Optional


class ServiceError(Exception):
    status_code = 500
    code = "server_error"

    def __init__(self, message: str = "", *, code: Optional[str] = None, details: Any = None):
        super().__init__(message or self.code)
        if code is not None:
            self.code = code
        self.details = details

    def to_dict(self) -> dict:
        body: dict = {"error": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(ServiceError):
    """Bad input shape or range. ``details`` lists the offending fields."""

    status_code = 400
    code = "invalid_body"


class MissingParameterError(ServiceError):
    status_code = 400
    code = "lat_lon_required"


class UpstreamError(ServiceError):
    """External API answered non-2xx, could not be reached, or sent garbage."""

    status_code = 502
    code = "upstream_error"

    def __init__(self, message: str = "", *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status

    def to_dict(self) -> dict:
        # upstream detail stays in the logs
        return {"error": self.code}


class PersistenceError(ServiceError):
    status_code = 500
    code = "server_error"

    def to_dict(self) -> dict:
        return {"error": self.code}
