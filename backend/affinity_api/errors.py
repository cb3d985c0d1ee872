"""Error taxonomy shared by services and routes.

Every error renders as ``{"error": message}``; validation errors also carry a
list of ``{"field", "message"}`` entries under ``"errors"``.
"""

from typing import Any, Dict, List, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(AppError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, str]]] = None):
        self.errors = errors or []
        if message is None and len(self.errors) == 1:
            message = self.errors[0]["message"]
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(errors=[{"field": field, "message": message}])

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class ConflictError(AppError):
    status_code = 400
    default_message = "User already exists"


class AuthError(AppError):
    status_code = 401
    default_message = "Unauthorized"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(AppError):
    """The prediction service failed or could not be reached.

    With ``body`` set, the upstream status and JSON body are relayed as-is.
    """

    status_code = 500
    default_message = "Failed to connect to prediction model"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.body = body

    def to_dict(self) -> Any:
        if self.body is not None:
            return self.body
        return super().to_dict()


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
