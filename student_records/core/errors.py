"""Typed failures raised by the service layer.

Each subclass declares the ``kind`` reported to clients and the HTTP status the
exception handler in ``main`` maps it to. Services never build HTTP responses
themselves.
"""


class AppError(Exception):
    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class NotFound(AppError):
    kind = "NotFound"
    status_code = 404


class Conflict(AppError):
    kind = "Conflict"
    status_code = 409


class ValidationFailed(AppError):
    kind = "ValidationFailed"
    status_code = 400

    def __init__(self, message: str, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.errors:
            payload["errors"] = self.errors
        return payload


class Unauthorized(AppError):
    kind = "Unauthorized"
    status_code = 401


class Forbidden(AppError):
    kind = "Forbidden"
    status_code = 403


class PayloadTooLarge(AppError):
    kind = "PayloadTooLarge"
    status_code = 413
