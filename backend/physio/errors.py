"""
Domain errors raised by the scheduling and booking services.

Each error carries a stable ``kind`` and the HTTP status the API layer
answers with. Routers never catch these; the handler registered in
``physio.main`` renders them as ``{"detail": ..., "kind": ...}``.
"""


class DomainError(Exception):
    kind = "domain_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind}


class NotFoundError(DomainError):
    kind = "not_found"
    status_code = 404


class ForbiddenError(DomainError):
    kind = "forbidden"
    status_code = 403


class ConflictError(DomainError):
    kind = "conflict"
    status_code = 409


class InvalidTransitionError(DomainError):
    kind = "invalid_transition"
    status_code = 400

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot change booking status from {current} to {target}")
        self.current = current
        self.target = target


class ValidationFailedError(DomainError):
    kind = "validation_failed"
    status_code = 400


class UnprocessableError(DomainError):
    kind = "unprocessable"
    status_code = 422
