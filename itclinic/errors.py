# itclinic/errors.py

from typing import List, Optional, Sequence, Tuple

FieldError = Tuple[str, str]


class AppError(Exception):
    status_code = 500
    kind = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.detail, "errors": []}


class ValidationError(AppError):
    """One or more field-level problems; nothing was persisted."""

    status_code = 400
    kind = "validation_error"

    def __init__(self, errors: Sequence[FieldError], detail: Optional[str] = None):
        self.errors: List[FieldError] = list(errors)
        if detail is None:
            detail = self.errors[0][1] if self.errors else "Invalid input"
        super().__init__(detail)

    @property
    def fields(self) -> List[str]:
        return [field for field, _ in self.errors]

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["errors"] = [{"field": f, "message": m} for f, m in self.errors]
        return data


class ConflictError(AppError):
    status_code = 409
    kind = "conflict"


class NotFoundError(AppError):
    status_code = 404
    kind = "not_found"


class ForbiddenError(AppError):
    status_code = 403
    kind = "forbidden"


class InvalidStateError(AppError):
    status_code = 409
    kind = "invalid_state"


class BackendError(AppError):
    """Opaque failure reported by the data backend."""

    status_code = 503
    kind = "backend_error"


class UniqueViolation(BackendError):
    """The backend rejected a write because of a duplicate key."""

    status_code = 409
    kind = "conflict"
