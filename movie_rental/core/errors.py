from __future__ import annotations

from enum import Enum


class ErrorReason(str, Enum):
    VALIDATION = "validation"
    PAYMENT_FAILED = "payment_failed"
    STORAGE_FAILURE = "storage_failure"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


REASON_STATUS_CODES: dict[ErrorReason, int] = {
    ErrorReason.VALIDATION: 400,
    ErrorReason.PAYMENT_FAILED: 402,
    ErrorReason.NOT_FOUND: 404,
    ErrorReason.CONFLICT: 409,
    ErrorReason.STORAGE_FAILURE: 500,
}

REASON_TITLES: dict[ErrorReason, str] = {
    ErrorReason.VALIDATION: "Invalid input provided.",
    ErrorReason.PAYMENT_FAILED: "Payment was not completed.",
    ErrorReason.NOT_FOUND: "Resource not found.",
    ErrorReason.CONFLICT: "Resource already exists.",
    ErrorReason.STORAGE_FAILURE: "A database error occurred.",
}


class OperationFailedError(Exception):
    """Falha de operação de serviço com código de motivo estável."""

    def __init__(self, message: str, *, reason: ErrorReason) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason

    @property
    def status_code(self) -> int:
        return REASON_STATUS_CODES.get(self.reason, 500)

    @property
    def title(self) -> str:
        return REASON_TITLES.get(self.reason, "An unexpected error occurred. Please try again later.")
