"""
Typed failures raised by the BizTrackr engine and services.

Every error carries a stable machine-readable ``code`` and the HTTP status
the API layer renders it with. Degenerate input (no records) is never an
error: it aggregates to zero-valued metrics.
"""

from typing import Any, Optional


class BizTrackrError(Exception):
    """Base class for all domain errors surfaced to API callers."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if code:
            self.code = code

    def to_dict(self) -> dict:
        error = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return error


class ValidationFailure(BizTrackrError):
    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidDateRange(ValidationFailure):
    """Start date later than end date, or an unparsable date."""

    code = "INVALID_DATE_RANGE"


class AggregationFailure(BizTrackrError):
    """
    A collection required for aggregation could not be read.

    The underlying storage error is chained as ``__cause__``.
    """

    code = "METRICS_FETCH_ERROR"
    status_code = 500


class RecordNotFound(BizTrackrError):
    status_code = 404

    def __init__(self, kind: str, record_id: str):
        super().__init__(
            f"{kind.capitalize()} not found",
            details={"id": record_id},
            code=f"{kind.upper()}_NOT_FOUND",
        )


class DuplicateRecord(BizTrackrError):
    code = "PRODUCT_EXISTS"
    status_code = 409


class InsufficientInventory(BizTrackrError):
    code = "INSUFFICIENT_INVENTORY"
    status_code = 400


class TextGenerationError(BizTrackrError):
    """The text-generation connector failed or is unavailable."""

    code = "AI_REQUEST_FAILED"
    status_code = 502


class TextGenerationUnavailable(TextGenerationError):
    code = "AI_UNAVAILABLE"
    status_code = 503


class ExportFailed(BizTrackrError):
    code = "EXPORT_ERROR"
    status_code = 500
