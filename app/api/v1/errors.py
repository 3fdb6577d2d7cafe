"""Translate eligibility core errors into HTTP errors."""
from fastapi import HTTPException

from app.exceptions import (
    BackendUnavailable,
    EligibilityError,
    HistoryBusy,
    NoMatchingRule,
    NotFoundError,
    NoThresholdMatch,
    PartialRestoreFailure,
    ValidationError,
)


def http_error(exc: EligibilityError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail={"message": str(exc), "field": exc.field})
    if isinstance(exc, PartialRestoreFailure):
        return HTTPException(status_code=409, detail=exc.to_dict())
    if isinstance(exc, (NoMatchingRule, NoThresholdMatch, HistoryBusy)):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, BackendUnavailable):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
