"""Translate gate-review errors into HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from stagegate.review.error import AlreadyAssigned, Forbidden, IncompleteReviews, InvalidInput, \
    InvalidStateTransition, NotFound, ReviewError, RoleIneligible, ValidationFailed

StatusCodes: dict[type[ReviewError], int] = {
    InvalidInput: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ValidationFailed: status.HTTP_422_UNPROCESSABLE_ENTITY,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    RoleIneligible: status.HTTP_409_CONFLICT,
    AlreadyAssigned: status.HTTP_409_CONFLICT,
    IncompleteReviews: status.HTTP_409_CONFLICT,
    InvalidStateTransition: status.HTTP_409_CONFLICT,
}


def review_error_response(request: Request, exc: Exception) -> JSONResponse:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in StatusCodes.items():
        if isinstance(exc, error_type):
            status_code = code
            break

    body: dict[str, object] = {"error": type(exc).__name__, "detail": str(exc)}
    match exc:
        case ValidationFailed(errors=errors):
            body["errors"] = list(errors)
        case RoleIneligible(reviewer_ids=reviewer_ids) | AlreadyAssigned(reviewer_ids=reviewer_ids):
            body["reviewer_ids"] = [str(r) for r in reviewer_ids]
        case IncompleteReviews(missing=missing):
            body["missing"] = missing
        case Forbidden():
            # don't echo the actor and action back
            body["detail"] = "Not authorized to perform this action"
    return JSONResponse(status_code=status_code, content=body)


def install(app: FastAPI) -> None:
    app.add_exception_handler(ReviewError, review_error_response)
