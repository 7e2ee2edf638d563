import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StudyTrackError(Exception):
    """Base error for failures surfaced to the caller."""

    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class AuthenticationRequired(StudyTrackError):
    status_code = 401
    default_detail = "Not authenticated"


class NotFound(StudyTrackError):
    status_code = 404
    default_detail = "Not found"


class ValidationFailed(StudyTrackError):
    status_code = 422
    default_detail = "Invalid input"


class UpstreamUnavailable(StudyTrackError):
    status_code = 503
    default_detail = "Upstream service unavailable"


class AggregationFailed(UpstreamUnavailable):
    """One of the joined task relations could not be loaded."""

    default_detail = "Failed to load tasks"


class AIRateLimited(StudyTrackError):
    status_code = 429
    default_detail = "Rate limit exceeded. Please try again later."


class AIQuotaExhausted(StudyTrackError):
    status_code = 402
    default_detail = "AI credits exhausted. Please add credits to continue."


async def _handle_study_track_error(request: Request, exc: StudyTrackError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationRequired) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StudyTrackError, _handle_study_track_error)
