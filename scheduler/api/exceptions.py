from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler
import structlog

from ..domain.errors import (
    ConflictError,
    NotFoundError,
    ReviewError,
    TransientIOError,
    ValidationError,
)

logger = structlog.get_logger()

STATUS_FOR_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    TransientIOError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def exception_handler(exc, context):
    """Render review errors as {"error": code, "detail": message}."""
    if not isinstance(exc, ReviewError):
        return drf_exception_handler(exc, context)

    status_code = STATUS_FOR_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.warning("review_error_response",
        error=exc.code,
        detail=str(exc),
        status=status_code,
        view=type(context.get("view")).__name__,
    )
    headers = {"Retry-After": "1"} if exc.is_retryable else None
    return Response(
        {"error": exc.code, "detail": str(exc)},
        status=status_code,
        headers=headers,
    )
