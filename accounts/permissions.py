from functools import wraps

from rest_framework import status
from rest_framework.response import Response


def learner_required(handler):
    """Reject API view methods called without a selected child profile."""

    @wraps(handler)
    def wrapper(view, request, *args, **kwargs):
        if getattr(request, "learner", None) is None:
            return Response(
                {"error": "Child profile not selected"},
                status=status.HTTP_401_UNAUTHORIZED,
            )
        return handler(view, request, *args, **kwargs)

    return wrapper
