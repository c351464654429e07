from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import JsonResponse

from accounts.models import ChildProfile

import structlog

logger = structlog.get_logger()

CHILD_PROFILE_HEADER = "X-Child-Profile-Id"


# Token lifecycle lives in the auth service; here the selected child
# profile arrives as a header and is trusted.
class ChildProfileMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.learner = None
        if request.path.startswith("/api"):
            profile_id = request.headers.get(CHILD_PROFILE_HEADER)
            if profile_id:
                try:
                    request.learner = ChildProfile.objects.get(pk=profile_id)
                except (ChildProfile.DoesNotExist, DjangoValidationError):
                    logger.info("unknown_child_profile", child_profile_id=profile_id)
                    return JsonResponse(
                        {"error": "Child profile not found."}, status=401
                    )
        response = self.get_response(request)
        return response
