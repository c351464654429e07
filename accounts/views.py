from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .permissions import learner_required


class ProfileViewSet(viewsets.ViewSet):
    """
    ViewSet for the selected child profile.
    """

    @action(detail=False, methods=["get"])
    @learner_required
    def me(self, request):
        """
        Returns the child profile selected by the X-Child-Profile-Id header.
        """
        learner = request.learner
        return Response(
            {
                "id": str(learner.id),
                "name": learner.name,
                "age_range": learner.age_range,
                "avatar": learner.avatar,
                "daily_goal_minutes": learner.daily_goal_minutes,
            },
            status=status.HTTP_200_OK,
        )
