from django.urls import include, path

from accounts.views import ProfileViewSet

urlpatterns = [
    path("api/v1/", include("scheduler.api.urls")),
    path("api/v1/", include("catalog.api")),
    path("api/v1/me", ProfileViewSet.as_view({"get": "me"}), name="profile-me"),
]
