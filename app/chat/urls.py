"""
URL configuration for chat API.

URL Structure:
    Rooms:
        /rooms/                              GET
        /rooms/private/                      POST
        /rooms/group/                        POST

    Members:
        /rooms/{id}/members/                 GET, POST
        /rooms/{id}/members/{user_id}/       DELETE

    Messages:
        /rooms/{id}/messages/                GET, POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import RoomViewSet

router = DefaultRouter()
router.register(r"rooms", RoomViewSet, basename="room")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
]
