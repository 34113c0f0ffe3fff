"""
ViewSets for chat API.

URL Structure:
    /api/v1/chat/rooms/                              GET
    /api/v1/chat/rooms/private/                      POST
    /api/v1/chat/rooms/group/                        POST
    /api/v1/chat/rooms/{id}/members/                 GET, POST
    /api/v1/chat/rooms/{id}/members/{user_id}/       DELETE
    /api/v1/chat/rooms/{id}/messages/                GET, POST
    /api/v1/chat/rooms/{id}/read/                    POST

Design Decisions:
    - Membership rules live in chat.services; views only translate results
    - Failed results map to HTTP status via core.exceptions.http_status_for
    - Messages posted here go through the same pipeline as WebSocket sends,
      so live members receive them too
"""

from __future__ import annotations

from asgiref.sync import async_to_sync
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import http_status_for
from core.services import ServiceResult
from authentication.serializers import UserSerializer
from chat.pipeline import message_pipeline
from chat.serializers import (
    GroupRoomCreateSerializer,
    HistoryQuerySerializer,
    MembersAddSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    PrivateRoomCreateSerializer,
    RoomListSerializer,
)
from chat.services import MessageService, RoomService


def error_response(result: ServiceResult) -> Response:
    return Response(result.to_response(), status=http_status_for(result.error_code))


class RoomViewSet(viewsets.ViewSet):
    """
    ViewSet for rooms, their members and their messages.

    list:
        Rooms the current user belongs to, most recently active first,
        with members, last message and unread count.

    private:
        Find or create the private room with another user.

    group:
        Create a group room with the current user as creator.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def _room_response(self, request, room, status_code=status.HTTP_200_OK) -> Response:
        return Response(RoomListSerializer(room, context={"request": request}).data, status=status_code)

    @extend_schema(
        operation_id="list_rooms",
        summary="List rooms",
        tags=["Chat - Rooms"],
        responses={200: RoomListSerializer(many=True)},
    )
    def list(self, request):
        result = RoomService.list_rooms(request.user.id)
        if not result.success:
            return error_response(result)
        return Response(RoomListSerializer(result.data, many=True, context={"request": request}).data)

    @extend_schema(
        operation_id="open_private_room",
        summary="Open private room",
        tags=["Chat - Rooms"],
        request=PrivateRoomCreateSerializer,
        responses={200: RoomListSerializer},
    )
    @action(detail=False, methods=["post"])
    def private(self, request):
        """Find or create the private room with ``user_id``."""
        serializer = PrivateRoomCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RoomService.find_or_create_private_room(request.user.id, serializer.validated_data["user_id"])
        if not result.success:
            return error_response(result)
        return self._room_response(request, result.data)

    @extend_schema(
        operation_id="create_group_room",
        summary="Create group room",
        tags=["Chat - Rooms"],
        request=GroupRoomCreateSerializer,
        responses={201: RoomListSerializer},
    )
    @action(detail=False, methods=["post"])
    def group(self, request):
        serializer = GroupRoomCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RoomService.create_group_room(
            creator_id=request.user.id,
            name=serializer.validated_data["name"],
            member_ids=serializer.validated_data["member_ids"],
        )
        if not result.success:
            return error_response(result)
        return self._room_response(request, result.data, status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="room_members",
        summary="List or add room members",
        tags=["Chat - Members"],
        request=MembersAddSerializer,
        responses={200: UserSerializer(many=True)},
    )
    @action(detail=True, methods=["get", "post"])
    def members(self, request, pk=None):
        room_id = int(pk)
        if request.method == "POST":
            serializer = MembersAddSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            added = RoomService.add_members(room_id, request.user.id, serializer.validated_data["user_ids"])
            if not added.success:
                return error_response(added)

        result = RoomService.get_members(room_id, request.user.id)
        if not result.success:
            return error_response(result)
        return Response(UserSerializer(result.data, many=True).data)

    @extend_schema(
        operation_id="remove_room_member",
        summary="Remove member or leave room",
        tags=["Chat - Members"],
        responses={204: None},
    )
    @action(detail=True, methods=["delete"], url_path=r"members/(?P<user_id>\d+)")
    def remove_member(self, request, pk=None, user_id=None):
        result = RoomService.remove_member(int(pk), request.user.id, int(user_id))
        if not result.success:
            return error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="room_messages",
        summary="Message history or send message",
        tags=["Chat - Messages"],
        parameters=[OpenApiParameter("limit", OpenApiTypes.INT, description="Most recent N messages")],
        request=MessageCreateSerializer,
        responses={200: MessageSerializer(many=True), 201: MessageSerializer},
    )
    @action(detail=True, methods=["get", "post"])
    def messages(self, request, pk=None):
        """
        GET: the most recent messages, oldest first; marks them read.
        POST: send a message, delivered live to online members.
        """
        room_id = int(pk)
        if request.method == "POST":
            serializer = MessageCreateSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            result = async_to_sync(message_pipeline.submit)(
                room_id, request.user.id, serializer.validated_data["content"]
            )
            if not result.success:
                return error_response(result)
            return Response(result.data, status=status.HTTP_201_CREATED)

        query = HistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = MessageService.get_history(room_id, request.user.id, query.validated_data.get("limit"))
        if not result.success:
            return error_response(result)
        return Response(MessageSerializer(result.data, many=True).data)

    @extend_schema(
        operation_id="mark_room_read",
        summary="Mark room as read",
        tags=["Chat - Messages"],
        request=None,
        responses={200: OpenApiTypes.OBJECT},
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        """Mark every message from other members as read."""
        result = MessageService.mark_as_read(int(pk), request.user.id)
        if not result.success:
            return error_response(result)
        return Response({"marked": result.data})
