"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - The single chat connection; rooms are addressed per frame

Authentication:
    Clients send an ``auth`` frame after connecting. A JWT may also be passed
    as ``?token=<jwt_access_token>`` (or the ``jwt`` subprotocol); the
    JWTAuthMiddleware resolves it and the consumer checks it matches.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatConsumer.as_asgi()),
]
