"""
Chat application configuration.

This app provides the chat system with:
- Private (1:1) and group rooms
- Live WebSocket delivery of messages, presence and typing signals
- Read tracking and unread counts
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
