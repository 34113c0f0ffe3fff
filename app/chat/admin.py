"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Room management with inline memberships
- Private pair inspection
- Message moderation
"""

from django.contrib import admin

from chat.models import ChatRoom, Membership, Message, MessageReceipt, PrivateRoomPair


class MembershipInline(admin.TabularInline):
    """Inline display of members in room admin."""

    model = Membership
    extra = 0
    readonly_fields = ["joined_at"]
    raw_id_fields = ["user"]


@admin.register(ChatRoom)
class ChatRoomAdmin(admin.ModelAdmin):
    """Admin interface for ChatRoom model."""

    list_display = ["id", "name", "is_private", "created_by", "created_at", "updated_at"]
    list_filter = ["is_private", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["created_by"]
    inlines = [MembershipInline]
    ordering = ["-updated_at"]


@admin.register(PrivateRoomPair)
class PrivateRoomPairAdmin(admin.ModelAdmin):
    """Admin interface for PrivateRoomPair model."""

    list_display = ["room", "user_lower", "user_higher"]
    raw_id_fields = ["room", "user_lower", "user_higher"]


class MessageReceiptInline(admin.TabularInline):
    model = MessageReceipt
    extra = 0
    readonly_fields = ["read_at"]
    raw_id_fields = ["user"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model. Room and sender are fixed once stored."""

    list_display = ["id", "room", "sender", "content_preview", "is_read", "created_at"]
    list_filter = ["is_read", "created_at"]
    search_fields = ["content", "sender__email"]
    readonly_fields = ["room", "sender", "created_at", "updated_at"]
    inlines = [MessageReceiptInline]
    ordering = ["-created_at"]

    @admin.display(description="Content")
    def content_preview(self, obj):
        return obj.content[:50] + "..." if len(obj.content) > 50 else obj.content
