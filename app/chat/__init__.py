"""
Chat app for real-time messaging.

This app handles:
- Rooms (private and group) and their members
- Message sending and history
- WebSocket real-time updates (messages, presence, typing)
- Read receipts and unread counts

Related apps:
    - authentication: User model for members

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.services import MessageService, RoomService

    # Open a private room
    room = RoomService.find_or_create_private_room(alice.id, bob.id).data

    # Send a message and deliver it to live members
    result = await message_pipeline.submit(room.id, alice.id, "Hello!")
"""
