"""
In-process registry of live WebSocket connections.

Maps each online user to the Channels channel name of their one live
connection. The map is only touched from the event loop (consumers run
there, and sync REST views reach it through async_to_sync), so no locking is
needed. Delivery goes through the channel layer to the consumer owning the
handle, which writes the frame to its socket.

Usage:
    from chat.presence import presence_registry

    previous = presence_registry.register(user_id, self.channel_name)
    await presence_registry.send_to(user_id, PresenceEvent(user_id, True))
    await presence_registry.broadcast(PresenceEvent(user_id, False))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from channels.exceptions import ChannelFull
from channels.layers import get_channel_layer

if TYPE_CHECKING:
    from chat.protocol import Event

logger = logging.getLogger(__name__)

# Channel-layer message types handled by ChatConsumer
EVENT_MESSAGE_TYPE = "chat.event"
SUPERSEDED_MESSAGE_TYPE = "chat.superseded"


class PresenceRegistry:
    """
    Live connection registry with best-effort delivery.

    One connection per user: registering again replaces the previous handle
    and returns it so the caller can close the old connection. Unregister
    only removes the entry if it still holds the caller's handle, so a
    superseded connection closing late cannot knock the new one offline.
    """

    def __init__(self):
        self._connections: dict[int, str] = {}

    def register(self, user_id: int, handle: str) -> str | None:
        """Record ``handle`` as the live connection for ``user_id``."""
        previous = self._connections.get(user_id)
        self._connections[user_id] = handle
        logger.debug(f"Registered connection {handle} for user {user_id} (replaced={previous is not None})")
        return previous if previous != handle else None

    def unregister(self, user_id: int, handle: str) -> bool:
        """
        Remove ``user_id`` if its live connection is still ``handle``.

        Returns:
            True when the entry was removed (the user went offline)
        """
        if self._connections.get(user_id) != handle:
            return False
        del self._connections[user_id]
        logger.debug(f"Unregistered connection {handle} for user {user_id}")
        return True

    def is_online(self, user_id: int) -> bool:
        return user_id in self._connections

    def online_user_ids(self) -> list[int]:
        """Snapshot of currently online users."""
        return list(self._connections)

    def clear(self) -> None:
        self._connections.clear()

    async def send_to(self, user_id: int, event: Event) -> bool:
        """
        Deliver ``event`` to the user's live connection, if any.

        The handle is looked up at send time. Channel-layer failures are
        logged and reported as a miss.

        Returns:
            True if the event was handed to the connection
        """
        handle = self._connections.get(user_id)
        if handle is None:
            return False

        try:
            await get_channel_layer().send(
                handle,
                {"type": EVENT_MESSAGE_TYPE, "payload": event.to_dict()},
            )
        except ChannelFull:
            logger.warning(f"Dropped {type(event).__name__} for user {user_id}: channel full")
            return False
        return True

    async def broadcast(self, event: Event, exclude_user_id: int | None = None) -> int:
        """
        Send ``event`` to every online user except ``exclude_user_id``.

        Iterates over a snapshot; users that go offline mid-broadcast are
        skipped.

        Returns:
            Number of connections the event was handed to
        """
        delivered = 0
        for user_id in self.online_user_ids():
            if user_id == exclude_user_id:
                continue
            if await self.send_to(user_id, event):
                delivered += 1
        return delivered

    async def close_handle(self, handle: str) -> None:
        """Ask the connection owning ``handle`` to close (it was superseded)."""
        try:
            await get_channel_layer().send(handle, {"type": SUPERSEDED_MESSAGE_TYPE})
        except ChannelFull:
            logger.warning(f"Could not notify superseded connection {handle}: channel full")


presence_registry = PresenceRegistry()
