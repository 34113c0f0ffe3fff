"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Message operations (content limits, history window)
- Room naming
- WebSocket close codes and frame types

Timeouts that operators may tune (typing expiry, history default) live in
settings and are read at call time.

Import example:
    from chat.constants import MESSAGE_CONFIG, WS_CLOSE_CODES
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    HISTORY_MAX_LIMIT: Final[int] = 200


# =============================================================================
# Room Configuration
# =============================================================================


class ROOM_CONFIG:
    """Configuration for rooms."""

    PRIVATE_ROOM_NAME: Final[str] = "Private chat"
    MAX_NAME_LENGTH: Final[int] = 100


# =============================================================================
# WebSocket Protocol
# =============================================================================


class FRAME_TYPES:
    """Inbound and outbound frame ``type`` values."""

    AUTH: Final[str] = "auth"
    SEND_MESSAGE: Final[str] = "send_message"
    TYPING: Final[str] = "typing"

    PRESENCE: Final[str] = "presence"
    NEW_MESSAGE: Final[str] = "new_message"
    ERROR: Final[str] = "error"


class WS_CLOSE_CODES:
    """Application close codes (4000-4999 range)."""

    SUPERSEDED: Final[int] = 4000  # Same user connected again elsewhere
    UNAUTHORIZED: Final[int] = 4001  # Handshake token required but missing/invalid
