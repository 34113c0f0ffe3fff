# =============================================================================
# Django Project Configuration Package
# =============================================================================
# This package contains the Django configuration: settings, URLs and the
# ASGI application that serves both HTTP and the chat WebSocket.
# =============================================================================
