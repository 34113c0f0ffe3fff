"""
Authentication application.

This app provides the chat user and how they sign in.

Key components:
    - User model: Custom email-based user with a unique username and the
      persisted presence flags (is_online, last_seen)
    - UserRepository: Persistence gateway for users
    - REST endpoints: register, JWT obtain/refresh, current user, user directory

Usage:
    from authentication.models import User
    from authentication.repositories import UserRepository
"""
