"""
Session Lifecycle Use Cases

Creation, validation, refresh, rotation and revocation of auth sessions.
"""

from .dtos import SessionMetadata
from .session_service import SessionService

__all__ = [
    "SessionMetadata",
    "SessionService",
]
