"""
Session Service Domain Entities
"""

from .enums import SessionState
from .session import AuthSession
from .session_patch import ExtendExpiryPatch, RotateTokenPatch, SessionPatch

__all__ = [
    "SessionState",
    "AuthSession",
    "ExtendExpiryPatch",
    "RotateTokenPatch",
    "SessionPatch",
]
