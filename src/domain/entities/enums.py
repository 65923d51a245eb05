"""
Session Domain Enums

Enumeration types used by the session entity.
"""

from enum import Enum


class SessionState(str, Enum):
    """
    Derived lifecycle state of a session.

    Never stored: always computed from is_active, is_suspicious and
    expires_at at the moment of the check.
    """

    active = "active"
    suspicious = "suspicious"
    invalidated = "invalidated"
    expired = "expired"
