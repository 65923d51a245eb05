"""
Session Patches

Closed set of partial updates the repository accepts for a session row.
Each lifecycle operation has its own patch type so callers cannot write
arbitrary columns.
"""

from datetime import datetime
from typing import Union

from pydantic import BaseModel, ConfigDict


class ExtendExpiryPatch(BaseModel):
    """Refresh: push expiry forward and mark the session as touched"""

    model_config = ConfigDict(frozen=True)

    expires_at: datetime
    last_accessed_at: datetime


class RotateTokenPatch(BaseModel):
    """Rotation: new token plus a full new lifetime"""

    model_config = ConfigDict(frozen=True)

    session_token: str
    expires_at: datetime
    last_accessed_at: datetime


SessionPatch = Union[ExtendExpiryPatch, RotateTokenPatch]
