"""
Session Use Case DTOs (Data Transfer Objects)
"""

from typing import Optional

from pydantic import BaseModel, Field


class SessionMetadata(BaseModel):
    """Provenance of a login, recorded on the session for the detector"""

    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    device_fingerprint: Optional[str] = Field(default=None, max_length=255)
