"""Auth Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel


class MeResponse(BaseModel):
    """Profile of the authenticated employee."""

    id: uuid.UUID
    employee_code: str
    display_name: str
    email: str
    role: str
    profile_photo_url: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    direct_reports_count: int = 0


class MessageResponse(BaseModel):
    message: str
