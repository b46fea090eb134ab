"""
Notification schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class NotificationResponse(BaseModel):
    id: uuid.UUID
    recipient_id: uuid.UUID
    type: str
    title: str
    message: str
    channel: str
    read: bool
    sent_at: datetime
    read_at: Optional[datetime] = None
    link: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="extra")

    # Read from the ORM `extra` attribute; `metadata` on a mapped class is
    # the table MetaData
    model_config = {"from_attributes": True}
