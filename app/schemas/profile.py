from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class ProfileSummary(BaseModel):
    """Joined display data for a message sender or access log accessor."""

    full_name: str
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}
