"""
Caller identity.

Authentication happens at the identity provider in front of this service,
which forwards the verified subject id in the X-User-Id header.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, Query

USER_ID_HEADER = "X-User-Id"


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing user identity")
    return x_user_id.strip()


def get_ws_user_id(user_id: Optional[str] = Query(default=None)) -> Optional[str]:
    """WebSocket variant: browsers cannot set headers on the upgrade request."""
    if not user_id or not user_id.strip():
        return None
    return user_id.strip()
