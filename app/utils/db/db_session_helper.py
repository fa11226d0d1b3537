from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from app.db import db_manager


@contextmanager
def db_session() -> Iterator[Session]:
    """Short-lived session for work that runs outside a request (scoring, feed backfill)."""
    with db_manager.db_session() as db:
        yield db
