"""Fixtures for report access logs."""

from datetime import datetime, timedelta, timezone

import pytest

from app.models.access_log import AccessLog

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_access_logs(db, lost_item_id, access_types, accessor_ids, start=BASE_TIME):
    """Insert one log per access type, one minute apart, cycling through accessor ids."""
    logs = []
    for i, access_type in enumerate(access_types):
        log = AccessLog(
            lost_item_id=lost_item_id,
            access_type=access_type,
            accessor_id=accessor_ids[i % len(accessor_ids)] if accessor_ids else None,
            ip_address=f"10.0.0.{i % 250}",
            user_agent="pytest",
            created_at=start + timedelta(minutes=i),
        )
        db.add(log)
        logs.append(log)
    db.commit()
    return logs


@pytest.fixture(scope="function")
def setup_sixty_access_logs(db, setup_lost_item):
    """60 events oldest-to-newest: 40 view, 15 contact, 5 chat_init, 10 distinct accessors."""
    access_types = ["view"] * 40 + ["contact"] * 15 + ["chat_init"] * 5
    accessor_ids = [f"user-{n}" for n in range(10)]
    return make_access_logs(db, setup_lost_item.id, access_types, accessor_ids)
