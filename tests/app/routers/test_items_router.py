"""Tests for the item access-log API."""

from unittest.mock import patch
from uuid import uuid4

from app.exceptions import CreateError
from app.models.access_log import AccessLog

OWNER = {"X-User-Id": "U1"}


def test_owner_gets_windowed_summary(
    client_with_db, setup_lost_item, setup_sixty_access_logs
):
    resp = client_with_db.get(f"/items/{setup_lost_item.id}/access-logs", headers=OWNER)
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["logs"]) == 50
    assert body["stats"] == {
        "total_views": 30,
        "total_contacts": 15,
        "total_chats": 5,
        "unique_users": 10,
    }
    assert body["error"] is None
    assert {log["label"] for log in body["logs"]} == {
        "Viewed report",
        "Contacted owner",
        "Started chat",
    }


def test_non_owner_cannot_read_access_logs(client_with_db, setup_lost_item):
    resp = client_with_db.get(
        f"/items/{setup_lost_item.id}/access-logs", headers={"X-User-Id": "F1"}
    )
    assert resp.status_code == 403


def test_record_access(client_with_db, setup_lost_item):
    resp = client_with_db.post(
        f"/items/{setup_lost_item.id}/access-logs",
        json={"access_type": "view"},
        headers={"X-User-Id": "F1", "User-Agent": "pytest-agent"},
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["access_type"] == "view"
    assert body["accessor_id"] == "F1"
    assert body["user_agent"] == "pytest-agent"
    assert body["label"] == "Viewed report"

    summary = client_with_db.get(
        f"/items/{setup_lost_item.id}/access-logs", headers=OWNER
    ).json()
    assert summary["stats"]["total_views"] == 1


def test_record_access_store_failure_returns_503(db, client_with_db, setup_lost_item):
    url = f"/items/{setup_lost_item.id}/access-logs"
    with patch(
        "app.routers.items_router.AccessLogService.record_access",
        side_effect=CreateError("Could not record access"),
    ):
        resp = client_with_db.post(
            url, json={"access_type": "contact"}, headers={"X-User-Id": "F1"}
        )
    assert resp.status_code == 503
    assert db.query(AccessLog).count() == 0


def test_record_access_rejects_unknown_type(client_with_db, setup_lost_item):
    resp = client_with_db.post(
        f"/items/{setup_lost_item.id}/access-logs",
        json={"access_type": "share"},
        headers={"X-User-Id": "F1"},
    )
    assert resp.status_code == 422


def test_access_logs_unknown_item(client_with_db):
    resp = client_with_db.get(f"/items/{uuid4()}/access-logs", headers=OWNER)
    assert resp.status_code == 404
