from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import OperationalError

from church_admin.core.db import get_db
from church_admin.main import app

from conftest import TestingSessionLocal


def _unreachable(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("could not connect to server at secret-host:5432"))


def _broken_session(method: str):
    def _override():
        db = TestingSessionLocal()
        setattr(db, method, _unreachable)
        try:
            yield db
        finally:
            db.close()

    return _override


def test_failed_commit_returns_store_unavailable(client, authorize, leader, ministry):
    authorize(leader)
    app.dependency_overrides[get_db] = _broken_session("commit")

    resp = client.post(
        "/events",
        json={
            "ministry_id": ministry.id,
            "name": "Youth night",
            "starts_at": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
        },
    )
    assert resp.status_code == 503
    assert resp.json() == {
        "success": False,
        "message": "The data store is temporarily unavailable",
        "error": "store_unavailable",
    }
    assert "secret-host" not in resp.text


def test_failed_read_returns_store_unavailable(client, authorize, pastor):
    authorize(pastor)
    app.dependency_overrides[get_db] = _broken_session("execute")

    resp = client.get("/events/1")
    assert resp.status_code == 503
    payload = resp.json()
    assert payload["error"] == "store_unavailable"
    assert "secret-host" not in resp.text
