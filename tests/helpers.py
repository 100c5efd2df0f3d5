from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict

from fastapi.testclient import TestClient


def at(hour: int, minute: int = 0, day: int = 1) -> datetime:
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


def register(client: TestClient, email: str, password: str = "s3cret-pass") -> Dict[str, str]:
    resp = client.post("/api/v1/auth/signup", json={"name": email.split("@")[0], "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/v1/auth/login", data={"username": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
