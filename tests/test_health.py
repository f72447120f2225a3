# tests/test_health.py
from typing import Any

from fastapi import status


def test_health(client: Any) -> None:
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_root_describes_api(client: Any) -> None:
    data = client.get("/").json()
    assert data["name"] == "Ventbuddy Stage"
    assert data["docs"] == "/docs"
