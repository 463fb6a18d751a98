"""
Health check endpoint
"""

import pytest

from config.settings import DB_NAME


@pytest.mark.asyncio
async def test_health_reports_backend_without_touching_storage(client, storage):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "orm": "memory", "db": DB_NAME}
    assert storage.calls == []
    assert response.headers.get("X-Trace-ID")


@pytest.mark.asyncio
async def test_unknown_route_uses_error_body(client):
    response = await client.get("/mahasiswa")

    assert response.status_code == 404
    assert "error" in response.json()
