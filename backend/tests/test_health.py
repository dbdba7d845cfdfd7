"""Health check endpoint."""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health_endpoint(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] in ("ok", "degraded")
    assert data["app"] == "RiskLedger"


@pytest.mark.asyncio
async def test_unknown_record_is_404_with_short_detail(client: AsyncClient):
    r = await client.get("/api/v1/risks/999")
    assert r.status_code == 404
    assert r.json() == {"detail": "risks record 999 does not exist"}
