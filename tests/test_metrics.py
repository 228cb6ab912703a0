import asyncio
import sys
from pathlib import Path

import httpx

sys.path.append(str(Path(__file__).resolve().parents[1]))

from api.app import app


def test_metrics_exposes_pod_counters():
    async def _fetch():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            return await client.get("/metrics")

    response = asyncio.run(_fetch())
    assert response.status_code == 200
    body = response.text
    assert "health_check_duration_seconds" in body
    assert "pod_published" in body
    assert "pod_rejected" in body
    assert "pod_swept_records" in body
