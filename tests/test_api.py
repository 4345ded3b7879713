import uuid
from datetime import datetime

import httpx
import pytest

from insight_service.analytics.fallback_analyzer import FallbackAnalyzer
from insight_service.analytics.insight_engine import InsightEngine
from insight_service.analytics.orchestrator import AnalysisOrchestrator
from insight_service.core.dependencies import get_insight_engine
from insight_service.main import app
from insight_service.store.insight_store import InsightStore
from insight_service.store.record_reader import RecordReader

FIXED_NOW = datetime(2024, 5, 20, 12, 0)


@pytest.fixture
async def client(session_factory):
    orchestrator = AnalysisOrchestrator(None, FallbackAnalyzer(), clock=lambda: FIXED_NOW)
    engine = InsightEngine(
        RecordReader(session_factory),
        InsightStore(session_factory),
        orchestrator,
        clock=lambda: FIXED_NOW
    )
    app.dependency_overrides[get_insight_engine] = lambda: engine
    app.state.session_factory = session_factory

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def test_root(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "operational"


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "healthy"


async def test_generate_analysis(client, student_id):
    response = await client.post(f"/api/analysis/{student_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["origin"] == "local"
    assert [i["title"] for i in body["insights"]] == [
        "Overall Academic Performance", "Study Consistency Analysis"
    ]
    assert body["insights"][0]["insightType"] == "performance"
    assert body["suggestions"][0]["confidenceScore"] == 95
    assert body["suggestions"][0]["aiGenerated"] is False


async def test_generate_without_records_can_be_refused(client, student_id):
    response = await client.post(f"/api/analysis/{student_id}", params={"allow_empty": "false"})

    assert response.status_code == 422


async def test_invalid_student_id(client):
    response = await client.post("/api/analysis/not-a-uuid")

    assert response.status_code == 422


async def test_insight_read_flow(client, student_id):
    generated = (await client.post(f"/api/analysis/{student_id}")).json()
    insight_id = generated["insights"][0]["id"]

    first = await client.post(f"/api/insights/{insight_id}/read")
    second = await client.post(f"/api/insights/{insight_id}/read")
    unread = await client.get(f"/api/insights/{student_id}", params={"unread_only": "true"})

    assert first.status_code == 200
    assert first.json()["isRead"] is True
    assert second.json() == first.json()
    assert [i["id"] for i in unread.json()] == [generated["insights"][1]["id"]]


async def test_unknown_insight(client):
    response = await client.post(f"/api/insights/{uuid.uuid4()}/read")

    assert response.status_code == 404


async def test_suggestion_lifecycle(client, student_id):
    generated = (await client.post(f"/api/analysis/{student_id}")).json()
    suggestion_id = generated["suggestions"][0]["id"]

    completed = await client.patch(
        f"/api/suggestions/{suggestion_id}/status",
        json={"status": "completed", "effectivenessRating": 5}
    )
    dismissed = await client.patch(
        f"/api/suggestions/{suggestion_id}/status",
        json={"status": "dismissed"}
    )
    listed = await client.get(f"/api/suggestions/{student_id}", params={"status": "completed"})

    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"
    assert completed.json()["effectivenessRating"] == 5
    assert completed.json()["interactionCount"] == 1
    assert dismissed.status_code == 409
    assert [s["id"] for s in listed.json()] == [suggestion_id]


async def test_rating_out_of_range(client, student_id):
    generated = (await client.post(f"/api/analysis/{student_id}")).json()
    suggestion_id = generated["suggestions"][0]["id"]

    response = await client.patch(
        f"/api/suggestions/{suggestion_id}/status",
        json={"status": "completed", "effectivenessRating": 9}
    )

    assert response.status_code == 422


async def test_unknown_suggestion(client):
    response = await client.patch(f"/api/suggestions/{uuid.uuid4()}/status", json={"status": "dismissed"})

    assert response.status_code == 404
