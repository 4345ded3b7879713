import json

import httpx
import pytest

from insight_service.analytics.remote_analyzer import RemoteAnalyzerClient
from insight_service.analytics.result import Err, Ok
from insight_service.core.errors import RemoteAnalysisMalformed, RemoteAnalysisUnavailable
from insight_service.schemas.analysis import InsightType, Priority, SuggestionType
from insight_service.schemas.profile import StudentPerformanceProfile, SubjectProfile

VALID_ANALYSIS = {
    "insights": [{
        "insightType": "performance",
        "title": "Strong start",
        "content": "Your average is 82%.",
        "confidenceScore": 88,
        "priority": "medium"
    }],
    "suggestions": [{
        "title": "Practice past papers",
        "description": "Do one past paper a week.",
        "type": "practice",
        "priority": "high",
        "category": "exam_prep",
        "estimatedTime": "1 hour weekly",
        "confidenceScore": 77.5
    }]
}


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_client(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteAnalyzerClient(http_client, base_url="https://analyzer.test/v1/", api_key="sk-test")


async def test_valid_response_is_ok():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=completion(json.dumps(VALID_ANALYSIS)))

    result = await make_client(handler).analyze(StudentPerformanceProfile(overall_average=82))

    assert isinstance(result, Ok)
    assert result.value.insights[0].insight_type == InsightType.PERFORMANCE
    assert result.value.suggestions[0].type == SuggestionType.PRACTICE
    assert result.value.suggestions[0].priority == Priority.HIGH

    request = requests[0]
    assert str(request.url) == "https://analyzer.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["response_format"] == {"type": "json_object"}
    assert '"overallAverage": 82.0' in body["messages"][1]["content"]


async def test_server_error_is_unavailable():
    result = await make_client(lambda request: httpx.Response(500)).analyze(StudentPerformanceProfile())

    assert isinstance(result, Err)
    assert isinstance(result.error, RemoteAnalysisUnavailable)
    assert "500" in result.error.reason


async def test_transport_error_is_unavailable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = await make_client(handler).analyze(StudentPerformanceProfile())

    assert isinstance(result, Err)
    assert isinstance(result.error, RemoteAnalysisUnavailable)


async def test_timeout_is_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    result = await make_client(handler).analyze(StudentPerformanceProfile())

    assert isinstance(result.error, RemoteAnalysisUnavailable)


@pytest.mark.parametrize("body", [
    completion("not json at all"),
    completion(json.dumps({"insights": []})),
    completion(json.dumps({**VALID_ANALYSIS, "insights": [
        {**VALID_ANALYSIS["insights"][0], "confidenceScore": 150}
    ]})),
    completion(json.dumps({**VALID_ANALYSIS, "insights": [
        {**VALID_ANALYSIS["insights"][0], "confidenceScore": "85"}
    ]})),
    completion(json.dumps({**VALID_ANALYSIS, "insights": [
        {**VALID_ANALYSIS["insights"][0], "priority": "urgent"}
    ]})),
    completion(""),
    {"choices": []},
])
async def test_malformed_payloads(body):
    result = await make_client(lambda request: httpx.Response(200, json=body)).analyze(
        StudentPerformanceProfile()
    )

    assert isinstance(result, Err)
    assert isinstance(result.error, RemoteAnalysisMalformed)


async def test_non_json_body_is_malformed():
    result = await make_client(lambda request: httpx.Response(200, text="<html>")).analyze(
        StudentPerformanceProfile()
    )

    assert isinstance(result.error, RemoteAnalysisMalformed)


MATH_ID = "6f9b2c1e-4d7a-4c3b-9a51-2b8e0f7d3c10"
PROFILE_WITH_MATH = StudentPerformanceProfile(subjects=[SubjectProfile(id=MATH_ID, name="Math")])


def with_subject(subject_id, section="insights"):
    item = {**VALID_ANALYSIS[section][0], "subjectId": subject_id}
    return {**VALID_ANALYSIS, section: [item]}


@pytest.mark.parametrize("body", [
    with_subject("Math"),
    with_subject("not-a-uuid", section="suggestions"),
    with_subject("0d5d7a3e-1111-4c3b-9a51-2b8e0f7d3c10"),
])
async def test_subject_ids_must_belong_to_the_student(body):
    def handler(request):
        return httpx.Response(200, json=completion(json.dumps(body)))

    result = await make_client(handler).analyze(PROFILE_WITH_MATH)

    assert isinstance(result, Err)
    assert isinstance(result.error, RemoteAnalysisMalformed)
    assert "unknown subject ids" in result.error.reason


async def test_known_subject_id_is_accepted():
    body = with_subject(MATH_ID)

    def handler(request):
        return httpx.Response(200, json=completion(json.dumps(body)))

    result = await make_client(handler).analyze(PROFILE_WITH_MATH)

    assert isinstance(result, Ok)
    assert result.value.insights[0].subject_id == MATH_ID
