"""Client for the remote, model-backed analysis service."""

import json
from typing import Any, Dict, Optional, Set

import httpx
import structlog
from pydantic import ValidationError

from insight_service.analytics.result import AnalysisResult, Err, Ok
from insight_service.core.errors import RemoteAnalysisMalformed, RemoteAnalysisUnavailable
from insight_service.schemas.analysis import RemoteAnalysis
from insight_service.schemas.profile import StudentPerformanceProfile

logger = structlog.get_logger()

SYSTEM_PROMPT = """
You are an academic advisor that analyzes student performance data and writes personalized insights and suggestions.
Be specific and data-driven: refer to the student's actual averages, trends, study patterns and goals.

Respond with a single JSON object containing exactly two arrays:

"insights": 3-5 objects with
  - insightType: one of "performance", "study_pattern", "prediction", "recommendation"
  - title: concise, specific title
  - content: explanation referencing the student's data
  - confidenceScore: number between 0 and 100
  - priority: "high", "medium" or "low"
  - subjectId: optional, the "id" of one of the student's subjects when the insight is subject-specific

"suggestions": 3-5 objects with
  - title: concise, actionable title
  - description: how to carry out the suggestion
  - type: one of "study_method", "resource", "improvement", "practice", "time_management"
  - priority: "high", "medium" or "low"
  - category: short category such as "memory_technique", "time_management", "focus"
  - resourceUrl: optional URL of a helpful resource
  - estimatedTime: optional time estimate such as "15-20 min daily"
  - subjectId: optional, the "id" of one of the student's subjects when the suggestion is subject-specific
  - confidenceScore: number between 0 and 100
""".strip()


class RemoteAnalyzerClient:
    """Stateless request/response client for an OpenAI-compatible chat completions API.

    ``analyze`` returns ``Ok`` or ``Err`` instead of raising for network,
    status or payload problems. Cancellation propagates to the caller.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        model: str = "gpt-4",
        temperature: float = 0.5,
        max_tokens: int = 2000,
        timeout: Optional[float] = None
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    async def analyze(self, profile: StudentPerformanceProfile) -> AnalysisResult:
        """Request insights and suggestions for a profile."""
        try:
            response = await self.http_client.post(
                f"{self.base_url}/chat/completions",
                json=self.build_request(profile),
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout if self.timeout is not None else httpx.USE_CLIENT_DEFAULT
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            return Err(RemoteAnalysisUnavailable(f"request timed out: {e}"))
        except httpx.HTTPStatusError as e:
            return Err(RemoteAnalysisUnavailable(f"status {e.response.status_code}"))
        except httpx.HTTPError as e:
            return Err(RemoteAnalysisUnavailable(f"transport error: {e}"))

        try:
            content = self._extract_content(response.json())
            analysis = RemoteAnalysis.model_validate_json(content)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            # ValidationError subclasses ValueError
            return Err(RemoteAnalysisMalformed(self._describe(e)))

        unknown = self._unknown_subject_ids(analysis, profile)
        if unknown:
            return Err(RemoteAnalysisMalformed(f"unknown subject ids: {sorted(unknown)}"))

        logger.info(
            "Remote analysis received",
            model=self.model,
            insights=len(analysis.insights),
            suggestions=len(analysis.suggestions)
        )
        return Ok(analysis)

    def build_request(self, profile: StudentPerformanceProfile) -> Dict[str, Any]:
        """Chat completion body carrying the serialized profile."""
        user_prompt = (
            "Analyze this student's performance data and generate personalized insights "
            "and suggestions.\n\nStudent data:\n"
            + json.dumps(profile.to_payload(), indent=2)
        )

        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt}
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "response_format": {"type": "json_object"}
        }

    def _extract_content(self, body: Dict[str, Any]) -> str:
        content = body["choices"][0]["message"]["content"]
        if not isinstance(content, str) or not content.strip():
            raise ValueError("empty completion content")
        return content

    def _unknown_subject_ids(self, analysis: RemoteAnalysis, profile: StudentPerformanceProfile) -> Set[str]:
        """Subject ids in the answer that are not subjects of this profile.

        Models tend to echo subject names here; stored rows need real subject ids.
        """
        known = {subject.id for subject in profile.subjects}
        referenced = {
            item.subject_id
            for item in [*analysis.insights, *analysis.suggestions]
            if item.subject_id is not None
        }
        return referenced - known

    def _describe(self, error: Exception) -> str:
        if isinstance(error, ValidationError):
            return f"schema validation failed with {error.error_count()} error(s)"
        return f"unreadable response: {error!r}"
