"""Two-branch result returned by the remote analysis path."""

from dataclasses import dataclass
from typing import Union

from insight_service.core.errors import AnalysisError
from insight_service.schemas.analysis import RemoteAnalysis


@dataclass(frozen=True)
class Ok:
    value: RemoteAnalysis


@dataclass(frozen=True)
class Err:
    error: AnalysisError


AnalysisResult = Union[Ok, Err]
