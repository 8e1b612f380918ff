"""API request/response schemas."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from contracts import RankingRule


class AnalysisTypeInfo(BaseModel):
    """Registered analysis type."""
    name: str
    entity_kind: str
    default_ranking_rule: str
    description: str


class RunRequest(BaseModel):
    """Body of a run trigger; every field is optional."""
    input_path: Optional[str] = None
    ranking_rule: Optional[RankingRule] = None
    time_budget_seconds: Optional[float] = Field(default=None, gt=0)


class RunResponse(BaseModel):
    """Outcome of a run trigger."""
    success: bool
    status: str
    message: str
    warning: Optional[str] = None
    stats: Dict[str, Any]
    top_combinations: List[Dict[str, Any]] = []


class ResultsResponse(BaseModel):
    """Stored ranked combinations of one analysis type."""
    analysis_type: str
    count: int
    analyzed_at: Optional[str] = None
    rows: List[Dict[str, Any]]


class ErrorResponse(BaseModel):
    """Failure envelope."""
    success: bool = False
    error: str
