"""API routes for conversion pattern analyses."""

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from conversion_patterns.analysis.runner import (
    DEFAULT_CONFIG_PATH,
    build_result_store,
    load_run_config,
    run_configured_analysis_async,
)
from conversion_patterns.analysis.strategies import analysis_types, get_analysis_type
from conversion_patterns.api.schemas import (
    AnalysisTypeInfo,
    ErrorResponse,
    ResultsResponse,
    RunRequest,
    RunResponse,
)
from conversion_patterns.core.errors import UnknownAnalysisTypeError, UpstreamIOError
from conversion_patterns.core.result_store import frame_to_records

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analyses", tags=["analyses"])

CONFIG_ENV_VAR = "CONVERSION_PATTERNS_CONFIG"


def get_run_config() -> Dict[str, Any]:
    """Run config named by $CONVERSION_PATTERNS_CONFIG (overridable in tests)."""
    return load_run_config(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@router.get("", response_model=List[AnalysisTypeInfo])
async def list_analysis_types() -> List[AnalysisTypeInfo]:
    """List registered analysis types."""
    return [
        AnalysisTypeInfo(
            name=spec.name,
            entity_kind=spec.entity_kind,
            default_ranking_rule=spec.default_ranking_rule.value,
            description=spec.description,
        )
        for spec in analysis_types.list().values()
    ]


@router.post(
    "/{analysis_type}/run",
    response_model=RunResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def run_analysis(
    analysis_type: str,
    request: Optional[RunRequest] = None,
    cfg: Dict[str, Any] = Depends(get_run_config),
):
    """Run the search for one analysis type and replace its stored results."""
    request = request or RunRequest()
    try:
        outcome = await run_configured_analysis_async(
            cfg,
            analysis_type,
            input_path=request.input_path,
            ranking_rule=request.ranking_rule.value if request.ranking_rule else None,
            time_budget_seconds=request.time_budget_seconds,
        )
    except UnknownAnalysisTypeError as exc:
        return _error(400, f"Invalid analysis_type: {exc}")
    except ValueError as exc:
        return _error(400, str(exc))
    except UpstreamIOError as exc:
        logger.error(f"Error in {analysis_type} pattern analysis: {exc}")
        return _error(500, str(exc))

    report = outcome.report
    data = report.to_dict()
    return RunResponse(
        success=report.success,
        status=report.status.value,
        message=f"{analysis_type} pattern analysis finished with status {report.status.value}",
        warning=report.warning,
        stats=data["stats"],
        top_combinations=data["top_combinations"],
    )


@router.get(
    "/{analysis_type}/results",
    response_model=ResultsResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_results(
    analysis_type: str,
    limit: Optional[int] = Query(default=None, ge=1),
    cfg: Dict[str, Any] = Depends(get_run_config),
):
    """Stored ranked combinations, best first."""
    try:
        get_analysis_type(analysis_type)
    except UnknownAnalysisTypeError as exc:
        return _error(400, f"Invalid analysis_type: {exc}")

    store = build_result_store(cfg)
    if not store.has_results(analysis_type):
        return _error(404, f"No stored results for analysis type: {analysis_type}")

    frame = store.load_results(analysis_type, limit=limit)
    report = store.load_report(analysis_type)
    return ResultsResponse(
        analysis_type=analysis_type,
        count=len(frame),
        analyzed_at=report.analyzed_at if report else None,
        rows=frame_to_records(frame),
    )
