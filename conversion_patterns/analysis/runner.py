"""Config-driven runs: load observations, search, store results and report."""

import asyncio
import logging
import os
from typing import Any, Dict, Optional

from contracts import AnalysisConfig, AnalysisStatus
from conversion_patterns.analysis.engine import PatternSearchEngine, SearchOutcome
from conversion_patterns.analysis.strategies import get_analysis_type
from conversion_patterns.core.errors import UpstreamIOError
from conversion_patterns.core.reproducibility import compute_file_hash
from conversion_patterns.core.result_store import ResultStore
from conversion_patterns.data.adapters.factory import build_adapter_from_config, load_yaml
from conversion_patterns.utils.path_resolver import resolve_paths_in_config


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/analysis.yaml"


def load_run_config(config_path: str) -> Dict[str, Any]:
    """Read the run YAML and resolve its path-like keys."""
    cfg = load_yaml(config_path)
    return resolve_paths_in_config(cfg)


def _type_section(cfg: Dict[str, Any], analysis_type: str) -> Dict[str, Any]:
    return ((cfg.get("analysis_types") or {}).get(analysis_type)) or {}


def build_analysis_config(
    cfg: Dict[str, Any],
    analysis_type: str,
    **overrides: Any,
) -> AnalysisConfig:
    """
    Merge `analysis` defaults, the type's own `analysis` section and
    explicit overrides (None values are ignored).
    """
    data = dict(cfg.get("analysis") or {})
    data.update(_type_section(cfg, analysis_type).get("analysis") or {})
    data["analysis_type"] = analysis_type
    return AnalysisConfig.from_dict(data).with_overrides(**overrides)


def build_result_store(
    cfg: Dict[str, Any],
    output_root: Optional[str] = None,
    fmt: Optional[str] = None,
) -> ResultStore:
    io_cfg = cfg.get("io") or {}
    return ResultStore(
        output_root=output_root or io_cfg.get("output_root", "outputs"),
        fmt=fmt or io_cfg.get("format", "csv"),
    )


async def run_configured_analysis_async(
    cfg: Dict[str, Any],
    analysis_type: str,
    input_path: Optional[str] = None,
    ranking_rule: Optional[str] = None,
    time_budget_seconds: Optional[float] = None,
    output_root: Optional[str] = None,
    fmt: Optional[str] = None,
) -> SearchOutcome:
    """
    Run one analysis type as configured in `cfg`.

    The ranked table is replaced in the result store and the report is
    written next to it. Insufficient-data runs leave the stored output alone.
    """
    spec = get_analysis_type(analysis_type)
    config = build_analysis_config(
        cfg,
        analysis_type,
        ranking_rule=ranking_rule,
        time_budget_seconds=time_budget_seconds,
    )

    adapter_cfg = _type_section(cfg, analysis_type).get("adapter")
    if adapter_cfg is None and input_path is None:
        raise ValueError(f"No input configured for analysis type: {analysis_type}")
    adapter = build_adapter_from_config(adapter_cfg, spec, input_path=input_path)

    store = build_result_store(cfg, output_root=output_root, fmt=fmt)
    engine = PatternSearchEngine(config, sink=store.sink_for(analysis_type))
    outcome = await engine.run_async(adapter.iter_observations())

    report = outcome.report
    report.metadata["source"] = adapter.source_name
    # hashing and the report write are file I/O, kept off the event loop
    loop = asyncio.get_running_loop()
    source_path = getattr(adapter, "input_path", None)
    if source_path and os.path.isfile(source_path):
        report.metadata["source_sha256"] = await loop.run_in_executor(None, compute_file_hash, source_path)

    if report.status != AnalysisStatus.INSUFFICIENT_DATA:
        try:
            path = await loop.run_in_executor(None, store.save_report, report)
        except OSError as exc:
            raise UpstreamIOError(f"Failed to store {analysis_type} report: {exc}") from exc
        logger.info(f"Report written to {path}")
    return outcome
