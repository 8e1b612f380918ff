"""Run a conversion pattern analysis from the command line."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from contracts import RankingRule
from conversion_patterns.analysis.runner import (
    DEFAULT_CONFIG_PATH,
    load_run_config,
    run_configured_analysis_async,
)
from conversion_patterns.analysis.strategies import analysis_types
from conversion_patterns.core.errors import AnalysisError
from conversion_patterns.core.logger import setup_logger
from conversion_patterns.core.result_store import RESULT_FORMATS


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find entity pairs that predict a conversion")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Run config YAML")
    parser.add_argument(
        "--analysis-type",
        required=True,
        choices=analysis_types.names(),
        help="Which conversion to analyze",
    )
    parser.add_argument("--input", dest="input_path", help="Override the observation table path")
    parser.add_argument("--output-root", help="Override io.output_root")
    parser.add_argument("--format", dest="fmt", choices=RESULT_FORMATS, help="Result table format")
    parser.add_argument(
        "--ranking-rule",
        choices=[r.value for r in RankingRule],
        help="Override the analysis type's ranking rule",
    )
    parser.add_argument("--time-budget", type=float, help="Wall-clock budget in seconds")
    parser.add_argument("--log-file", help="Also log to this file")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Prints the run report as JSON."""
    args = build_parser().parse_args(argv)
    setup_logger(
        "conversion_patterns",
        log_file=args.log_file,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        cfg = load_run_config(args.config)
        outcome = asyncio.run(
            run_configured_analysis_async(
                cfg,
                args.analysis_type,
                input_path=args.input_path,
                ranking_rule=args.ranking_rule,
                time_budget_seconds=args.time_budget,
                output_root=args.output_root,
                fmt=args.fmt,
            )
        )
    except (AnalysisError, ValueError, OSError) as exc:
        logger.error(f"Analysis failed: {exc}")
        return 1

    print(outcome.report.to_json())
    return 0


if __name__ == "__main__":
    sys.exit(main())
