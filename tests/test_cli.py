"""Test the analyze command line entry point."""

import json

import pytest
import yaml
from conversion_patterns.cli.analyze import build_parser, main
from conversion_patterns.core.result_store import ResultStore


@pytest.fixture
def config_file(tmp_path, run_config):
    path = tmp_path / "analysis.yaml"
    path.write_text(yaml.safe_dump(run_config), encoding="utf-8")
    return path


def test_run_prints_report_and_stores_rows(config_file, run_config, capsys):
    """A full run exits 0, prints the report and writes the table."""
    code = main(["--config", str(config_file), "--analysis-type", "subscription"])
    
    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["status"] == "completed"
    assert report["success"] is True
    assert report["stats"]["combinations_kept"] == 1
    assert report["metadata"]["source_sha256"]
    
    store = ResultStore(output_root=run_config["io"]["output_root"])
    frame = store.load_results("subscription")
    assert frame["entity_id_1"].tolist() == ["A"]
    assert frame["entity_id_2"].tolist() == ["B"]
    assert store.load_report("subscription").status.value == "completed"


def test_ranking_rule_and_format_overrides(config_file, run_config, capsys):
    """Command line flags override the config file."""
    code = main(
        [
            "--config", str(config_file),
            "--analysis-type", "subscription",
            "--ranking-rule", "lift_times_conversions_descending",
            "--format", "parquet",
        ]
    )
    
    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["ranking_rule"] == "lift_times_conversions_descending"
    store = ResultStore(output_root=run_config["io"]["output_root"], fmt="parquet")
    assert store.results_path("subscription").exists()


def test_missing_input_fails(config_file, tmp_path):
    """Unreadable input exits 1 instead of raising."""
    code = main(
        [
            "--config", str(config_file),
            "--analysis-type", "subscription",
            "--input", str(tmp_path / "missing.csv"),
        ]
    )
    assert code == 1


def test_type_without_input_fails(config_file):
    """A type with no adapter section and no --input exits 1."""
    assert main(["--config", str(config_file), "--analysis-type", "copy"]) == 1


def test_parser_rejects_unknown_type():
    """argparse limits --analysis-type to registered types."""
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--analysis-type", "follow"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
