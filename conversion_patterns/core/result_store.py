"""Result store: one output directory per analysis type, replaced on every run."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from contracts import AnalysisReport, RankedCombination, OUTPUT_COLUMNS
from conversion_patterns.core.contracts_io import ContractsIO


logger = logging.getLogger(__name__)

RESULT_FORMATS = ("csv", "parquet")

# identifiers and labels; read back as strings so "0123" stays "0123"
TEXT_COLUMNS = [
    "analysis_type",
    "entity_id_1",
    "entity_id_2",
    "display_name_1",
    "display_name_2",
    "analyzed_at",
]


class ResultSink(ABC):
    """
    Destination of ranked combinations.
    
    One logical writer per run: `begin` drops the previous output of the
    analysis type, `write_batch` is called with consecutive rank ranges,
    `finish` makes the new output visible.
    """
    
    @abstractmethod
    def begin(self, analysis_type: str) -> None:
        """Delete prior output for this analysis type."""
        pass
    
    @abstractmethod
    def write_batch(self, records: List[RankedCombination]) -> None:
        """Append one batch of ranked rows."""
        pass
    
    def finish(self) -> None:
        """Flush buffered rows."""
        pass


class InMemoryResultSink(ResultSink):
    """Keeps results in memory (tests, API previews)."""
    
    def __init__(self):
        self.tables: Dict[str, List[RankedCombination]] = {}
        self.batch_sizes: List[int] = []
        self._current: Optional[str] = None
    
    def begin(self, analysis_type: str) -> None:
        self._current = analysis_type
        self.tables[analysis_type] = []
        self.batch_sizes = []
    
    def write_batch(self, records: List[RankedCombination]) -> None:
        if self._current is None:
            raise RuntimeError("write_batch called before begin")
        self.tables[self._current].extend(records)
        self.batch_sizes.append(len(records))
    
    def finish(self) -> None:
        self._current = None
    
    def rows(self, analysis_type: str) -> List[RankedCombination]:
        """Stored rows for an analysis type (empty when never written)."""
        return list(self.tables.get(analysis_type, []))


class TableResultSink(ResultSink):
    """Writes results as a CSV (appended per batch) or parquet file."""
    
    def __init__(self, path: Path, fmt: str = "csv", stale_paths: Optional[List[Path]] = None):
        if fmt not in RESULT_FORMATS:
            raise ValueError(f"Unsupported result format: {fmt!r}")
        self.path = Path(path)
        self.fmt = fmt
        # other files holding the same analysis type's rows (e.g. other format)
        self.stale_paths = [Path(p) for p in stale_paths or []]
        self._frames: List[pd.DataFrame] = []
        self._rows_written = 0
        self._header_written = False
    
    @property
    def rows_written(self) -> int:
        return self._rows_written
    
    def begin(self, analysis_type: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        for path in [self.path, *self.stale_paths]:
            if path.exists():
                path.unlink()
                logger.info(f"Deleted previous {analysis_type} results: {path}")
        self._frames = []
        self._rows_written = 0
        self._header_written = False
    
    def write_batch(self, records: List[RankedCombination]) -> None:
        frame = _records_to_frame(records)
        if self.fmt == "csv":
            frame.to_csv(
                self.path,
                mode="a",
                header=not self._header_written,
                index=False,
                encoding="utf-8",
            )
            self._header_written = True
        else:
            self._frames.append(frame)
        self._rows_written += len(records)
    
    def finish(self) -> None:
        if self.fmt == "csv":
            if not self._header_written:
                _records_to_frame([]).to_csv(self.path, index=False, encoding="utf-8")
                self._header_written = True
            return
        
        frame = pd.concat(self._frames, ignore_index=True) if self._frames else _records_to_frame([])
        frame.to_parquet(self.path, index=False, engine="pyarrow")
        self._frames = []


class ResultStore:
    """Manages the output root: results table and report per analysis type."""
    
    def __init__(self, output_root: str = "outputs", fmt: str = "csv"):
        if fmt not in RESULT_FORMATS:
            raise ValueError(f"Unsupported result format: {fmt!r}")
        self.output_root = Path(output_root)
        self.fmt = fmt
    
    def get_analysis_dir(self, analysis_type: str) -> Path:
        """Directory holding one analysis type's output."""
        return self.output_root / analysis_type
    
    def results_path(self, analysis_type: str, fmt: Optional[str] = None) -> Path:
        """Path of the combinations table."""
        return self.get_analysis_dir(analysis_type) / f"combinations.{fmt or self.fmt}"
    
    def report_path(self, analysis_type: str) -> Path:
        """Path of the run report."""
        return self.get_analysis_dir(analysis_type) / "report.json"
    
    def sink_for(self, analysis_type: str) -> TableResultSink:
        """Create a sink writing this analysis type's table."""
        # a table left in the other format is dropped too, readers never see stale rows
        stale = [self.results_path(analysis_type, fmt) for fmt in RESULT_FORMATS if fmt != self.fmt]
        return TableResultSink(self.results_path(analysis_type), fmt=self.fmt, stale_paths=stale)
    
    def save_report(self, report: AnalysisReport) -> Path:
        """Write the report next to the results table."""
        path = self.report_path(report.analysis_type)
        ContractsIO.save_report(report, str(path))
        return path
    
    def load_report(self, analysis_type: str) -> Optional[AnalysisReport]:
        """Latest report, or None when the type never ran."""
        path = self.report_path(analysis_type)
        if not path.exists():
            return None
        return ContractsIO.load_report(str(path))
    
    def has_results(self, analysis_type: str) -> bool:
        """Check if a results table exists."""
        return any(self.results_path(analysis_type, fmt).exists() for fmt in RESULT_FORMATS)
    
    def load_results(self, analysis_type: str, limit: Optional[int] = None) -> pd.DataFrame:
        """Read stored rows ordered by rank."""
        for fmt in RESULT_FORMATS:
            path = self.results_path(analysis_type, fmt)
            if not path.exists():
                continue
            if fmt == "csv":
                frame = pd.read_csv(
                    path,
                    dtype={c: str for c in TEXT_COLUMNS},
                    # only empty cells are missing; literal "NA" or "null" ids stay text
                    keep_default_na=False,
                    na_values={c: [""] for c in OUTPUT_COLUMNS},
                    encoding="utf-8",
                )
            else:
                frame = pd.read_parquet(path, engine="pyarrow")
            frame = frame.sort_values("rank", kind="stable").reset_index(drop=True)
            if limit is not None:
                frame = frame.head(limit)
            return frame
        raise FileNotFoundError(f"No stored results for analysis type: {analysis_type}")
    
    def list_analyses(self) -> List[str]:
        """Analysis types with stored output."""
        if not self.output_root.exists():
            return []
        return sorted(
            d.name for d in self.output_root.iterdir()
            if d.is_dir() and (self.has_results(d.name) or self.report_path(d.name).exists())
        )


def _records_to_frame(records: List[RankedCombination]) -> pd.DataFrame:
    return pd.DataFrame([r.to_row() for r in records], columns=OUTPUT_COLUMNS)


def frame_to_records(frame: pd.DataFrame) -> List[dict]:
    """DataFrame rows as JSON-safe dicts (NaN -> None)."""
    cleaned = frame.astype(object).where(pd.notna(frame), None)
    return cleaned.to_dict(orient="records")
