# conversion_patterns/data/adapters/table.py
from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional

import pandas as pd

from conversion_patterns.analysis.strategies import AnalysisTypeSpec
from .base_adapter import BaseObservationAdapter


class TableObservationAdapter(BaseObservationAdapter):
    """
    Reads an exported engagement table from CSV or parquet.

    CSV is streamed in chunks; parquet is read once (pyarrow) and sliced.
    """

    def __init__(
        self,
        spec: AnalysisTypeSpec,
        input_path: str,
        fmt: Optional[str] = None,
        encoding: Optional[str] = "utf-8",
        chunksize: int = 100_000,
        drop_unexposed: bool = True,
    ):
        super().__init__(spec, chunksize=chunksize, drop_unexposed=drop_unexposed)
        self.input_path = input_path
        self.fmt = fmt or _infer_format(input_path)
        self.encoding = encoding

    @property
    def source_name(self) -> str:
        return self.input_path

    def iter_raw_chunks(self, chunksize: int) -> Iterator[pd.DataFrame]:
        wanted = set(self.spec.source_columns)
        # identifiers stay strings, otherwise numeric ids come back as floats
        id_columns = [self.spec.user_column, self.spec.entity_column]
        if self.spec.display_name_column:
            id_columns.append(self.spec.display_name_column)

        if self.fmt == "csv":
            reader = pd.read_csv(
                self.input_path,
                usecols=lambda c: c in wanted,
                dtype={c: str for c in id_columns},
                # tickers like "NA" or "NULL" are ids, only empty cells are missing
                keep_default_na=False,
                na_values={c: [""] for c in wanted},
                encoding=self.encoding,
                chunksize=chunksize,
            )
            with reader:
                for chunk in reader:
                    yield chunk
            return

        df = pd.read_parquet(self.input_path, engine="pyarrow")
        df = df[[c for c in df.columns if c in wanted]]
        for c in id_columns:
            if c in df.columns:
                df[c] = df[c].where(df[c].isna(), df[c].astype(str))
        for start in range(0, len(df), chunksize):
            yield df.iloc[start:start + chunksize]


class FrameObservationAdapter(BaseObservationAdapter):
    """Wraps an in-memory DataFrame that already holds the source columns."""

    def __init__(
        self,
        spec: AnalysisTypeSpec,
        frame: pd.DataFrame,
        chunksize: int = 100_000,
        drop_unexposed: bool = True,
    ):
        super().__init__(spec, chunksize=chunksize, drop_unexposed=drop_unexposed)
        self.frame = frame

    @property
    def source_name(self) -> str:
        return f"DataFrame[{len(self.frame)} rows]"

    def iter_raw_chunks(self, chunksize: int) -> Iterator[pd.DataFrame]:
        for start in range(0, len(self.frame), chunksize):
            yield self.frame.iloc[start:start + chunksize]


def _infer_format(path: str) -> str:
    suffix = Path(path).suffix.lower()
    if suffix in (".parquet", ".pq"):
        return "parquet"
    if suffix in (".csv", ".txt", ".gz"):
        return "csv"
    raise ValueError(f"Cannot infer table format from path: {path}")
