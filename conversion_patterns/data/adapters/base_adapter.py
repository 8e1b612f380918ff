# conversion_patterns/data/adapters/base_adapter.py
from __future__ import annotations

import logging
from typing import Iterator

import pandas as pd

from contracts import CANONICAL_COLUMNS, Observation
from conversion_patterns.analysis.strategies import AnalysisTypeSpec
from conversion_patterns.core.errors import UpstreamIOError


logger = logging.getLogger(__name__)


class BaseObservationAdapter:
    """
    Loader boundary between the upstream engagement tables and the search.

    Pipeline: raw chunk -> canonical chunk -> Observation rows.

    Subclasses only implement `iter_raw_chunks` (how to read the source).
    Column mapping comes from the AnalysisTypeSpec, so one adapter class
    serves every analysis type. Pagination, auth and time-window scoping
    happen upstream; the adapter sees an already filtered rowset.
    """

    def __init__(
        self,
        spec: AnalysisTypeSpec,
        chunksize: int = 100_000,
        drop_unexposed: bool = True,
    ):
        if chunksize < 1:
            raise ValueError("chunksize must be >= 1")
        self.spec = spec
        self.chunksize = chunksize
        self.drop_unexposed = drop_unexposed

    @property
    def source_name(self) -> str:
        return self.__class__.__name__

    # -------- subclasses: read raw rows --------
    def iter_raw_chunks(self, chunksize: int) -> Iterator[pd.DataFrame]:
        """Yield raw DataFrame chunks carrying the analysis type's source columns."""
        raise NotImplementedError

    # -------- shared: column mapping --------
    def canonicalize(self, raw_df: pd.DataFrame) -> pd.DataFrame:
        return self.spec.canonicalize(raw_df, drop_unexposed=self.drop_unexposed)

    def iter_canonical_chunks(self) -> Iterator[pd.DataFrame]:
        """Canonical chunks; read failures surface as UpstreamIOError."""
        rows = 0
        try:
            for raw in self.iter_raw_chunks(chunksize=self.chunksize):
                cdf = self.canonicalize(raw)
                rows += len(cdf)
                if len(cdf) > 0:
                    yield cdf
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise UpstreamIOError(f"Failed to read observations from {self.source_name}: {exc}") from exc
        logger.info(f"Loaded {rows} {self.spec.name} observation rows from {self.source_name}")

    def iter_observations(self) -> Iterator[Observation]:
        """Stream Observation rows."""
        for cdf in self.iter_canonical_chunks():
            for row in cdf.to_dict(orient="records"):
                yield Observation.from_dict(row)

    def load_frame(self) -> pd.DataFrame:
        """Whole canonical rowset in memory."""
        chunks = list(self.iter_canonical_chunks())
        if not chunks:
            return pd.DataFrame(columns=CANONICAL_COLUMNS)
        return pd.concat(chunks, ignore_index=True)
