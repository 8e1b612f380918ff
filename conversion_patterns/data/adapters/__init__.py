"""Observation adapters: load exposure rows for an analysis type."""

from .base_adapter import BaseObservationAdapter
from .table import TableObservationAdapter, FrameObservationAdapter
from .factory import build_adapter_from_config, load_yaml

__all__ = [
    "BaseObservationAdapter",
    "TableObservationAdapter",
    "FrameObservationAdapter",
    "build_adapter_from_config",
    "load_yaml",
]
