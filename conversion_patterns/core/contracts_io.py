"""Contracts I/O: read/write analysis contracts as JSON files."""

import json
import os
from typing import Any, Type, TypeVar

from contracts import AnalysisConfig, AnalysisReport


T = TypeVar("T")


class ContractsIO:
    """Utility class for reading and writing contracts."""
    
    @staticmethod
    def save_json(obj: Any, path: str) -> None:
        """Save object to JSON file."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        
        if hasattr(obj, "to_json"):
            content = obj.to_json()
        else:
            content = json.dumps(obj, indent=2, ensure_ascii=False)
        
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    
    @staticmethod
    def load_json(path: str, target_class: Type[T]) -> T:
        """Load JSON file and convert to target class."""
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
        
        if hasattr(target_class, "from_json"):
            return target_class.from_json(content)
        else:
            data = json.loads(content)
            return target_class(**data)
    
    @staticmethod
    def save_report(report: AnalysisReport, path: str) -> None:
        """Save analysis report."""
        ContractsIO.save_json(report, path)
    
    @staticmethod
    def load_report(path: str) -> AnalysisReport:
        """Load analysis report."""
        return ContractsIO.load_json(path, AnalysisReport)
    
    @staticmethod
    def save_config(config: AnalysisConfig, path: str) -> None:
        """Save the effective analysis config."""
        ContractsIO.save_json(config, path)
    
    @staticmethod
    def load_config(path: str) -> AnalysisConfig:
        """Load an analysis config."""
        return ContractsIO.load_json(path, AnalysisConfig)
