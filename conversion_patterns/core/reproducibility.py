"""Reproducibility: config and input fingerprints stamped into analysis reports."""

import hashlib
import json
from typing import Any, Dict


def compute_file_hash(file_path: str) -> str:
    """Compute SHA256 hash of a file."""
    sha256_hash = hashlib.sha256()
    
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(4096), b""):
            sha256_hash.update(chunk)
    
    return sha256_hash.hexdigest()


def compute_dict_hash(data: Dict[str, Any]) -> str:
    """Compute hash of a dictionary."""
    json_str = json.dumps(data, sort_keys=True, ensure_ascii=False, default=str)
    return hashlib.sha256(json_str.encode()).hexdigest()
