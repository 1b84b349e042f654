"""Utility functions for the FocosBR pipeline."""

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Setup structured logger."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, (level or os.getenv('LOG_LEVEL', 'INFO')).upper()))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def load_config(config_path: str) -> dict:
    """Load YAML configuration file."""
    with open(config_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def compute_sha256(filepath: Path) -> str:
    """Compute SHA256 checksum of a file."""
    sha256 = hashlib.sha256()
    with open(filepath, 'rb') as f:
        for chunk in iter(lambda: f.read(4096), b''):
            sha256.update(chunk)
    return sha256.hexdigest()


def write_json(filepath: Path, data: Any) -> Path:
    """Write data as UTF-8 JSON, keeping accented region names readable."""
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return filepath


def read_json(filepath: Path, encoding: str = 'utf-8') -> Any:
    """Read a JSON document (UTF-8 unless told otherwise)."""
    with open(filepath, 'r', encoding=encoding) as f:
        return json.load(f)


def ensure_dir(path: Path) -> Path:
    """Ensure directory exists, create if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path
