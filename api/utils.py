"""Utility functions for the API."""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pipeline.utils import read_json, setup_logger

logger = setup_logger(__name__)


def processed_dir() -> Path:
    """Directory holding the pipeline outputs."""
    return Path(os.getenv('PROCESSED_DIR', 'data/processed'))


class ArtifactCache:
    """
    Parsed JSON artifacts keyed by path.

    An entry is reloaded when its file's modification time changes, and
    dropped when the file disappears.
    """

    def __init__(self):
        self._entries: Dict[str, Tuple[int, Any]] = {}

    def load(self, path: Path) -> Optional[Any]:
        key = str(path.resolve())

        if not path.exists():
            self._entries.pop(key, None)
            return None

        mtime = path.stat().st_mtime_ns
        cached = self._entries.get(key)
        if cached is not None and cached[0] == mtime:
            return cached[1]

        logger.info(f"Loading {path}")
        data = read_json(path)
        self._entries[key] = (mtime, data)
        return data

    def clear(self) -> None:
        self._entries.clear()

    def status(self) -> dict:
        return {'size': len(self._entries), 'files': list(self._entries)}


def filter_detections(detections: list, **filters: Optional[str]) -> list:
    """Keep detections whose fields equal every non-empty filter value."""
    active = {key: value for key, value in filters.items() if value}
    if not active:
        return detections
    return [d for d in detections if all(d.get(key) == value for key, value in active.items())]


def get_attribution() -> list:
    """Return data attribution list."""
    return [
        "INPE Programa Queimadas: Active fire detections",
        "IBGE: Municipality and biome boundaries",
        "MMA / ICMBio: Conservation units",
        "FUNAI: Indigenous lands"
    ]
