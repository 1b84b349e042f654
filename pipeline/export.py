"""JSON artifacts consumed by the dashboard."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional, Sequence

from . import __version__
from .exceptions import OutputWriteError
from .models import BRAZIL_BOUNDS, Bounds, EnrichedRecord
from .process.statistics import RunStatistics, dashboard_summary
from .utils import compute_sha256, ensure_dir, setup_logger, write_json

logger = setup_logger(__name__)

FULL_DATASET = 'detections_full.json'
DASHBOARD_DATASET = 'detections_dashboard.json'
STATISTICS_FILE = 'statistics.json'
SUMMARY_FILE = 'processing_summary.json'

ARTIFACTS = (FULL_DATASET, DASHBOARD_DATASET, STATISTICS_FILE, SUMMARY_FILE)


def _write(output_dir: Path, filename: str, data) -> Path:
    try:
        ensure_dir(output_dir)
        path = write_json(output_dir / filename, data)
    except OSError as e:
        raise OutputWriteError(f"Cannot write {filename} to {output_dir}: {e}") from e

    size = f"{len(data)} items" if isinstance(data, list) else "object"
    logger.info(f"   Saved {filename}: {size}")
    return path


def save_statistics(output_dir: Path, statistics: RunStatistics) -> Path:
    """Write the statistics document on its own (also used on failed runs)."""
    return _write(output_dir, STATISTICS_FILE, statistics.to_dict())


def save_processing_summary(
    output_dir: Path,
    statistics: RunStatistics,
    status: str,
    bounds: Bounds = BRAZIL_BOUNDS,
    references: Optional[Dict[str, int]] = None,
    checksums: Optional[Dict[str, str]] = None
) -> Path:
    """Write the run report: status, configuration and headline figures."""
    summary = {
        'generated_at': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        'version': __version__,
        'status': status,
        'bounds': bounds.to_dict(),
        'references': references or {},
        'summary': dashboard_summary(statistics),
        'classification': statistics.to_dict()['classification'],
        'elapsed_seconds': round(statistics.elapsed_seconds, 3),
        'checksums': checksums or {},
    }
    return _write(output_dir, SUMMARY_FILE, summary)


def save_results(
    output_dir: Path,
    records: Sequence[EnrichedRecord],
    statistics: RunStatistics,
    bounds: Bounds = BRAZIL_BOUNDS,
    references: Optional[Dict[str, int]] = None,
    status: Optional[str] = None
) -> Dict[str, Path]:
    """
    Write the full dataset, dashboard dataset, statistics and summary.

    Args:
        output_dir: Destination directory, created if missing
        records: Enriched records of the run
        statistics: Merged run statistics
        bounds: Bounding box used for ingestion
        references: Dict of {category: loaded feature count}
        status: Summary status, defaults to 'cancelled' or 'success'

    Returns:
        Dict of {artifact name: written path}

    Raises:
        OutputWriteError: A file could not be written
    """
    logger.info(f"Saving results to {output_dir}")

    paths = {
        FULL_DATASET: _write(output_dir, FULL_DATASET, [r.to_dict() for r in records]),
        DASHBOARD_DATASET: _write(output_dir, DASHBOARD_DATASET,
                                  [r.to_dashboard_dict() for r in records]),
        STATISTICS_FILE: save_statistics(output_dir, statistics),
    }
    checksums = {name: compute_sha256(path) for name, path in paths.items()}

    if status is None:
        status = 'cancelled' if statistics.cancelled else 'success'
    paths[SUMMARY_FILE] = save_processing_summary(output_dir, statistics, status,
                                                  bounds, references, checksums)
    return paths
