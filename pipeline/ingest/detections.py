"""Heat spot detection ingestion from delimited text (INPE / FIRMS style CSV)."""

import csv
import math
from datetime import datetime, timezone
from io import StringIO
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import pandas as pd

from ..models import (
    BRAZIL_BOUNDS,
    DEFAULT_CONFIDENCE,
    DEFAULT_RADIATIVE_POWER,
    DEFAULT_SATELLITE,
    DEFAULT_TEMPERATURE,
    Bounds,
    DetectionRecord,
)
from ..utils import setup_logger

logger = setup_logger(__name__)

# Logical field -> accepted header names, in priority order
COLUMN_SYNONYMS: Dict[str, Tuple[str, ...]] = {
    'latitude': ('lat', 'latitude', 'y'),
    'longitude': ('lon', 'lng', 'longitude', 'x'),
    'timestamp': ('data', 'date', 'data_hora', 'data_hora_gmt', 'datetime'),
    'satellite': ('satelite', 'satellite', 'sat'),
    'confidence': ('confianca', 'confidence', 'conf'),
    'temperature': ('temperatura', 'temp', 'temperature'),
    'radiative_power': ('potencia', 'power', 'frp'),
}

TIMESTAMP_FORMATS = (
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%dT%H:%M:%S',
    '%Y/%m/%d %H:%M:%S',
    '%d/%m/%Y %H:%M:%S',
    '%Y-%m-%d %H:%M',
    '%d/%m/%Y %H:%M',
    '%Y-%m-%d',
    '%d/%m/%Y',
)

DEFAULT_CHUNKSIZE = 10_000


def resolve_columns(header: List[str]) -> Dict[str, str]:
    """
    Map logical fields to the actual header names of a file.

    Header names are compared stripped, unquoted and lower-cased. For each
    field the first synonym present in the header wins.

    Args:
        header: Column names as they appear in the file

    Returns:
        Dict of {logical_field: column_name} for the fields found
    """
    normalized = {str(col).strip().strip('"').lower(): col for col in header}

    columns = {}
    for field_name, synonyms in COLUMN_SYNONYMS.items():
        for synonym in synonyms:
            if synonym in normalized:
                columns[field_name] = normalized[synonym]
                break

    return columns


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """Parse a detection date/time into an aware UTC datetime, or None."""
    if not text:
        return None

    value = text.strip()
    if value.endswith('Z'):
        value = value[:-1]

    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_detections(
    raw_text: str,
    bounds: Bounds = BRAZIL_BOUNDS,
    source: str = "<text>",
    chunksize: int = DEFAULT_CHUNKSIZE
) -> Iterator[DetectionRecord]:
    """
    Parse CSV text into validated detection records.

    Rows are produced lazily, chunk by chunk. Rows with missing or
    non-numeric coordinates, or coordinates outside `bounds`, are skipped.
    Fields are split on every comma and stray double quotes are stripped,
    so an unbalanced quote only affects its own row. If the tokenizer still
    fails, the rest of the text is abandoned and the rows already produced
    are kept.

    Args:
        raw_text: Full CSV content, first line is the header
        bounds: Accepted bounding box
        source: Name recorded on each record (usually the file name)
        chunksize: Rows tokenized per pandas chunk

    Yields:
        DetectionRecord for every valid row
    """
    if not raw_text or not raw_text.strip():
        return

    try:
        reader = pd.read_csv(
            StringIO(raw_text),
            sep=',',
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            skip_blank_lines=True,
            on_bad_lines='skip',
            quoting=csv.QUOTE_NONE,
            index_col=False,
            chunksize=chunksize,
        )
    except pd.errors.EmptyDataError:
        return
    except pd.errors.ParserError as e:
        logger.error(f"{source}: unreadable CSV header: {e}")
        return

    ingested_at = datetime.now(timezone.utc)
    columns = None
    row_number = 0

    with reader:
        for chunk in _chunks(reader, source):
            if columns is None:
                columns = resolve_columns(list(chunk.columns))
                if 'latitude' not in columns or 'longitude' not in columns:
                    logger.warning(f"{source}: no latitude/longitude column in header "
                                   f"{list(chunk.columns)}")
                    return

            positions = {name: chunk.columns.get_loc(col) for name, col in columns.items()}

            for values in chunk.itertuples(index=False, name=None):
                row_number += 1
                fields = {name: _text(values[pos]) for name, pos in positions.items()}
                record = _build_record(fields, bounds, source, row_number, ingested_at)
                if record is not None:
                    yield record


def _chunks(reader, source: str) -> Iterator[pd.DataFrame]:
    chunks = iter(reader)
    while True:
        try:
            yield next(chunks)
        except StopIteration:
            return
        except pd.errors.ParserError as e:
            logger.error(f"{source}: unreadable CSV content, skipping the rest of the file: {e}")
            return


def find_detection_files(raw_dir: Path) -> List[Path]:
    """List the CSV files of a directory, sorted by name, hidden files ignored."""
    return sorted(
        path for path in raw_dir.iterdir()
        if path.is_file() and path.suffix.lower() == '.csv' and not path.name.startswith('.')
    )


def read_detection_files(raw_dir: Path, bounds: Bounds = BRAZIL_BOUNDS) -> Iterator[DetectionRecord]:
    """
    Lazily parse every CSV file of a directory.

    Args:
        raw_dir: Directory with raw detection CSVs
        bounds: Accepted bounding box

    Yields:
        DetectionRecord for every valid row of every file
    """
    if not raw_dir.is_dir():
        logger.warning(f"Raw data directory not found: {raw_dir}")
        return

    files = find_detection_files(raw_dir)
    logger.info(f"Found {len(files)} CSV files in {raw_dir}")

    for path in files:
        try:
            text = _read_text(path)
        except OSError as e:
            logger.error(f"Failed to read {path.name}: {e}")
            continue

        count = 0
        estimated = 0
        for record in parse_detections(text, bounds, source=path.name):
            count += 1
            if record.timestamp_estimated:
                estimated += 1
            yield record

        logger.info(f"{path.name}: {count} valid detections")
        if estimated:
            logger.warning(f"{path.name}: {estimated} detections without a parsable date, "
                           f"stamped with the ingestion time")


def _read_text(path: Path) -> str:
    # INPE exports are not always UTF-8
    try:
        return path.read_text(encoding='utf-8-sig')
    except UnicodeDecodeError:
        return path.read_text(encoding='latin-1')


def _text(value) -> Optional[str]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip().strip('"').strip()
    return text or None


def _to_float(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _build_record(
    fields: Dict[str, Optional[str]],
    bounds: Bounds,
    source: str,
    row: int,
    ingested_at: datetime
) -> Optional[DetectionRecord]:
    latitude = _to_float(fields.get('latitude'))
    longitude = _to_float(fields.get('longitude'))
    if latitude is None or longitude is None:
        return None
    if not bounds.contains(latitude, longitude):
        return None

    timestamp = parse_timestamp(fields.get('timestamp'))
    estimated = timestamp is None
    if estimated:
        logger.debug(f"{source}:{row}: unparsable date {fields.get('timestamp')!r}, "
                     f"using ingestion time")
        timestamp = ingested_at

    confidence = _to_float(fields.get('confidence'))
    confidence = DEFAULT_CONFIDENCE if confidence is None else min(100, max(0, int(round(confidence))))

    temperature = _to_float(fields.get('temperature'))
    radiative_power = _to_float(fields.get('radiative_power'))

    return DetectionRecord(
        latitude=latitude,
        longitude=longitude,
        timestamp=timestamp,
        satellite=fields.get('satellite') or DEFAULT_SATELLITE,
        confidence=confidence,
        temperature=DEFAULT_TEMPERATURE if temperature is None else temperature,
        radiative_power=DEFAULT_RADIATIVE_POWER if radiative_power is None else radiative_power,
        timestamp_estimated=estimated,
        source=source,
        row=row,
    )
