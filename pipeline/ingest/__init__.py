"""Data ingestion modules for detection CSVs and reference boundaries."""

from .detections import parse_detections, read_detection_files
from .references import ReferenceCache, load_reference_collections

__all__ = ['parse_detections', 'read_detection_files',
           'ReferenceCache', 'load_reference_collections']
