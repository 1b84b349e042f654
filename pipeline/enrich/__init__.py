"""Region classification: polygon index, heuristic fallback and enricher."""

from .region_index import RegionGeometry, RegionIndex
from .fallback import FallbackClassifier, estimate_biome
from .enricher import SpatialEnricher

__all__ = ['RegionGeometry', 'RegionIndex', 'FallbackClassifier',
           'estimate_biome', 'SpatialEnricher']
