"""Attach municipality, biome and protected-area labels to detections."""

from typing import Dict, Optional

from .fallback import FallbackClassifier
from .region_index import RegionGeometry, RegionIndex
from ..models import (
    BIOME,
    CATEGORIES,
    CONSERVATION_UNIT,
    INDIGENOUS_LAND,
    MUNICIPALITY,
    NOT_AVAILABLE,
    SOURCE_FALLBACK,
    SOURCE_POLYGON,
    SOURCE_UNCLASSIFIED,
    UNIDENTIFIED,
    ClassificationWarning,
    DetectionRecord,
    EnrichedRecord,
)
from ..utils import setup_logger

logger = setup_logger(__name__)

STATE_FIELDS = ('SIGLA_UF', 'sigla_uf', 'uf', 'UF')
MUNICIPALITY_CODE_FIELDS = ('CD_GEOCMU', 'CD_MUN', 'codigo')
CONSERVATION_CATEGORY_FIELDS = ('CATEGORI3', 'categoria')
ETHNICITY_FIELDS = ('ETNIA', 'etnia', 'etnia_nome')


def region_labels(category: str, region: RegionGeometry) -> Dict[str, Optional[str]]:
    """EnrichedRecord fields derived from a matched region."""
    if category == MUNICIPALITY:
        return {
            'municipality': region.name,
            'state': region.get(*STATE_FIELDS, default=NOT_AVAILABLE),
            'municipality_code': region.get(*MUNICIPALITY_CODE_FIELDS),
        }
    if category == BIOME:
        return {'biome': region.name}
    if category == CONSERVATION_UNIT:
        return {
            'conservation_unit': region.name,
            'conservation_unit_category': region.get(*CONSERVATION_CATEGORY_FIELDS,
                                                     default=NOT_AVAILABLE),
        }
    if category == INDIGENOUS_LAND:
        return {
            'indigenous_land': region.name,
            'ethnicity': region.get(*ETHNICITY_FIELDS, default=NOT_AVAILABLE),
        }
    return {}


def fallback_labels(category: str, label: str) -> Dict[str, str]:
    if category == BIOME:
        return {'biome': label}
    if category == MUNICIPALITY:
        return {'municipality': label}
    return {}


def default_enrichment(record: DetectionRecord) -> EnrichedRecord:
    """Enriched record with every category left unclassified."""
    return EnrichedRecord(detection=record)


class SpatialEnricher:
    """
    Classify detections against a RegionIndex, with heuristic fallback.

    For each category the index is consulted first; when no polygon contains
    the point, the fallback classifier is used if it has a rule for that
    category. Anything left over keeps its default label.
    """

    def __init__(self, index: RegionIndex, fallback: Optional[FallbackClassifier] = None):
        self.index = index
        self.fallback = fallback or FallbackClassifier()

    def enrich(self, record: DetectionRecord) -> EnrichedRecord:
        labels = {}
        sources = {}
        warnings = []

        for category in CATEGORIES:
            try:
                region, found = self.index.locate(category, record.latitude, record.longitude)
            except Exception as e:
                logger.warning(f"{category} lookup failed for {record.id}: {e}")
                warnings.append(ClassificationWarning(category, None, str(e)))
                region, found = None, []
            warnings.extend(found)

            if region is not None:
                labels.update(region_labels(category, region))
                sources[category] = SOURCE_POLYGON
                continue

            label = None
            if self.fallback.supports(category):
                label = self.fallback.estimate(category, record.latitude, record.longitude)

            if label and label != UNIDENTIFIED:
                labels.update(fallback_labels(category, label))
                sources[category] = SOURCE_FALLBACK
            else:
                sources[category] = SOURCE_UNCLASSIFIED

        return EnrichedRecord(
            detection=record,
            classification_source=sources,
            warnings=tuple(warnings),
            **labels
        )
