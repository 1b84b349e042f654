"""Group-by tallies and classification counts over enriched detections."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from ..models import (
    CATEGORIES,
    NOT_AVAILABLE,
    SOURCE_FALLBACK,
    SOURCE_POLYGON,
    EnrichedRecord,
)

GROUP_FIELDS = ('by_municipality', 'by_state', 'by_biome', 'by_satellite',
                'by_period', 'by_time_of_day')


def time_of_day(hour: int) -> str:
    """Bucket an hour (UTC) into a period of the day."""
    if 6 <= hour < 12:
        return 'morning'
    if 12 <= hour < 18:
        return 'afternoon'
    if 18 <= hour < 24:
        return 'night'
    return 'early_morning'


def _empty_classification() -> Dict[str, Dict[str, int]]:
    return {category: {'classified': 0, 'fallback': 0, 'unclassified': 0}
            for category in CATEGORIES}


def group_by(counts: Dict[str, int]) -> Dict[str, int]:
    """
    Sort tallies by descending count.

    Ties keep the order in which keys were first counted (stable sort), not
    alphabetical order.
    """
    return dict(sorted(counts.items(), key=lambda item: item[1], reverse=True))


def leaders(counts: Dict[str, int], n: int = 1) -> List[Tuple[str, int]]:
    """Top `n` (key, count) pairs of a tally."""
    return list(group_by(counts).items())[:n]


def _increment(counts: Dict[str, int], key: str) -> None:
    counts[key] = counts.get(key, 0) + 1


@dataclass
class RunStatistics:
    """Counts for one run, or for one batch before merging."""
    total: int = 0
    failed: int = 0
    timestamps_estimated: int = 0
    warnings: int = 0
    batches: int = 0
    classification: Dict[str, Dict[str, int]] = field(default_factory=_empty_classification)
    by_municipality: Dict[str, int] = field(default_factory=dict)
    by_state: Dict[str, int] = field(default_factory=dict)
    by_biome: Dict[str, int] = field(default_factory=dict)
    by_satellite: Dict[str, int] = field(default_factory=dict)
    by_period: Dict[str, int] = field(default_factory=dict)
    by_time_of_day: Dict[str, int] = field(default_factory=dict)
    elapsed_seconds: float = 0.0
    cancelled: bool = False

    def add(self, record: EnrichedRecord) -> None:
        """Count one enriched record."""
        detection = record.detection
        self.total += 1
        self.warnings += len(record.warnings)
        if detection.timestamp_estimated:
            self.timestamps_estimated += 1

        for category in CATEGORIES:
            source = record.classification_source.get(category)
            if source == SOURCE_POLYGON:
                key = 'classified'
            elif source == SOURCE_FALLBACK:
                key = 'fallback'
            else:
                key = 'unclassified'
            self.classification.setdefault(
                category, {'classified': 0, 'fallback': 0, 'unclassified': 0}
            )[key] += 1

        _increment(self.by_municipality, record.municipality)
        _increment(self.by_state, record.state or NOT_AVAILABLE)
        _increment(self.by_biome, record.biome)
        _increment(self.by_satellite, detection.satellite)
        _increment(self.by_period, detection.timestamp.strftime('%Y-%m'))
        _increment(self.by_time_of_day, time_of_day(detection.timestamp.hour))

    def merge(self, other: "RunStatistics") -> "RunStatistics":
        """Add another partial into this one, in place. Returns self."""
        self.total += other.total
        self.failed += other.failed
        self.timestamps_estimated += other.timestamps_estimated
        self.warnings += other.warnings
        self.batches += other.batches
        self.cancelled = self.cancelled or other.cancelled

        for category, counts in other.classification.items():
            target = self.classification.setdefault(
                category, {'classified': 0, 'fallback': 0, 'unclassified': 0}
            )
            for key, value in counts.items():
                target[key] = target.get(key, 0) + value

        for name in GROUP_FIELDS:
            target = getattr(self, name)
            for key, value in getattr(other, name).items():
                target[key] = target.get(key, 0) + value

        return self

    def to_dict(self) -> dict:
        data = {
            'total': self.total,
            'failed': self.failed,
            'timestamps_estimated': self.timestamps_estimated,
            'warnings': self.warnings,
            'batches': self.batches,
            'classification': {k: dict(v) for k, v in self.classification.items()},
        }
        for name in GROUP_FIELDS:
            data[name] = group_by(getattr(self, name))
        data['elapsed_seconds'] = round(self.elapsed_seconds, 3)
        data['cancelled'] = self.cancelled
        return data


def summarize(records: Iterable[EnrichedRecord]) -> RunStatistics:
    """Compute statistics over a sequence of enriched records."""
    statistics = RunStatistics()
    for record in records:
        statistics.add(record)
    return statistics


def dashboard_summary(statistics: Union[RunStatistics, Mapping]) -> dict:
    """
    Headline figures for the dashboard cards.

    Accepts a RunStatistics or its serialized form (statistics.json).
    """
    data = statistics.to_dict() if isinstance(statistics, RunStatistics) else statistics

    def top(name: str) -> str:
        best = leaders(data.get(name) or {}, 1)
        return best[0][0] if best else NOT_AVAILABLE

    return {
        'total': data.get('total', 0),
        'leader_municipality': top('by_municipality'),
        'leader_state': top('by_state'),
        'predominant_biome': top('by_biome'),
        'main_satellite': top('by_satellite'),
    }
