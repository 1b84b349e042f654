"""Tests for run statistics."""

from datetime import datetime, timezone

import pytest

from pipeline.models import BIOME, MUNICIPALITY, SOURCE_FALLBACK, SOURCE_POLYGON, EnrichedRecord
from pipeline.process.statistics import (
    RunStatistics,
    dashboard_summary,
    group_by,
    leaders,
    summarize,
    time_of_day,
)


@pytest.fixture
def enriched(make_record):
    def _make(municipality='unidentified', state='N/A', biome='unidentified',
              satellite='AQUA_M-T', timestamp=datetime(2024, 8, 15, 14, 30, tzinfo=timezone.utc),
              sources=None, **fields):
        return EnrichedRecord(
            detection=make_record(-7.5, -46.0, satellite=satellite, timestamp=timestamp, **fields),
            municipality=municipality,
            state=state,
            biome=biome,
            **({'classification_source': sources} if sources else {})
        )
    return _make


@pytest.mark.parametrize('hour,expected', [
    (0, 'early_morning'),
    (5, 'early_morning'),
    (6, 'morning'),
    (11, 'morning'),
    (12, 'afternoon'),
    (17, 'afternoon'),
    (18, 'night'),
    (23, 'night'),
])
def test_time_of_day(hour, expected):
    assert time_of_day(hour) == expected


def test_group_by_ties_keep_first_seen_order():
    counts = {'Timon': 1, 'Balsas': 3, 'Caxias': 1, 'Alto Parnaíba': 3}

    assert list(group_by(counts)) == ['Balsas', 'Alto Parnaíba', 'Timon', 'Caxias']
    assert leaders(counts, 2) == [('Balsas', 3), ('Alto Parnaíba', 3)]
    assert leaders({}, 1) == []


def test_summarize_counts_groups(enriched):
    records = [
        enriched('Balsas', 'MA', 'Cerrado', satellite='NOAA-20'),
        enriched('Balsas', 'MA', 'Cerrado',
                 timestamp=datetime(2024, 9, 1, 3, 0, tzinfo=timezone.utc)),
        enriched('Timon', 'MA', 'Caatinga', timestamp_estimated=True),
    ]

    statistics = summarize(records)

    assert statistics.total == 3
    assert statistics.timestamps_estimated == 1
    assert statistics.by_municipality == {'Balsas': 2, 'Timon': 1}
    assert statistics.by_state == {'MA': 3}
    assert statistics.by_biome == {'Cerrado': 2, 'Caatinga': 1}
    assert statistics.by_satellite == {'NOAA-20': 1, 'AQUA_M-T': 2}
    assert statistics.by_period == {'2024-08': 2, '2024-09': 1}
    assert statistics.by_time_of_day == {'afternoon': 2, 'early_morning': 1}


def test_group_totals_match_record_count(enriched):
    records = [enriched(biome=b) for b in ('Cerrado', 'unidentified', 'Pampa', 'Cerrado')]

    data = summarize(records).to_dict()

    for name in ('by_municipality', 'by_state', 'by_biome', 'by_satellite',
                 'by_period', 'by_time_of_day'):
        assert sum(data[name].values()) == data['total'] == 4


def test_classification_counts_by_source(enriched):
    records = [
        enriched(sources={MUNICIPALITY: SOURCE_POLYGON, BIOME: SOURCE_POLYGON}),
        enriched(sources={MUNICIPALITY: SOURCE_POLYGON, BIOME: SOURCE_FALLBACK}),
        enriched(),
    ]

    classification = summarize(records).classification

    assert classification[MUNICIPALITY] == {'classified': 2, 'fallback': 0, 'unclassified': 1}
    assert classification[BIOME] == {'classified': 1, 'fallback': 1, 'unclassified': 1}
    assert classification['indigenous_land'] == {'classified': 0, 'fallback': 0, 'unclassified': 3}


def test_merged_partials_equal_single_pass(enriched):
    records = [
        enriched('Balsas', 'MA', 'Cerrado'),
        enriched('Timon', 'MA', 'Caatinga', satellite='NOAA-20'),
        enriched('Sorriso', 'MT', 'Amazônia'),
        enriched('Balsas', 'MA', 'Cerrado', sources={BIOME: SOURCE_POLYGON}),
        enriched('Timon', 'MA', 'Caatinga', timestamp_estimated=True),
    ]

    merged = RunStatistics()
    for part in (records[:2], records[2:3], records[3:]):
        merged.merge(summarize(part))

    assert merged.to_dict() == summarize(records).to_dict()


def test_merge_keeps_cancelled_flag():
    first = RunStatistics(total=2, batches=1)
    second = RunStatistics(total=1, batches=1, cancelled=True)

    merged = first.merge(second)

    assert merged is first
    assert merged.total == 3
    assert merged.batches == 2
    assert merged.cancelled


def test_dashboard_summary(enriched):
    statistics = summarize([
        enriched('Timon', 'MA', 'Caatinga', satellite='NOAA-20'),
        enriched('Balsas', 'MA', 'Cerrado'),
        enriched('Balsas', 'MA', 'Cerrado'),
    ])

    summary = dashboard_summary(statistics)

    assert summary == {
        'total': 3,
        'leader_municipality': 'Balsas',
        'leader_state': 'MA',
        'predominant_biome': 'Cerrado',
        'main_satellite': 'AQUA_M-T',
    }
    assert dashboard_summary(statistics.to_dict()) == summary


def test_dashboard_summary_of_empty_run():
    assert dashboard_summary(RunStatistics()) == {
        'total': 0,
        'leader_municipality': 'N/A',
        'leader_state': 'N/A',
        'predominant_biome': 'N/A',
        'main_satellite': 'N/A',
    }
