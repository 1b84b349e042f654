"""Tests for the data API."""

import os

import pytest
from fastapi.testclient import TestClient

from api.main import app, artifacts
from api.utils import ArtifactCache
from pipeline.export import save_results
from pipeline.models import EnrichedRecord
from pipeline.process.statistics import summarize


@pytest.fixture
def processed(tmp_path, monkeypatch):
    monkeypatch.setenv('PROCESSED_DIR', str(tmp_path))
    artifacts.clear()
    yield tmp_path
    artifacts.clear()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def published(processed, make_record):
    records = [
        EnrichedRecord(detection=make_record(-7.53, -46.03, source='focos.csv', row=1,
                                             satellite='AQUA_M-T'),
                       municipality='Balsas', state='MA', biome='Cerrado'),
        EnrichedRecord(detection=make_record(-7.40, -46.10, source='focos.csv', row=2,
                                             satellite='NOAA-20'),
                       municipality='Balsas', state='MA', biome='Cerrado'),
        EnrichedRecord(detection=make_record(-2.00, -60.00, source='focos.csv', row=3,
                                             satellite='AQUA_M-T'),
                       biome='Amazônia'),
    ]
    save_results(processed, records, summarize(records))
    return processed


def test_root(client):
    response = client.get('/')

    assert response.status_code == 200
    assert response.json()['health'] == '/health'


def test_health_without_data(client, processed):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'
    assert response.json()['data_available'] is False
    assert response.json()['cached_artifacts'] == 0


def test_health_with_data(client, published):
    assert client.get('/health').json()['data_available'] is True


def test_health_reports_cached_artifacts(client, published):
    client.get('/statistics')
    client.get('/detections')

    assert client.get('/health').json()['cached_artifacts'] == 2


def test_missing_artifacts_are_404(client, processed):
    assert client.get('/detections').status_code == 404
    assert client.get('/statistics').status_code == 404
    assert client.get('/summary').status_code == 404


def test_list_detections(client, published):
    data = client.get('/detections').json()

    assert data['total'] == 3
    assert data['count'] == 3
    assert data['detections'][0]['id'] == 'focos.csv:1'
    assert data['detections'][2]['biome'] == 'Amazônia'


def test_filter_and_paginate_detections(client, published):
    data = client.get('/detections', params={'municipality': 'Balsas', 'limit': 1, 'offset': 1}).json()

    assert data['total'] == 2
    assert data['count'] == 1
    assert data['detections'][0]['satellite'] == 'NOAA-20'

    assert client.get('/detections', params={'state': 'SP'}).json()['total'] == 0
    assert client.get('/detections', params={'limit': 0}).status_code == 422


def test_statistics_and_summary(client, published):
    statistics = client.get('/statistics').json()
    assert statistics['total'] == 3
    assert statistics['by_biome'] == {'Cerrado': 2, 'Amazônia': 1}
    assert statistics['classification']['biome']['unclassified'] == 3

    summary = client.get('/summary').json()
    assert summary == {
        'total': 3,
        'leader_municipality': 'Balsas',
        'leader_state': 'MA',
        'predominant_biome': 'Cerrado',
        'main_satellite': 'AQUA_M-T',
    }


def test_artifacts_reload_after_new_run(client, published, make_record):
    assert client.get('/statistics').json()['total'] == 3

    records = [EnrichedRecord(detection=make_record(-10.0, -50.0), biome='Cerrado')]
    save_results(published, records, summarize(records))
    # Rewrites within the filesystem's mtime resolution look unchanged
    artifacts.clear()

    assert client.get('/statistics').json()['total'] == 1


def test_download_artifact(client, published):
    response = client.get('/downloads/statistics.json')

    assert response.status_code == 200
    assert response.json()['total'] == 3


def test_download_rejects_unknown_names(client, published):
    assert client.get('/downloads/secrets.env').status_code == 404


def test_artifact_cache_tracks_modification_time(tmp_path):
    path = tmp_path / 'statistics.json'
    path.write_text('{"total": 1}', encoding='utf-8')
    cache = ArtifactCache()

    first = cache.load(path)
    assert cache.load(path) is first

    path.write_text('{"total": 2}', encoding='utf-8')
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
    assert cache.load(path) == {'total': 2}

    path.unlink()
    assert cache.load(path) is None
    assert cache.status()['size'] == 0
