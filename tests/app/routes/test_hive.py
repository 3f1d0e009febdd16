"""Tests for hive routes."""
import pytest

from app.services import hive


def test_learnings(client):
    hive.record_win('Hi!', 'winning_approach')
    hive.record_win('Hi!', 'winning_approach')
    hive.record_win('Sure thing', 'winning_objection')

    data = client.get('/api/hive/learnings').get_json()
    assert data['count'] == 2
    assert data['learnings'][0]['success_count'] == 2

    data = client.get('/api/hive/learnings?type=winning_objection').get_json()
    assert [row['content'] for row in data['learnings']] == ['Sure thing']


def test_learnings_bad_limit(client):
    assert client.get('/api/hive/learnings?limit=all').status_code == 400


@pytest.mark.parametrize('url', [
    '/api/hive/learnings?limit=-1',
    '/api/hive/learnings?limit=0',
    '/api/hive/top-signals?limit=-1',
    '/api/hive/trends?days=0',
    '/api/hive/trends?days=month',
])
def test_rejects_non_positive_counts(client, url):
    hive.record_win('Hi!', 'winning_approach')
    resp = client.get(url)
    assert resp.status_code == 400
    assert 'error' in resp.get_json()


def test_empty_leaderboard(client):
    assert client.get('/api/hive/leaderboard').get_json() == {'leaderboard': []}


def test_source_performance(client, make_prospect, make_script):
    make_script(make_prospect(source='LINE'), feedback='got_reply')
    data = client.get('/api/hive/source-performance').get_json()
    assert data['sources'][0]['source'] == 'LINE'
    assert data['sources'][0]['replies'] == 1


def test_tenant_stats(client, make_script):
    make_script(tenant_id='team-a', feedback='converted')
    data = client.get('/api/hive/tenant-stats').get_json()
    assert data['tenants'][0]['tenant_id'] == 'team-a'


def test_trends(client, make_prospect, make_script):
    make_script(make_prospect(), feedback='converted')
    hive.record_win('Hey, saw your post!', 'winning_approach')

    data = client.get('/api/hive/trends?days=7').get_json()
    assert set(data) == {'script_trends', 'hive_trends', 'summary'}
    [day] = data['script_trends']
    assert day['scripts_created'] == 1
    assert day['converted'] == 1
    assert data['summary'] == {'total_learnings': 1, 'total_successes': 1, 'this_week': 1}


def test_top_signals(client, make_prospect, make_script):
    make_script(make_prospect(signal='new mom', source='LINE'), feedback='got_reply')
    make_script(make_prospect(signal='student'), feedback='no_response')

    data = client.get('/api/hive/top-signals').get_json()
    assert [(s['signal'], s['source']) for s in data['signals']] == [('new mom', 'LINE')]
