from scoreboard import get_services
from scoreboard.services.scores import StorageUnavailable


def test_index_and_health(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json() == {'status': 'ok', 'records': 0}


def test_submit_creates_and_accumulates(client):
    res = client.post('/api/scores', json={'identity': 'alice', 'score': 50})
    assert res.status_code == 200
    assert res.get_json() == {'identity': 'alice', 'accumulated_score': 50, 'highest_score': 50}
    client.post('/api/scores', json={'identity': 'alice', 'score': 30})
    res = client.post('/api/scores', json={'identity': 'alice', 'score': 90})
    assert res.get_json() == {'identity': 'alice', 'accumulated_score': 170, 'highest_score': 90}


def test_get_score(client):
    client.post('/api/scores', json={'identity': '0xDeadBeef', 'score': 12})
    res = client.get('/api/scores/0xDeadBeef')
    assert res.status_code == 200
    assert res.get_json()['accumulated_score'] == 12


def test_get_score_not_found(client):
    res = client.get('/api/scores/carol')
    assert res.status_code == 404
    assert 'error' in res.get_json()


def test_submit_rejects_bad_input(client):
    cases = [
        {'identity': 'alice', 'score': -1},
        {'identity': 'alice', 'score': 'ten'},
        {'identity': 'alice', 'score': 1.5},
        {'identity': '', 'score': 1},
        {'identity': 'alice'},
        {'score': 5},
    ]
    for body in cases:
        res = client.post('/api/scores', json=body)
        assert res.status_code == 400, body
        assert 'error' in res.get_json()
    res = client.post('/api/scores', data='not json', content_type='text/plain')
    assert res.status_code == 400
    # nothing was stored
    assert client.get('/health').get_json()['records'] == 0


def test_negative_score_keeps_existing_record(client):
    client.post('/api/scores', json={'identity': 'alice', 'score': 10})
    assert client.post('/api/scores', json={'identity': 'alice', 'score': -4}).status_code == 400
    assert client.get('/api/scores/alice').get_json()['accumulated_score'] == 10


def test_leaderboard_scenario(client):
    for score in (50, 30, 90):
        client.post('/api/scores', json={'identity': 'alice', 'score': score})
    client.post('/api/scores', json={'identity': 'bob', 'score': 200})
    res = client.get('/api/leaderboard?n=3')
    assert res.status_code == 200
    data = res.get_json()
    assert data['size'] == 3
    assert data['leaderboard'] == [
        {'rank': 1, 'identity': 'bob', 'accumulated_score': 200},
        {'rank': 2, 'identity': 'alice', 'accumulated_score': 170},
    ]


def test_leaderboard_default_size_and_ties(client):
    for ident in ('dan', 'cat', 'bea', 'al'):
        client.post('/api/scores', json={'identity': ident, 'score': 10})
    data = client.get('/api/leaderboard').get_json()
    assert data['size'] == 3
    assert [e['identity'] for e in data['leaderboard']] == ['al', 'bea', 'cat']


def test_leaderboard_rejects_bad_size(client):
    for n in ('0', '-2', 'abc', '1000'):
        res = client.get(f'/api/leaderboard?n={n}')
        assert res.status_code == 400, n


def test_storage_outage_maps_to_503(flask_app, client):
    get_services(flask_app)['store'].close()
    res = client.post('/api/scores', json={'identity': 'alice', 'score': 1})
    assert res.status_code == 503
    assert client.get('/api/scores/alice').status_code == 503
    assert client.get('/api/leaderboard').status_code == 503
    assert client.get('/health').status_code == 503
    get_services(flask_app)['store'].open()


def test_retry_exhaustion_maps_to_503(flask_app, client, monkeypatch):
    store = get_services(flask_app)['store']
    monkeypatch.setattr(store, 'compare_and_set', lambda *args: False)
    res = client.post('/api/scores', json={'identity': 'alice', 'score': 1})
    assert res.status_code == 503
    assert 'error' in res.get_json()


def test_failed_broadcast_does_not_fail_submit(flask_app, client, monkeypatch):
    view = get_services(flask_app)['leaderboard']

    def boom(n=None):
        raise StorageUnavailable('storage unavailable during top_n')

    monkeypatch.setattr(view, 'top_scores', boom)
    res = client.post('/api/scores', json={'identity': 'alice', 'score': 3})
    assert res.status_code == 200
    assert res.get_json()['accumulated_score'] == 3


def test_score_too_large_for_storage_is_400(client):
    res = client.post('/api/scores', json={'identity': 'whale', 'score': 2 ** 63})
    assert res.status_code == 400
    assert 'error' in res.get_json()
    assert client.get('/api/scores/whale').status_code == 404


def test_total_overflow_is_400_and_keeps_record(client):
    start = 2 ** 63 - 10
    assert client.post('/api/scores', json={'identity': 'whale', 'score': start}).status_code == 200
    res = client.post('/api/scores', json={'identity': 'whale', 'score': 11})
    assert res.status_code == 400
    assert client.get('/api/scores/whale').get_json()['accumulated_score'] == start
