from arena import socketio


def test_index_and_health(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()
    res = client.get('/health')
    assert res.get_json() == {'status': 'ok', 'sessions': 0}


def test_sessions_listing_and_snapshot(flask_app, client):
    sio = socketio.test_client(flask_app, namespace='/ws')
    ack = sio.emit('join_game', {}, namespace='/ws', callback=True)
    code = ack['session_id']

    listing = client.get('/api/sessions').get_json()
    assert [s['session_id'] for s in listing] == [code]
    assert listing[0]['phase'] == 'waiting'
    assert listing[0]['players'] == 1
    assert client.get('/api/sessions?phase=active').get_json() == []

    res = client.get(f'/api/sessions/{code.lower()}')
    assert res.status_code == 200
    state = res.get_json()
    assert state['grid'] == ack['snapshot']['grid']
    assert state['roster'] == ack['snapshot']['roster']
    sio.disconnect(namespace='/ws')


def test_unknown_session_is_404(client):
    res = client.get('/api/sessions/ZZZZ')
    assert res.status_code == 404
    assert 'error' in res.get_json()


def test_live_bombs_endpoint_starts_empty(client):
    res = client.get('/api/sessions/bombs')
    assert res.status_code == 200
    assert res.get_json() == []
