from arena import db, socketio
from arena.models import LiveBomb


def connect(flask_app):
    client = socketio.test_client(flask_app, namespace='/ws')
    client.get_received('/ws')  # flush the connect greeting
    return client


def events(client, name):
    return [pkt['args'][0] for pkt in client.get_received('/ws') if pkt['name'] == name]


def test_socket_connect_and_join(sio_client):
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    ack = sio_client.emit('join_game', {}, namespace='/ws', callback=True)
    assert ack['success'] is True
    assert ack['participant']['slot'] == 1
    assert ack['snapshot']['phase'] == 'waiting'
    assert len(ack['snapshot']['grid']) == 11
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'player_joined' for pkt in received)


def test_three_players_ready_up_and_start(flask_app):
    clients = [connect(flask_app) for _ in range(3)]
    acks = [c.emit('join_game', {}, namespace='/ws', callback=True) for c in clients]
    assert len({a['session_id'] for a in acks}) == 1

    for c in clients:
        c.emit('ready', namespace='/ws')
    started = events(clients[0], 'game_start')
    assert len(started) == 1
    assert started[0]['phase'] == 'active'
    assert len(started[0]['roster']) == 3
    for c in clients:
        c.disconnect(namespace='/ws')


def test_bomb_is_mirrored_until_it_detonates(flask_app):
    engine = flask_app.extensions['arena']
    clients = [connect(flask_app) for _ in range(3)]
    acks = [c.emit('join_game', {}, namespace='/ws', callback=True) for c in clients]
    for c in clients:
        c.emit('ready', namespace='/ws')
    clients[0].get_received('/ws')

    clients[0].emit('bomb', namespace='/ws')
    placed = events(clients[0], 'bomb_placed')
    assert len(placed) == 1
    row = db.session.get(LiveBomb, placed[0]['bomb_id'])
    assert row is not None
    assert row.session_id == acks[0]['session_id']

    engine.timers.fire('detonate:')
    exploded = events(clients[1], 'bomb_exploded')
    assert exploded and exploded[0]['bomb_id'] == placed[0]['bomb_id']
    assert LiveBomb.query.count() == 0
    for c in clients:
        c.disconnect(namespace='/ws')


def test_move_event_broadcasts(flask_app):
    clients = [connect(flask_app) for _ in range(3)]
    for c in clients:
        c.emit('join_game', {}, namespace='/ws', callback=True)
    for c in clients:
        c.emit('ready', namespace='/ws')
    clients[2].get_received('/ws')
    # Slot 1 spawns at (1, 1); (1, 2) is always walkable
    clients[0].emit('move', {'direction': 'down'}, namespace='/ws')
    moved = events(clients[2], 'player_moved')
    assert moved and (moved[0]['x'], moved[0]['y']) == (1, 2)
    for c in clients:
        c.disconnect(namespace='/ws')


def test_malformed_move_is_ignored(sio_client):
    sio_client.emit('join_game', {}, namespace='/ws', callback=True)
    sio_client.get_received('/ws')
    sio_client.emit('move', {'direction': 42}, namespace='/ws')
    sio_client.emit('move', None, namespace='/ws')
    sio_client.emit('move', 'up', namespace='/ws')
    sio_client.emit('move', [1], namespace='/ws')
    assert events(sio_client, 'player_moved') == []


def test_disconnect_notifies_remaining_players(flask_app):
    host = connect(flask_app)
    guest = connect(flask_app)
    host.emit('join_game', {}, namespace='/ws', callback=True)
    guest.emit('join_game', {}, namespace='/ws', callback=True)
    guest.get_received('/ws')

    host.disconnect(namespace='/ws')
    left = events(guest, 'player_disconnected')
    assert len(left) == 1
    assert len(left[0]['roster']) == 1
    guest.disconnect(namespace='/ws')
    assert len(flask_app.extensions['arena'].registry) == 0
