from flask import Blueprint, current_app, jsonify, request

sessions = Blueprint('sessions', __name__)


def _engine():
    return current_app.extensions['arena']


@sessions.route('', methods=['GET'])
def list_sessions():
    """
    Returns a summary of every live session, optionally filtered by phase.
    """
    phase = request.args.get('phase')
    result = []
    for session in _engine().registry.all():
        with session.lock:
            summary = session.summary()
        if phase and summary['phase'] != phase:
            continue
        result.append(summary)
    return jsonify(result), 200


@sessions.route('/bombs', methods=['GET'])
def list_live_bombs():
    """
    Returns the monitoring mirror of live bombs. This is never authoritative.
    """
    mirror = _engine().mirror
    if mirror is None:
        return jsonify({'error': 'Bomb mirror is disabled'}), 404
    return jsonify(mirror.live_bombs(request.args.get('session_id'))), 200


@sessions.route('/<string:session_id>', methods=['GET'])
def get_session(session_id):
    """
    Returns the full snapshot of one session.
    """
    session = _engine().registry.get(session_id.upper())
    if session is None:
        return jsonify({'error': 'Session not found'}), 404
    with session.lock:
        payload = session.snapshot()
        payload.update(session.summary())
    return jsonify(payload), 200
