from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the bomb arena server!'})


@main.route('/health')
def health():
    engine = current_app.extensions['arena']
    return jsonify({'status': 'ok', 'sessions': len(engine.registry)})
