from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    db.init_app(flask_app)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from arena.main import main
    flask_app.register_blueprint(main)

    from arena.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    # One engine per app; handlers and routes reach it via current_app.extensions
    from arena.services.games.engine import ArenaEngine
    from arena.services.games.gateway import SocketIOBroadcaster
    from arena.services.games.mirror import BombMirror
    from arena.services.games.timers import TimerRegistry

    mirror = BombMirror(flask_app.logger) if flask_app.config.get('BOMB_MIRROR_ENABLED') else None
    flask_app.extensions['arena'] = ArenaEngine.from_config(
        flask_app.config,
        broadcaster=SocketIOBroadcaster(socketio),
        timers=TimerRegistry(socketio, app=flask_app, logger=flask_app.logger),
        mirror=mirror,
        logger=flask_app.logger,
    )

    from arena.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    if mirror is not None:
        import arena.models  # noqa: F401
        with flask_app.app_context():
            db.create_all()

    @click.command('mirror-reset')
    def mirror_reset_command():
        """Drops and recreates the live bomb mirror table."""
        import arena.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Bomb mirror has been reset!')

    flask_app.cli.add_command(mirror_reset_command)

    return flask_app
