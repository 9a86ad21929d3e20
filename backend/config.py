import os


def _flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///arena-monitor.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',') if o.strip()]
    # Bomb timing (milliseconds)
    BOMB_FUSE_MS = int(os.environ.get('BOMB_FUSE_MS', '2000'))
    BLAST_DISPLAY_MS = int(os.environ.get('BLAST_DISPLAY_MS', '500'))
    # Balance knobs
    POWER_UP_SPAWN_CHANCE = float(os.environ.get('POWER_UP_SPAWN_CHANCE', '0.3'))
    BLOCK_DENSITY = float(os.environ.get('BLOCK_DENSITY', '0.7'))
    # Optional: reject moves faster than the participant's movement interval.
    ENFORCE_MOVE_INTERVAL = _flag('ENFORCE_MOVE_INTERVAL', '0')
    # Optional: route every join into one fixed room instead of matchmaking.
    ARENA_SINGLE_ROOM = _flag('ARENA_SINGLE_ROOM', '0')
    # Mirror live bombs into the monitoring table. Never read back by the engine.
    BOMB_MIRROR_ENABLED = _flag('BOMB_MIRROR_ENABLED', '1')
