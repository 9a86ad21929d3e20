from arena import db


class LiveBomb(db.Model):
    """Read-only monitoring copy of a bomb that is still ticking.

    The engine writes these rows but never reads them back; the in-memory
    session is the only source of truth.
    """
    __tablename__ = 'live_bomb'
    id = db.Column(db.String(32), primary_key=True)
    session_id = db.Column(db.String(8), nullable=False, index=True)
    owner_id = db.Column(db.String(64), nullable=False)
    x = db.Column(db.Integer, nullable=False)
    y = db.Column(db.Integer, nullable=False)
    radius = db.Column(db.Integer, nullable=False)
    armed_at = db.Column(db.Float, nullable=False)
    fuse_ms = db.Column(db.Integer, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'session_id': self.session_id,
            'owner_id': self.owner_id,
            'x': self.x,
            'y': self.y,
            'radius': self.radius,
            'armed_at': self.armed_at,
            'detonates_at': self.armed_at + self.fuse_ms / 1000.0,
        }
