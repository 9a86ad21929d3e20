import logging

from sqlalchemy.exc import SQLAlchemyError

from arena import db
from arena.models import LiveBomb


class BombMirror:
    """Best-effort copy of live bombs into the ``live_bomb`` table.

    Failures are logged and rolled back; gameplay never waits on them.
    """

    def __init__(self, logger=None):
        self.logger = logger or logging.getLogger(__name__)

    def bomb_placed(self, session_id, bomb) -> None:
        try:
            db.session.add(LiveBomb(
                id=bomb.id,
                session_id=session_id,
                owner_id=bomb.owner_id,
                x=bomb.x,
                y=bomb.y,
                radius=bomb.radius,
                armed_at=bomb.armed_at,
                fuse_ms=bomb.fuse_ms,
            ))
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            self.logger.warning(f"[mirror-error] op=place session={session_id} bomb={bomb.id} err={exc}")

    def bomb_removed(self, session_id, bomb_id) -> None:
        try:
            LiveBomb.query.filter_by(id=bomb_id).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            self.logger.warning(f"[mirror-error] op=remove session={session_id} bomb={bomb_id} err={exc}")

    def session_removed(self, session_id) -> None:
        try:
            LiveBomb.query.filter_by(session_id=session_id).delete()
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            self.logger.warning(f"[mirror-error] op=clear session={session_id} err={exc}")

    def live_bombs(self, session_id=None):
        query = LiveBomb.query
        if session_id:
            query = query.filter_by(session_id=session_id)
        return [row.to_dict() for row in query.order_by(LiveBomb.armed_at).all()]
