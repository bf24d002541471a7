"""Snapshot persistence for the game session.

save() captures the session as a JSON document at call time and hands it
to a write-behind worker, so gameplay never waits on the database. Only
the newest pending document is written; older ones are superseded. Write
and read failures are logged and swallowed: the in-memory session stays
authoritative and the next save is the retry.
"""
import json
import logging
import threading
import time
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from partytasks import db
from partytasks.models import SNAPSHOT_ID, SessionSnapshot
from .state import GameSession

logger = logging.getLogger(__name__)


class PersistenceGateway:
    def __init__(self, app, spawn: Optional[Callable] = None):
        """spawn starts a background task (e.g. socketio.start_background_task).

        Without one, writes happen inline in the caller.
        """
        self.app = app
        self._spawn = spawn
        self._lock = threading.Lock()
        self._pending: Optional[str] = None
        self._writing = False

    def save(self, session: GameSession) -> None:
        try:
            document = json.dumps(session.to_dict())
        except (TypeError, ValueError) as exc:
            logger.error(f"[save] could not encode session: {exc}")
            return
        if self._spawn is None:
            self._write(document)
            return
        with self._lock:
            self._pending = document
            if self._writing:
                return
            self._writing = True
        self._spawn(self._drain)

    def _drain(self) -> None:
        try:
            while True:
                with self._lock:
                    document, self._pending = self._pending, None
                    if document is None:
                        return
                self._write(document)
        finally:
            with self._lock:
                self._writing = False

    def _write(self, document: str) -> bool:
        with self.app.app_context():
            try:
                row = db.session.get(SessionSnapshot, SNAPSHOT_ID)
                if row is None:
                    row = SessionSnapshot(id=SNAPSHOT_ID, payload=document, saved_at=time.time())
                else:
                    row.payload = document
                    row.saved_at = time.time()
                db.session.add(row)
                db.session.commit()
            except SQLAlchemyError:
                db.session.rollback()
                logger.exception("[save] failed to write session snapshot")
                return False
        logger.debug(f"[save] snapshot written bytes={len(document)}")
        return True

    def load(self) -> Optional[GameSession]:
        with self.app.app_context():
            try:
                row = db.session.get(SessionSnapshot, SNAPSHOT_ID)
            except SQLAlchemyError:
                db.session.rollback()
                logger.exception("[load] failed to read session snapshot")
                return None
            if row is None:
                return None
            payload = row.payload
        try:
            session = GameSession.from_dict(json.loads(payload))
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.error(f"[load] discarding unreadable snapshot: {exc}")
            return None
        logger.info(f"[load] restored session players={len(session.players)}")
        return session
