from sqlalchemy.exc import SQLAlchemyError

from hrcloud.extensions import db


class DatabaseEventWriter:
    """Persists one event per call to its append-only table."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def write(self, event):
        session = self.session
        try:
            session.add(event.to_model())
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            raise
