import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from civicrag.storage.models import QueryLog

_logger = structlog.get_logger()

VALID_FEEDBACK = (1, -1)


class QueryLogRepository:
    """Post-hoc mutations of a logged query: feedback and source clicks."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def update_feedback(self, query_id: int, feedback: int) -> bool:
        """Set ``user_feedback`` on one row. Returns False if the row does not exist.

        Storage errors propagate to the caller.
        """
        if feedback not in VALID_FEEDBACK:
            raise ValueError(f"feedback must be 1 or -1, got {feedback}")

        with self._session_factory() as session:
            updated = session.execute(
                update(QueryLog).where(QueryLog.id == query_id).values(user_feedback=feedback)
            ).rowcount
            session.commit()

        _logger.info("query_feedback_updated", query_id=query_id, feedback=feedback, rows=updated)
        return updated == 1

    def mark_source_followed(self, query_id: int) -> bool:
        """Flag that the visitor opened a source link. Failures are logged and swallowed."""
        try:
            with self._session_factory() as session:
                updated = session.execute(
                    update(QueryLog).where(QueryLog.id == query_id).values(followed_source=True)
                ).rowcount
                session.commit()
        except SQLAlchemyError:
            _logger.exception("mark_source_followed_failed", query_id=query_id)
            return False
        return updated == 1
