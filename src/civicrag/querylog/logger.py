from __future__ import annotations

import queue
import threading

import structlog
from sqlalchemy.orm import Session, sessionmaker

from civicrag.querylog.record import Pricing, QueryRecord, calculate_cost, hash_ip
from civicrag.storage.models import QueryLog

_logger = structlog.get_logger()

_MAX_LOGS_PER_COMMIT = 50
_QUEUE_MAX = 5_000
_SHUTDOWN_TIMEOUT = 10


class QueryLogger:
    """Persists usage records on a background thread.

    ``log`` never blocks and never raises. A record that cannot be queued or
    written is dropped after logging the failure; there are no retries.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        ip_salt: str,
        pricing: Pricing | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._ip_salt = ip_salt
        self._pricing = pricing or Pricing()
        self._queue: queue.Queue[QueryRecord | None] = queue.Queue(maxsize=_QUEUE_MAX)
        self._thread = threading.Thread(target=self._drain, name="query-logger", daemon=True)
        self._thread.start()

    def log(self, record: QueryRecord) -> None:
        try:
            self._queue.put_nowait(record)
        except queue.Full:
            _logger.warning("query_log_queue_full", query_preview=record.query[:80])

    def shutdown(self) -> None:
        try:
            self._queue.put(None, timeout=_SHUTDOWN_TIMEOUT)
        except queue.Full:
            _logger.warning("query_logger_shutdown_queue_full")
            return
        self._thread.join(timeout=_SHUTDOWN_TIMEOUT)

    def to_row(self, record: QueryRecord) -> QueryLog:
        total_tokens = record.embedding_tokens + record.prompt_tokens + record.response_tokens
        cost = calculate_cost(
            record.embedding_tokens,
            record.prompt_tokens,
            record.response_tokens,
            self._pricing,
        )
        _logger.debug("query_cost_calculated", cost_usd=round(cost, 6), total_tokens=total_tokens)
        return QueryLog(
            tenant_id=record.tenant_id,
            query_text=record.query,
            category=record.category,
            response_text=record.answer,
            sources_count=record.sources_count,
            embedding_tokens=record.embedding_tokens,
            completion_prompt_tokens=record.prompt_tokens,
            completion_response_tokens=record.response_tokens,
            total_cost_usd=cost,
            response_time_ms=record.response_time_ms,
            similarity_threshold=record.similarity_threshold,
            chunks_found=record.chunks_found,
            session_id=record.session_id,
            user_language=record.user_language,
            user_agent=record.user_agent,
            ip_hash=hash_ip(record.ip_address, self._ip_salt),
        )

    def _drain(self) -> None:
        # ``None`` on the queue stops the worker after the rows before it are written
        stopping = False
        while not stopping:
            rows: list[QueryLog] = []
            pending: QueryRecord | None = self._queue.get()
            while pending is not None:
                self._add_row(rows, pending)
                if len(rows) >= _MAX_LOGS_PER_COMMIT:
                    break
                try:
                    pending = self._queue.get_nowait()
                except queue.Empty:
                    break
            stopping = pending is None
            self._write(rows)

    def _add_row(self, rows: list[QueryLog], record: QueryRecord) -> None:
        try:
            rows.append(self.to_row(record))
        except Exception:
            _logger.exception("query_log_record_dropped", query_preview=record.query[:80])

    def _write(self, rows: list[QueryLog]) -> None:
        if not rows:
            return
        try:
            with self._session_factory() as session:
                session.add_all(rows)
                session.commit()
            _logger.info("query_logged", count=len(rows))
        except Exception:
            _logger.exception("query_log_write_failed", count=len(rows))
