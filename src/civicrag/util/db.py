from typing import Any

import structlog
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker

_logger = structlog.get_logger()

_CONNECT_TIMEOUT_SECONDS = 10

_engine: Engine | None = None


def configure_engine(database_url: str) -> Engine:
    global _engine  # noqa: PLW0603
    connect_args: dict[str, Any] = {}
    if database_url.startswith("postgresql"):
        connect_args["connect_timeout"] = _CONNECT_TIMEOUT_SECONDS
    _engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
    _logger.info("db_engine_configured", url=database_url.split("@")[-1])
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Database engine not configured, call configure_engine() first")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    return sessionmaker(bind=get_engine(), expire_on_commit=False)


def init_db() -> None:
    engine = get_engine()
    if engine.dialect.name == "postgresql":
        with engine.connect() as conn:
            conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            conn.commit()

    from civicrag.storage.models import Base

    Base.metadata.create_all(engine)
    _logger.info("db_initialized")
