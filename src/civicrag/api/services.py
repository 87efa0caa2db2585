from dataclasses import dataclass

import structlog

from civicrag.config import AppConfig
from civicrag.embedding import create_embedding_provider
from civicrag.errors import ConfigurationError
from civicrag.llm.generator import AnswerGenerator
from civicrag.llm.provider import OpenAIChatProvider
from civicrag.pipeline import SearchPipeline
from civicrag.querylog.logger import QueryLogger
from civicrag.querylog.repository import QueryLogRepository
from civicrag.retrieval.retriever import ChunkRetriever
from civicrag.speech import AzureSpeechSynthesizer, AzureTranslator
from civicrag.storage.pages import PageRepository
from civicrag.util.db import configure_engine, get_session_factory

_logger = structlog.get_logger()


@dataclass
class Services:
    """Collaborators shared by every request, built once per application."""

    pipeline: SearchPipeline
    feedback: QueryLogRepository
    translator: AzureTranslator | None = None
    synthesizer: AzureSpeechSynthesizer | None = None
    query_logger: QueryLogger | None = None

    def close(self) -> None:
        if self.query_logger is not None:
            self.query_logger.shutdown()
        if self.translator is not None:
            self.translator.close()
        if self.synthesizer is not None:
            self.synthesizer.close()


def build_services(config: AppConfig) -> Services:
    configure_engine(config.database_url)
    session_factory = get_session_factory()

    query_logger = None
    if config.query_log.enabled:
        query_logger = QueryLogger(
            session_factory,
            ip_salt=config.query_log.ip_salt,
            pricing=config.query_log.pricing,
        )

    pipeline = SearchPipeline(
        tenant_id=config.tenant_id,
        embedder=create_embedding_provider(config.embedding),
        retriever=ChunkRetriever(session_factory, timeout_seconds=config.retrieval.timeout_seconds),
        pages=PageRepository(session_factory),
        generator=AnswerGenerator(OpenAIChatProvider(config.chat)),
        query_logger=query_logger,
        retrieval=config.retrieval,
    )

    translator = None
    try:
        translator = AzureTranslator(config.translator)
    except ConfigurationError as e:
        _logger.warning("translator_disabled", code=e.code)

    synthesizer = None
    try:
        synthesizer = AzureSpeechSynthesizer(config.speech)
    except ConfigurationError as e:
        _logger.warning("speech_disabled", code=e.code)

    _logger.info(
        "services_wired",
        tenant_id=config.tenant_id,
        query_log=query_logger is not None,
        translator=translator is not None,
        speech=synthesizer is not None,
    )
    return Services(
        pipeline=pipeline,
        feedback=QueryLogRepository(session_factory),
        translator=translator,
        synthesizer=synthesizer,
        query_logger=query_logger,
    )
