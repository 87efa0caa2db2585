import structlog
from openai import OpenAI, OpenAIError

from civicrag.embedding.config import OpenAIEmbeddingConfig
from civicrag.embedding.provider import AbstractEmbeddingProvider, Embeddings
from civicrag.errors import UpstreamServiceError

_logger = structlog.get_logger()

_MAX_BATCH_SIZE = 500  # Keep well under OpenAI's 300k token-per-request limit


class OpenAIEmbeddingProvider(AbstractEmbeddingProvider):
    config: OpenAIEmbeddingConfig

    def __init__(self, config: OpenAIEmbeddingConfig) -> None:
        super().__init__(config)
        self._client = OpenAI(
            api_key=config.api_key,
            base_url=config.api_url,
            project=config.project,
            timeout=config.timeout_seconds,
            max_retries=0,
        )

    def embed(self, texts: list[str]) -> Embeddings:
        if not texts:
            return Embeddings(vectors=[], total_tokens=0)

        all_embeddings: list[list[float]] = []
        total_tokens = 0

        for i in range(0, len(texts), _MAX_BATCH_SIZE):
            batch = texts[i : i + _MAX_BATCH_SIZE]
            _logger.debug("embedding_batch", batch_size=len(batch), offset=i)

            try:
                response = self._client.embeddings.create(
                    model=self.config.model,
                    input=batch,
                )
            except OpenAIError as exc:
                _logger.error("embedding_request_failed", error=str(exc))
                raise UpstreamServiceError("embedding", f"Embedding request failed: {exc}") from exc

            all_embeddings.extend(item.embedding for item in response.data)
            total_tokens += response.usage.total_tokens if response.usage else 0

        return Embeddings(vectors=all_embeddings, total_tokens=total_tokens)
