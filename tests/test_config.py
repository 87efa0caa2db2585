from pathlib import Path

import pytest

from civicrag.config import default_config_path, load_config, parse_config
from civicrag.embedding import OpenAIEmbeddingConfig
from civicrag.errors import ConfigurationError

_YAML = """
database_url: $(DATABASE_URL)
tenant_id: sandviken
embedding:
  model: text-embedding-3-small
  openai:
    api_key: $(OPENAI_API_KEY)
chat:
  api_key: $(OPENAI_API_KEY)
retrieval:
  top_k: 3
  max_context_tokens: 2000
translator:
  key: $(AZURE_TRANSLATOR_KEY)
  region: westeurope
"""


def _minimal(**overrides: object) -> dict:
    raw: dict = {
        "database_url": "sqlite://",
        "tenant_id": "sandviken",
        "embedding": {"model": "text-embedding-3-small", "openai": {"api_key": "sk-test"}},
        "chat": {"api_key": "sk-test"},
    }
    raw.update(overrides)
    return raw


class TestParseConfig:
    def test_defaults(self) -> None:
        config = parse_config(_minimal())

        assert config.retrieval.similarity_threshold == 0.35
        assert config.retrieval.top_k == 5
        assert config.retrieval.max_history_turns == 5
        assert config.retrieval.max_context_tokens is None
        assert config.chunking.size == 1200
        assert config.chunking.overlap == 150
        assert config.chat.model == "gpt-4o-mini"
        assert config.chat.temperature == 0.5
        assert config.query_log.enabled is True
        assert config.query_log.pricing.chat_output_per_1m == 0.60
        assert config.translator.is_configured is False
        assert config.server.port == 8000

    def test_embedding_config(self) -> None:
        config = parse_config(_minimal())

        assert isinstance(config.embedding, OpenAIEmbeddingConfig)
        assert config.embedding.dimensions == 1536
        assert config.embedding.api_key == "sk-test"

    @pytest.mark.parametrize("missing", ["database_url", "tenant_id", "embedding", "chat"])
    def test_required_fields(self, missing: str) -> None:
        raw = _minimal()
        del raw[missing]

        with pytest.raises(ValueError):
            parse_config(raw)

    def test_missing_openai_key_is_configuration_error(self) -> None:
        raw = _minimal(chat={"api_key": ""})

        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(raw)

        assert exc_info.value.code == "openai_not_configured"

    def test_unknown_embedding_provider(self) -> None:
        raw = _minimal(embedding={"provider": "word2vec", "model": "x"})

        with pytest.raises(ValueError):
            parse_config(raw)


class TestLoadConfig:
    def test_resolves_environment_placeholders(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "civicrag.yaml"
        path.write_text(_YAML, encoding="utf-8")
        monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg://localhost/civicrag")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("AZURE_TRANSLATOR_KEY", "translator-key")

        config = load_config(path)

        assert config.database_url == "postgresql+psycopg://localhost/civicrag"
        assert config.chat.api_key == "sk-env"
        assert config.retrieval.top_k == 3
        assert config.retrieval.max_context_tokens == 2000
        assert config.translator.is_configured is True
        assert config.speech.is_configured is False

    def test_missing_database_url_env_fails(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "civicrag.yaml"
        path.write_text(_YAML, encoding="utf-8")
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        with pytest.raises(ValueError, match="DATABASE_URL"):
            load_config(path)

    def test_path_override_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CIVICRAG_CONFIG", str(tmp_path / "other.yaml"))

        assert default_config_path() == tmp_path / "other.yaml"
