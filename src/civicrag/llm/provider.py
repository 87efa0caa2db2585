from abc import ABC, abstractmethod
from typing import Any

import structlog
from openai import OpenAI, OpenAIError

from civicrag.errors import UpstreamServiceError
from civicrag.llm.config import ChatConfig
from civicrag.llm.types import Message, TextResponse, TokenUsage

_logger = structlog.get_logger()


class AbstractChatProvider(ABC):
    def __init__(self, config: ChatConfig) -> None:
        self.config = config

    @abstractmethod
    def complete(self, messages: list[Message]) -> TextResponse:
        """Send the conversation to the model and return its text reply."""
        ...


class OpenAIChatProvider(AbstractChatProvider):
    """OpenAI chat-completion provider."""

    def __init__(self, config: ChatConfig) -> None:
        super().__init__(config)
        self.client = OpenAI(
            api_key=config.api_key,
            base_url=config.api_url,
            project=config.project,
            timeout=config.timeout_seconds,
            max_retries=0,
        )

    def complete(self, messages: list[Message]) -> TextResponse:
        _logger.info(
            "openai_request_starting", model=self.config.model, message_count=len(messages)
        )
        params: dict[str, Any] = {
            "model": self.config.model,
            "messages": [{"role": m.role.value, "content": m.content} for m in messages],
            "max_completion_tokens": self.config.max_tokens,
        }

        if self.config.temperature is not None:
            params["temperature"] = self.config.temperature

        try:
            response = self.client.chat.completions.create(**params)
        except OpenAIError as exc:
            _logger.error("openai_request_failed", error=str(exc))
            raise UpstreamServiceError("chat_completion", f"Answer generation failed: {exc}") from exc

        choice = response.choices[0]
        usage = TokenUsage(
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
        )

        _logger.info(
            "openai_response_finished",
            reason=choice.finish_reason,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        )
        return TextResponse(content=choice.message.content or "", usage=usage)
