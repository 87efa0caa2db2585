import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

from civicrag.llm.provider import AbstractChatProvider
from civicrag.llm.types import Message, MessageRole, TokenUsage
from civicrag.util import load_yaml_config

_logger = structlog.get_logger()

_MESSAGES_PATH = Path(__file__).parent / "messages.yaml"

_GREETING = re.compile(r"^\s*(hej|hallå|hello|hi)\b[\s,!.:;-]*", re.IGNORECASE)


@dataclass
class GeneratedAnswer:
    text: str
    usage: TokenUsage


def strip_greeting(text: str) -> str:
    """Remove a leading greeting the model added despite being told not to."""
    stripped = _GREETING.sub("", text, count=1)
    if stripped == text or not stripped:
        return text
    return stripped[0].upper() + stripped[1:]


class AnswerGenerator:
    def __init__(
        self,
        provider: AbstractChatProvider,
        messages: dict[str, Any] | None = None,
    ) -> None:
        self.provider = provider
        self.messages = messages if messages is not None else load_yaml_config(_MESSAGES_PATH)

    def build_messages(self, query: str, context: str, transcript: str) -> list[Message]:
        conversation_block = ""
        if transcript:
            conversation_block = self.messages["conversation_block"].format(transcript=transcript)
            conversation_block += "\n"

        system_prompt = self.messages["system_prompt"].format(
            organization=self.messages["organization"],
            conversation_block=conversation_block,
            query=query,
            context=context or self.messages["no_context"],
        )
        return [
            Message(role=MessageRole.SYSTEM, content=system_prompt),
            Message(role=MessageRole.USER, content=query),
        ]

    def generate(self, query: str, context: str, transcript: str = "") -> GeneratedAnswer:
        """Ask the model to answer ``query`` from ``context`` only.

        Provider failures propagate as :class:`UpstreamServiceError`.
        """
        response = self.provider.complete(self.build_messages(query, context, transcript))
        text = strip_greeting(response.content.strip())
        _logger.debug("answer_generated", length=len(text), has_context=bool(context))
        return GeneratedAnswer(text=text, usage=response.usage)
