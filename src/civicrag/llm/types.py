from dataclasses import dataclass
from enum import StrEnum


class MessageRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass
class Message:
    role: MessageRole
    content: str


@dataclass
class TokenUsage:
    input_tokens: int
    output_tokens: int


@dataclass
class TextResponse:
    content: str
    usage: TokenUsage
