from dataclasses import dataclass
from typing import Any

from civicrag.errors import openai_not_configured


@dataclass
class ChatConfig:
    model: str
    api_key: str
    temperature: float | None = 0.5
    max_tokens: int = 800
    api_url: str | None = None
    project: str | None = None
    timeout_seconds: float = 30.0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ChatConfig":
        api_key = raw.get("api_key", "")
        if not api_key:
            raise openai_not_configured("chat.api_key")

        temperature = raw.get("temperature", 0.5)
        return cls(
            model=raw.get("model") or "gpt-4o-mini",
            api_key=api_key,
            temperature=float(temperature) if temperature is not None else None,
            max_tokens=int(raw.get("max_tokens", 800)),
            api_url=raw.get("api_url") or None,
            project=raw.get("project") or None,
            timeout_seconds=float(raw.get("timeout_seconds", 30.0)),
        )
