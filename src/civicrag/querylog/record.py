import hashlib
from dataclasses import dataclass


@dataclass(frozen=True)
class Pricing:
    """USD per one million tokens."""

    embedding_per_1m: float = 0.13
    chat_input_per_1m: float = 0.15
    chat_output_per_1m: float = 0.60


@dataclass(frozen=True)
class QueryRecord:
    tenant_id: str
    query: str
    category: str | None
    answer: str
    sources_count: int
    embedding_tokens: int
    prompt_tokens: int
    response_tokens: int
    response_time_ms: int
    chunks_found: int
    similarity_threshold: float
    session_id: str | None = None
    user_language: str = "sv"
    user_agent: str | None = None
    ip_address: str | None = None


def calculate_cost(
    embedding_tokens: int,
    prompt_tokens: int,
    response_tokens: int,
    pricing: Pricing,
) -> float:
    return (
        embedding_tokens / 1_000_000 * pricing.embedding_per_1m
        + prompt_tokens / 1_000_000 * pricing.chat_input_per_1m
        + response_tokens / 1_000_000 * pricing.chat_output_per_1m
    )


def hash_ip(ip_address: str | None, salt: str) -> str | None:
    if not ip_address:
        return None
    return hashlib.sha256(f"{ip_address}{salt}".encode()).hexdigest()
