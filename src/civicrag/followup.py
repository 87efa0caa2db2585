import json
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

from civicrag.categories import Category, classify

_logger = structlog.get_logger()

_ACKNOWLEDGEMENTS = frozenset({"ja", "nej", "ok", "gärna", "kanske", "inte", "visst", "absolut"})
_MIN_QUESTION_LENGTH = 10


class TurnType(StrEnum):
    QUESTION = "question"
    ANSWER = "answer"


@dataclass(frozen=True)
class ConversationTurn:
    type: TurnType
    text: str


@dataclass(frozen=True)
class FollowUpResolution:
    category: Category | None
    is_follow_up: bool
    source_text: str  # the text the category was derived from


def parse_history(raw: str | None, max_turns: int) -> list[ConversationTurn]:
    """Parse the client-supplied ``history`` JSON array.

    Unparseable input and entries of an unknown type are dropped. Only the
    most recent ``max_turns`` turns are kept.
    """
    if not raw:
        return []

    try:
        items: Any = json.loads(raw)
    except json.JSONDecodeError:
        _logger.info("history_unparseable", length=len(raw))
        return []

    if not isinstance(items, list):
        return []

    turns: list[ConversationTurn] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text = item.get("text")
        try:
            turn_type = TurnType(item.get("type"))
        except ValueError:
            continue
        if not isinstance(text, str):
            continue
        turns.append(ConversationTurn(type=turn_type, text=text))

    if max_turns <= 0:
        return []
    return turns[-max_turns:]


def is_short_follow_up(query: str) -> bool:
    return query.strip().lower() in _ACKNOWLEDGEMENTS


def last_substantive_question(history: Sequence[ConversationTurn]) -> str | None:
    for turn in reversed(history):
        if turn.type == TurnType.QUESTION and len(turn.text) > _MIN_QUESTION_LENGTH:
            return turn.text
    return None


def resolve_category(query: str, history: Sequence[ConversationTurn]) -> FollowUpResolution:
    """Pick the category for a query, borrowing it from history for a bare "ja"/"ok".

    Short acknowledgements carry no topic of their own, so the category of
    the most recent substantive question is reused instead.
    """
    if not is_short_follow_up(query):
        return FollowUpResolution(category=classify(query), is_follow_up=False, source_text=query)

    previous = last_substantive_question(history)
    if previous is None:
        return FollowUpResolution(category=None, is_follow_up=True, source_text="")

    _logger.debug("follow_up_detected", previous_preview=previous[:80])
    return FollowUpResolution(category=classify(previous), is_follow_up=True, source_text=previous)
