import json

from civicrag.categories import Category
from civicrag.followup import (
    ConversationTurn,
    TurnType,
    is_short_follow_up,
    last_substantive_question,
    parse_history,
    resolve_category,
)


def _history(*turns: tuple[str, str]) -> list[ConversationTurn]:
    return [ConversationTurn(type=TurnType(t), text=text) for t, text in turns]


class TestParseHistory:
    def test_parses_turns(self) -> None:
        raw = json.dumps(
            [
                {"type": "question", "text": "Vad kostar bygglov?"},
                {"type": "answer", "text": "Det beror på ärendet."},
            ]
        )

        assert parse_history(raw, max_turns=5) == _history(
            ("question", "Vad kostar bygglov?"),
            ("answer", "Det beror på ärendet."),
        )

    def test_keeps_only_most_recent_turns(self) -> None:
        raw = json.dumps([{"type": "question", "text": f"fråga {i}"} for i in range(8)])

        turns = parse_history(raw, max_turns=5)

        assert [t.text for t in turns] == [f"fråga {i}" for i in range(3, 8)]

    def test_invalid_input_yields_empty_history(self) -> None:
        assert parse_history(None, 5) == []
        assert parse_history("", 5) == []
        assert parse_history("not json", 5) == []
        assert parse_history('{"type": "question"}', 5) == []

    def test_malformed_entries_are_dropped(self) -> None:
        raw = json.dumps(
            [
                {"type": "question", "text": "Giltig fråga här"},
                {"type": "system", "text": "okänd typ"},
                {"type": "answer"},
                "bara text",
            ]
        )

        assert parse_history(raw, 5) == _history(("question", "Giltig fråga här"))


class TestShortFollowUp:
    def test_acknowledgements_are_follow_ups(self) -> None:
        for word in ("ja", "Ja", " nej ", "OK", "gärna", "absolut"):
            assert is_short_follow_up(word)

    def test_questions_are_not_follow_ups(self) -> None:
        assert not is_short_follow_up("ja, men vad kostar det?")
        assert not is_short_follow_up("Vad kostar bygglov?")


class TestLastSubstantiveQuestion:
    def test_skips_short_questions_and_answers(self) -> None:
        history = _history(
            ("question", "Behöver jag bygglov för en altan?"),
            ("answer", "Det beror på höjden."),
            ("question", "ok tack"),
        )

        assert last_substantive_question(history) == "Behöver jag bygglov för en altan?"

    def test_none_without_questions(self) -> None:
        assert last_substantive_question(_history(("answer", "Ett långt svar här."))) is None


class TestResolveCategory:
    def test_follow_up_inherits_category_of_previous_question(self) -> None:
        history = _history(
            ("question", "Vad kostar bygglov för ett garage?"),
            ("answer", "Avgiften beror på storleken. Vill du veta mer?"),
        )

        resolution = resolve_category("ja", history)

        assert resolution.is_follow_up is True
        assert resolution.category == Category.BUILDING
        assert resolution.source_text == "Vad kostar bygglov för ett garage?"

    def test_follow_up_without_history_searches_everything(self) -> None:
        resolution = resolve_category("ja", [])

        assert resolution.is_follow_up is True
        assert resolution.category is None

    def test_regular_query_uses_its_own_category(self) -> None:
        history = _history(("question", "Vad kostar bygglov för ett garage?"))

        resolution = resolve_category("Var ligger biblioteket?", history)

        assert resolution.is_follow_up is False
        assert resolution.category == Category.CULTURE
