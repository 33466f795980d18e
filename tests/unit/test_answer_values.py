"""Unit tests for answer value parsing."""

import pytest
from pydantic import ValidationError

from formbuilder.models.answer import Answer
from formbuilder.schemas.answer import MultiSelectAnswer, TextAnswer, parse_answer_value


class TestParseAnswerValue:
    """Tests for parse_answer_value."""

    def test_string_is_text_answer(self):
        assert parse_answer_value("Blue") == TextAnswer(text="Blue")

    def test_list_is_multi_select(self):
        value = parse_answer_value(["Red", "Green"])
        assert isinstance(value, MultiSelectAnswer)
        assert value.selected == ["Red", "Green"]
        assert value.display_text == "Red, Green"

    def test_tagged_dict(self):
        value = parse_answer_value({"kind": "multi_select", "selected": ["A"]})
        assert isinstance(value, MultiSelectAnswer)

    def test_unknown_shape_rejected(self):
        with pytest.raises(ValidationError):
            parse_answer_value({"kind": "rating", "stars": 4})


class TestAnswerFromValue:
    """Tests for building Answer rows from values."""

    def test_text_answer(self):
        answer = Answer.from_value("resp_1", "q_1", TextAnswer(text="Hello"))
        assert answer.answer_text == "Hello"
        assert answer.selected_options is None
        assert answer.value == TextAnswer(text="Hello")

    def test_multi_select_keeps_text_copy(self):
        answer = Answer.from_value("resp_1", "q_1", MultiSelectAnswer(selected=["A", "B"]))
        assert answer.answer_text == "A, B"
        assert answer.selected_options == ["A", "B"]
        assert answer.value == MultiSelectAnswer(selected=["A", "B"])

    def test_empty_selection_stays_multi_select(self):
        answer = Answer.from_value("resp_1", "q_1", MultiSelectAnswer(selected=[]))

        assert answer.selected_options == []
        assert answer.value == MultiSelectAnswer(selected=[])

    def test_empty_text_stays_text(self):
        answer = Answer.from_value("resp_1", "q_1", TextAnswer(text=""))

        assert answer.value == TextAnswer(text="")
