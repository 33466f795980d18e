"""Unit tests for form authoring payload schemas."""

import pytest
from pydantic import ValidationError

from formbuilder.schemas.form import (
    DEFAULT_CONFIRMATION_MESSAGE,
    FormCreateRequest,
    FormSettings,
    FormUpdateRequest,
    QuestionPayload,
    QuestionType,
    RenameRequest,
    SectionReorderRequest,
)


class TestQuestionPayload:
    """Tests for QuestionPayload parsing."""

    def test_camel_case_aliases(self):
        question = QuestionPayload.model_validate({
            "text": "Pick one",
            "type": "MULTIPLE_CHOICE",
            "imageUrl": "https://cdn.example.com/q.png",
            "correctAnswers": ["Red"],
            "shuffleOptionsOrder": True,
        })
        assert question.type == QuestionType.MULTIPLE_CHOICE
        assert question.image_url == "https://cdn.example.com/q.png"
        assert question.correct_answers == ["Red"]
        assert question.shuffle_options_order is True

    def test_defaults(self):
        question = QuestionPayload.model_validate({})
        assert question.id is None
        assert question.text == ""
        assert question.type == QuestionType.SHORT_ANSWER
        assert question.required is False
        assert question.points == 1
        assert question.options == []

    def test_legacy_question_key(self):
        question = QuestionPayload.model_validate({"question": "Your name?"})
        assert question.text == "Your name?"

    def test_text_wins_over_legacy_key(self):
        question = QuestionPayload.model_validate({"text": "New", "question": "Old"})
        assert question.text == "New"

    def test_plain_string_options(self):
        question = QuestionPayload.model_validate({
            "type": "DROPDOWN",
            "options": ["Red", {"text": "Blue", "imageUrl": "blue.png"}],
        })
        assert [o.text for o in question.options] == ["Red", "Blue"]
        assert question.options[1].image_url == "blue.png"

    def test_nulls_fall_back_to_defaults(self):
        question = QuestionPayload.model_validate({
            "text": "Q",
            "required": None,
            "options": None,
            "points": None,
        })
        assert question.required is False
        assert question.options == []
        assert question.points == 1

    def test_zero_points_become_one(self):
        assert QuestionPayload.model_validate({"points": 0}).points == 1

    def test_negative_points_rejected(self):
        with pytest.raises(ValidationError):
            QuestionPayload.model_validate({"points": -2})

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            QuestionPayload.model_validate({"type": "RATING"})

    def test_persistable_options_drop_blanks(self):
        question = QuestionPayload.model_validate({
            "type": "CHECKBOXES",
            "options": ["A", "", "   ", "B"],
        })
        assert [o.text for o in question.persistable_options()] == ["A", "B"]

    def test_free_text_has_no_persistable_options(self):
        question = QuestionPayload.model_validate({
            "type": "PARAGRAPH",
            "options": ["Leftover from a previous type"],
        })
        assert question.persistable_options() == []


class TestFormUpdateRequest:
    """Tests for FormUpdateRequest validation."""

    def test_sections_payload(self):
        request = FormUpdateRequest.model_validate({
            "title": "Survey",
            "sections": [
                {"id": "temp_1", "title": "A", "questions": [{"text": "Q1"}]},
            ],
        })
        assert request.accepting_responses is True
        assert request.uses_legacy_questions is False
        sections = request.desired_sections()
        assert len(sections) == 1
        assert sections[0].questions[0].text == "Q1"

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError, match="Form title is required"):
            FormUpdateRequest.model_validate({"title": "   ", "sections": [{"title": "A"}]})

    def test_missing_title_rejected(self):
        with pytest.raises(ValidationError):
            FormUpdateRequest.model_validate({"sections": [{"title": "A"}]})

    def test_structure_required(self):
        with pytest.raises(ValidationError, match="sections or questions"):
            FormUpdateRequest.model_validate({"title": "Survey"})

    def test_empty_sections_rejected(self):
        with pytest.raises(ValidationError, match="at least one section"):
            FormUpdateRequest.model_validate({"title": "Survey", "sections": []})

    def test_duplicate_section_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate section ids"):
            FormUpdateRequest.model_validate({
                "title": "Survey",
                "sections": [{"id": "s1"}, {"id": "s1"}],
            })

    def test_duplicate_question_ids_across_sections_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate question ids"):
            FormUpdateRequest.model_validate({
                "title": "Survey",
                "sections": [
                    {"id": "s1", "questions": [{"id": "q1"}]},
                    {"id": "s2", "questions": [{"id": "q1"}]},
                ],
            })

    def test_whitespace_variant_counts_as_duplicate(self):
        with pytest.raises(ValidationError, match="Duplicate section ids"):
            FormUpdateRequest.model_validate({
                "title": "Survey",
                "sections": [{"id": "s1"}, {"id": " s1 "}],
            })

    def test_ids_are_trimmed(self):
        request = FormUpdateRequest.model_validate({
            "title": "Survey",
            "sections": [{"id": " s1 ", "questions": [{"id": "q1\t"}, {"id": "   "}]}],
        })

        section = request.desired_sections()[0]
        assert section.id == "s1"
        assert section.questions[0].id == "q1"
        assert section.questions[1].id is None

    def test_repeated_placeholder_ids_allowed(self):
        request = FormUpdateRequest.model_validate({
            "title": "Survey",
            "sections": [
                {"id": "temp_1", "questions": [{"id": "temp_9"}]},
                {"id": "temp_1", "questions": [{"id": "temp_9"}]},
            ],
        })

        assert len(request.desired_sections()) == 2

    def test_legacy_questions_wrapped_in_one_section(self):
        request = FormUpdateRequest.model_validate({
            "title": "Survey",
            "questions": [{"question": "Q1"}, {"text": "Q2"}],
        })
        assert request.uses_legacy_questions is True
        sections = request.desired_sections(legacy_section_id="sec_1")
        assert len(sections) == 1
        assert sections[0].id == "sec_1"
        assert sections[0].title == "Section 1"
        assert [q.text for q in sections[0].questions] == ["Q1", "Q2"]

    def test_sections_preferred_over_legacy_questions(self):
        request = FormUpdateRequest.model_validate({
            "title": "Survey",
            "sections": [{"title": "Real"}],
            "questions": [{"text": "Ignored"}],
        })
        assert request.uses_legacy_questions is False
        assert [s.title for s in request.desired_sections()] == ["Real"]

    def test_accepting_responses_alias(self):
        request = FormUpdateRequest.model_validate({
            "title": "Survey",
            "acceptingResponses": False,
            "sections": [{"title": "A"}],
        })
        assert request.accepting_responses is False


class TestFormCreateRequest:
    """Tests for FormCreateRequest."""

    def test_structure_optional(self):
        request = FormCreateRequest.model_validate({"title": "Fresh"})
        assert request.desired_sections() == []
        assert request.settings is None


class TestFormSettings:
    """Tests for FormSettings defaults and coercion."""

    def test_defaults(self):
        settings = FormSettings()
        assert settings.allow_multiple_responses is True
        assert settings.show_progress is True
        assert settings.confirmation_message == DEFAULT_CONFIRMATION_MESSAGE
        assert settings.edit_time_limit == "24h"
        assert settings.is_quiz is False

    def test_blank_confirmation_message_uses_default(self):
        settings = FormSettings.model_validate({"confirmationMessage": "  "})
        assert settings.confirmation_message == DEFAULT_CONFIRMATION_MESSAGE

    def test_invalid_edit_time_limit(self):
        with pytest.raises(ValidationError):
            FormSettings.model_validate({"editTimeLimit": "1y"})

    def test_dump_by_alias(self):
        dumped = FormSettings(is_quiz=True).model_dump(by_alias=True)
        assert dumped["isQuiz"] is True
        assert "allowResponseEditing" in dumped


class TestSmallRequests:
    """Tests for single-field request bodies."""

    def test_rename_strips_title(self):
        assert RenameRequest.model_validate({"title": "  New name "}).title == "New name"

    def test_rename_rejects_blank(self):
        with pytest.raises(ValidationError):
            RenameRequest.model_validate({"title": ""})

    def test_reorder_requires_ids(self):
        with pytest.raises(ValidationError):
            SectionReorderRequest.model_validate({"sectionIds": []})
