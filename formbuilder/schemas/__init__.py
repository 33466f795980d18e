"""Pydantic schemas for data validation.

This package contains the Pydantic models for authoring payloads, serialized
form views and answer values.
"""

from formbuilder.schemas.form import (
    QuestionType,
    OptionPayload,
    QuestionPayload,
    SectionPayload,
    FormSettings,
    FormCreateRequest,
    FormUpdateRequest,
    FormOut,
)
from formbuilder.schemas.answer import (
    TextAnswer,
    MultiSelectAnswer,
    AnswerValue,
    parse_answer_value,
)

__all__ = [
    "QuestionType",
    "OptionPayload",
    "QuestionPayload",
    "SectionPayload",
    "FormSettings",
    "FormCreateRequest",
    "FormUpdateRequest",
    "FormOut",
    "TextAnswer",
    "MultiSelectAnswer",
    "AnswerValue",
    "parse_answer_value",
]
