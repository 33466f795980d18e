"""Pydantic schemas for form authoring payloads.

The authoring UI posts camelCase JSON. Everything is validated here, once,
into typed models; the reconciliation engine never looks at raw dicts.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from formbuilder.config import get_settings

DEFAULT_CONFIRMATION_MESSAGE = "Your response has been recorded."


class QuestionType(str, Enum):
    """Answer types a question can declare."""
    SHORT_ANSWER = "SHORT_ANSWER"
    PARAGRAPH = "PARAGRAPH"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    CHECKBOXES = "CHECKBOXES"
    DROPDOWN = "DROPDOWN"

    @property
    def is_option_backed(self) -> bool:
        return self in OPTION_BACKED_TYPES

    @property
    def is_free_text(self) -> bool:
        return self in FREE_TEXT_TYPES


FREE_TEXT_TYPES = frozenset({QuestionType.SHORT_ANSWER, QuestionType.PARAGRAPH})
OPTION_BACKED_TYPES = frozenset({
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.CHECKBOXES,
    QuestionType.DROPDOWN,
})

EditTimeLimit = Literal["24h", "7d", "30d", "always"]


class PayloadModel(BaseModel):
    """Base for request bodies: camelCase aliases, nulls fall back to defaults."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Treat explicit JSON nulls like missing keys."""
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


def _normalize_id(v: Any) -> Any:
    """Trim payload ids; an id that is blank after trimming means "no id"."""
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class OptionPayload(PayloadModel):
    """A desired option.

    Attributes:
        text: Option label (blank options are discarded before persistence)
        image_url: Optional option image
    """
    text: str = ""
    image_url: Optional[str] = None

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


class QuestionPayload(PayloadModel):
    """A desired question.

    Attributes:
        id: Persisted id, placeholder id, or None for a new question
        text: Question prompt (kept as given, even when blank)
        description: Optional help text
        type: Answer type
        required: Whether an answer is mandatory
        image_url: Optional illustration
        points: Quiz points
        correct_answers: Quiz answer key
        shuffle_options_order: Shuffle options when rendering
        options: Desired options, replaced wholesale on save
    """
    id: Optional[str] = None
    text: str = ""
    description: Optional[str] = None
    type: QuestionType = QuestionType.SHORT_ANSWER
    required: bool = False
    image_url: Optional[str] = None
    points: int = Field(default=1, ge=0)
    correct_answers: list[str] = Field(default_factory=list)
    shuffle_options_order: bool = False
    options: list[OptionPayload] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_question_key(cls, data: Any) -> Any:
        """Older clients send the prompt under ``question`` instead of ``text``."""
        if isinstance(data, dict) and not data.get("text") and data.get("question"):
            data = dict(data)
            data["text"] = data.pop("question")
        return data

    @field_validator("id", mode="before")
    @classmethod
    def strip_id(cls, v: Any) -> Any:
        return _normalize_id(v)

    @field_validator("options", mode="before")
    @classmethod
    def accept_plain_string_options(cls, v: Any) -> Any:
        """Legacy payloads list options as bare strings."""
        if isinstance(v, list):
            return [{"text": item} if isinstance(item, str) else item for item in v]
        return v

    @field_validator("points", mode="before")
    @classmethod
    def zero_points_default_to_one(cls, v: Any) -> Any:
        """Quiz points of 0 are treated as unset."""
        return 1 if v == 0 else v

    def persistable_options(self) -> list[OptionPayload]:
        """Options that should be stored for this question.

        Only option-backed types keep options, and blank labels are dropped.
        """
        if not self.type.is_option_backed:
            return []
        return [option for option in self.options if not option.is_blank]


class SectionPayload(PayloadModel):
    """A desired section.

    Attributes:
        id: Persisted id, placeholder id, or None for a new section
        title: Section title
        description: Optional section description
        questions: Desired questions in display order
    """
    id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    questions: list[QuestionPayload] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def strip_id(cls, v: Any) -> Any:
        return _normalize_id(v)


class FormSettings(PayloadModel):
    """Display, quiz and respondent-editing settings of a form."""
    shuffle_questions: bool = False
    collect_email: bool = False
    allow_multiple_responses: bool = True
    show_progress: bool = True
    confirmation_message: str = DEFAULT_CONFIRMATION_MESSAGE
    default_required: bool = False
    is_quiz: bool = False
    show_correct_answers: bool = True
    release_grades: bool = True
    allow_response_editing: bool = False
    edit_time_limit: EditTimeLimit = "24h"

    @field_validator("confirmation_message")
    @classmethod
    def blank_message_uses_default(cls, v: str) -> str:
        return v if v.strip() else DEFAULT_CONFIRMATION_MESSAGE


def _duplicates(ids: list[str]) -> set[str]:
    seen: set[str] = set()
    dupes: set[str] = set()
    for entity_id in ids:
        if entity_id in seen:
            dupes.add(entity_id)
        seen.add(entity_id)
    return dupes


class FormDefinition(PayloadModel):
    """Fields shared by the create and update requests.

    ``sections`` is the preferred shape. A flat ``questions`` list is the
    legacy shape and is wrapped into a single default section.
    """
    title: str = Field(..., description="Form title")
    description: Optional[str] = None
    published: bool = False
    settings: Optional[FormSettings] = None
    sections: Optional[list[SectionPayload]] = None
    questions: Optional[list[QuestionPayload]] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        """Reject titles that are empty after trimming."""
        if not v.strip():
            raise ValueError("Form title is required")
        return v

    @model_validator(mode="after")
    def validate_unique_ids(self):
        """The same persisted id may not appear twice in one payload.

        Placeholder ids only name a node inside one request and may repeat.
        """
        temp_prefix = get_settings().temp_id_prefix

        def persisted(entity_id: Optional[str]) -> bool:
            return bool(entity_id) and not entity_id.startswith(temp_prefix)

        sections = self.sections or []
        section_ids = [s.id for s in sections if persisted(s.id)]
        question_ids = [q.id for s in sections for q in s.questions if persisted(q.id)]
        question_ids += [q.id for q in (self.questions or []) if persisted(q.id)]

        dup_sections = _duplicates(section_ids)
        if dup_sections:
            raise ValueError(f"Duplicate section ids in payload: {sorted(dup_sections)}")
        dup_questions = _duplicates(question_ids)
        if dup_questions:
            raise ValueError(f"Duplicate question ids in payload: {sorted(dup_questions)}")
        return self

    @property
    def uses_legacy_questions(self) -> bool:
        return not self.sections and bool(self.questions)

    def desired_sections(self, legacy_section_id: Optional[str] = None) -> list[SectionPayload]:
        """Return the desired section list, wrapping legacy questions if needed.

        Args:
            legacy_section_id: Id given to the wrapper section so a legacy
                payload can update an existing first section in place

        Returns:
            Sections in payload order
        """
        if self.sections:
            return list(self.sections)
        if self.questions:
            return [
                SectionPayload(
                    id=legacy_section_id,
                    title="Section 1",
                    questions=list(self.questions),
                )
            ]
        return []


class FormCreateRequest(FormDefinition):
    """Body of the create-form request."""
    pass


class FormUpdateRequest(FormDefinition):
    """Body of the update-form request (full desired tree)."""
    accepting_responses: bool = True

    @model_validator(mode="after")
    def validate_structure_present(self):
        """An update must carry a structure; an absent one would wipe the form."""
        if self.sections is None and not self.questions:
            raise ValueError("Form update must include sections or questions")
        if self.sections is not None and not self.sections and not self.questions:
            raise ValueError("Form update must include at least one section")
        return self


class RenameRequest(PayloadModel):
    title: str

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Form title is required")
        return v.strip()


class PublishRequest(PayloadModel):
    published: bool


class ToggleResponsesRequest(PayloadModel):
    accepting_responses: bool


class SectionCreateRequest(PayloadModel):
    title: str = ""
    description: str = ""


class SectionUpdateRequest(PayloadModel):
    title: Optional[str] = None
    description: Optional[str] = None


class SectionReorderRequest(PayloadModel):
    section_ids: list[str] = Field(..., min_length=1)


# Output schemas


class OutputModel(BaseModel):
    """Base for serialized views: read from ORM rows, dump as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class OptionOut(OutputModel):
    id: str
    text: str
    image_url: Optional[str] = None


class QuestionOut(OutputModel):
    id: str
    text: str
    description: Optional[str] = None
    type: QuestionType
    required: bool
    image_url: Optional[str] = None
    order: int
    points: int
    correct_answers: list[str]
    shuffle_options_order: bool
    options: list[OptionOut]


class SectionOut(OutputModel):
    id: str
    title: str
    description: Optional[str] = None
    order: int
    questions: list[QuestionOut]


class FormOut(OutputModel):
    id: str
    title: str
    description: Optional[str] = None
    published: bool
    accepting_responses: bool
    shuffle_questions: bool
    collect_email: bool
    allow_multiple_responses: bool
    show_progress: bool
    confirmation_message: str
    default_required: bool
    is_quiz: bool
    show_correct_answers: bool
    release_grades: bool
    allow_response_editing: bool
    edit_time_limit: str
    sections: list[SectionOut]


class FormListItem(OutputModel):
    id: str
    title: str
    description: Optional[str] = None
    published: bool
    accepting_responses: bool
    response_count: int
    created_at: datetime


class FormSearchItem(OutputModel):
    id: str
    title: str
    description: Optional[str] = None
    published: bool
    created_at: datetime
