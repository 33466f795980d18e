"""Answer value schemas.

Answers arrive from the submission flow as either a free-text string or a
list of selected option texts. They are validated once into a tagged union
so nothing downstream has to branch on raw JSON shapes.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class TextAnswer(BaseModel):
    """Free-text answer (short answer, paragraph, or a single choice)."""
    kind: Literal["text"] = "text"
    text: str


class MultiSelectAnswer(BaseModel):
    """Answer selecting one or more option texts (checkboxes)."""
    kind: Literal["multi_select"] = "multi_select"
    selected: list[str] = Field(default_factory=list)

    @property
    def display_text(self) -> str:
        return ", ".join(self.selected)


AnswerValue = Annotated[Union[TextAnswer, MultiSelectAnswer], Field(discriminator="kind")]

_answer_value_adapter = TypeAdapter(AnswerValue)


def parse_answer_value(raw: Any) -> Union[TextAnswer, MultiSelectAnswer]:
    """Validate a raw submitted value into an ``AnswerValue``.

    Strings become ``TextAnswer``, lists become ``MultiSelectAnswer``, and
    already-tagged dicts are validated against the union.

    Raises:
        pydantic.ValidationError: If the value has any other shape
    """
    if isinstance(raw, str):
        return TextAnswer(text=raw)
    if isinstance(raw, list):
        return MultiSelectAnswer(selected=raw)
    return _answer_value_adapter.validate_python(raw)
