"""Safe question-type change rules.

Changing a question's type in place is harmless while nobody has answered
it. Once answers exist, only changes that keep those answers meaningful are
allowed: between the two free-text types, or among the option-backed types
(whose options are replaced wholesale anyway).
"""

from dataclasses import dataclass
from typing import Optional

from formbuilder.schemas.form import QuestionType


@dataclass
class TypeChangeDecision:
    """Outcome of a type-change check.

    Attributes:
        allowed: Whether the question may take the requested type
        reason: Why the change was denied (None when allowed)
    """
    allowed: bool
    reason: Optional[str] = None


class TypeChangeValidator:
    """Decide whether an existing question may switch answer type."""

    @staticmethod
    def is_compatible(current: QuestionType, requested: QuestionType) -> bool:
        """Return True when answers of ``current`` remain valid as ``requested``."""
        if current == requested:
            return True
        if current.is_free_text and requested.is_free_text:
            return True
        if current.is_option_backed and requested.is_option_backed:
            return True
        return False

    @staticmethod
    def evaluate(
        current: QuestionType,
        requested: QuestionType,
        has_answers: bool
    ) -> TypeChangeDecision:
        """Check a requested type change for a stored question.

        Args:
            current: Type currently stored
            requested: Type in the incoming payload
            has_answers: Whether any answer references the question

        Returns:
            TypeChangeDecision

        Example:
            >>> TypeChangeValidator.evaluate(
            ...     QuestionType.SHORT_ANSWER, QuestionType.MULTIPLE_CHOICE, has_answers=True
            ... ).allowed
            False
        """
        if not has_answers or TypeChangeValidator.is_compatible(current, requested):
            return TypeChangeDecision(allowed=True)

        return TypeChangeDecision(
            allowed=False,
            reason=(
                f"cannot change type from {current.value} to {requested.value} "
                f"while answers exist"
            ),
        )
