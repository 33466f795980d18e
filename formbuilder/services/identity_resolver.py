"""Identity resolution for incoming sections and questions.

The authoring UI sends the whole desired tree. Nodes that were loaded from
the server carry their persisted id; nodes added in the editor carry either
no id or a client-side placeholder such as ``temp_1763318223615``. This
module tells the two apart.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union


@dataclass(frozen=True)
class Existing:
    """Node refers to a row already stored under the form being edited."""
    id: str


@dataclass(frozen=True)
class New:
    """Node must be created.

    Attributes:
        unrecognized_id: A non-placeholder id that does not belong to the
            form (deleted meanwhile, or taken from another form). Callers log
            it; it is never used as a key.
    """
    unrecognized_id: Optional[str] = None


Identity = Union[Existing, New]


class IdentityResolver:
    """Classify payload ids against the ids stored for one form.

    Example:
        >>> resolver = IdentityResolver({"abc"}, temp_prefix="temp_")
        >>> resolver.resolve("abc")
        Existing(id='abc')
        >>> resolver.resolve("temp_42")
        New(unrecognized_id=None)
    """

    def __init__(self, known_ids: Iterable[str], temp_prefix: str = "temp_"):
        self.known_ids = frozenset(known_ids)
        self.temp_prefix = temp_prefix

    def is_placeholder(self, entity_id: Optional[str]) -> bool:
        """Return True for ids meaning "not yet persisted"."""
        if entity_id is None:
            return True
        stripped = entity_id.strip()
        return not stripped or stripped.startswith(self.temp_prefix)

    def resolve(self, entity_id: Optional[str]) -> Identity:
        """Classify a single payload id.

        Args:
            entity_id: The ``id`` field of an incoming node, if any

        Returns:
            ``Existing`` if the id is stored under this form, otherwise ``New``
        """
        if self.is_placeholder(entity_id):
            return New()
        entity_id = entity_id.strip()
        if entity_id in self.known_ids:
            return Existing(entity_id)
        return New(unrecognized_id=entity_id)
