"""Unit tests for payload identity resolution."""

import pytest

from formbuilder.services.identity_resolver import Existing, IdentityResolver, New


class TestIdentityResolver:
    """Tests for IdentityResolver.resolve."""

    @pytest.fixture
    def resolver(self):
        return IdentityResolver({"sec_1", "q_1"}, temp_prefix="temp_")

    def test_known_id_is_existing(self, resolver):
        assert resolver.resolve("q_1") == Existing("q_1")

    def test_missing_id_is_new(self, resolver):
        assert resolver.resolve(None) == New()

    @pytest.mark.parametrize("blank", ["", "   "])
    def test_blank_id_is_new(self, resolver, blank):
        assert resolver.resolve(blank) == New()

    def test_temp_prefixed_id_is_new(self, resolver):
        """Placeholder ids never count as persisted, whatever follows the prefix."""
        assert resolver.resolve("temp_section_1763318223615") == New()
        assert resolver.is_placeholder("temp_q_1")

    def test_unknown_real_id_is_new_and_reported(self, resolver):
        """Ids from another form are not trusted as keys."""
        identity = resolver.resolve("other_form_question")
        assert isinstance(identity, New)
        assert identity.unrecognized_id == "other_form_question"

    def test_surrounding_whitespace_is_ignored(self, resolver):
        assert resolver.resolve(" sec_1 ") == Existing("sec_1")

    def test_custom_prefix(self):
        resolver = IdentityResolver({"abc"}, temp_prefix="draft-")
        assert resolver.resolve("draft-1") == New()
        assert resolver.resolve("temp_1") == New(unrecognized_id="temp_1")
