"""
Tests for the lexical test/skip classifier.
"""
import pytest

from app.services.classifier import SKIP_PATTERN, TEST_PATTERN, Classification, classify, count_matches


class TestClassify:
    """Tests for classify()."""

    def test_empty_text(self):
        """Empty content has no tests and no skips."""
        assert classify("") == Classification(test_count=0, skip_count=0)

    def test_plain_declarations(self):
        """describe/it/test calls are each counted once."""
        text = (
            "describe('suite', () => {\n"
            "  it('a', () => {});\n"
            "  test('b', () => {});\n"
            "});\n"
        )
        assert classify(text) == Classification(test_count=3, skip_count=0)

    def test_qualified_calls_are_not_plain_declarations(self):
        """it.skip( only matches the skip pattern, so skip_count can exceed test_count."""
        text = "it('a');\nit.skip('b');\ndescribe.flaky('c');"
        result = classify(text)
        assert result.test_count == 1
        assert result.skip_count == 2

    def test_describe_with_skipped_and_flaky_cases(self):
        """The describe call is the only plain declaration; both qualified calls are skips."""
        text = "describe('x', () => {}); it.skip('y', () => {}); test.flaky('z', () => {});"
        assert classify(text) == Classification(test_count=1, skip_count=2)

    def test_all_qualified_forms(self):
        """Every keyword combines with every qualifier."""
        text = "\n".join(
            f"{keyword}.{qualifier}('x')"
            for keyword in ("it", "test", "describe")
            for qualifier in ("skip", "flaky")
        )
        assert classify(text) == Classification(test_count=0, skip_count=6)

    def test_whitespace_before_parenthesis(self):
        """Whitespace between the name and the parenthesis still counts."""
        assert classify("it  ('a')\ntest\t('b')\nit.skip ('c')") == Classification(test_count=2, skip_count=1)

    def test_counts_inside_comments_and_strings(self):
        """Matching is lexical: comments and string literals are counted."""
        text = "// it('commented')\nconst s = \"test.skip(\";"
        assert classify(text) == Classification(test_count=1, skip_count=1)

    @pytest.mark.parametrize("text", [
        "testHelper('x')",
        "submit('form')",
        "xit('disabled')",
        "fit('focused')",
        "describeBlock('x')",
        "it.only('focused')",
        "describe.each([1, 2])('x')",
        "it",
        "test.skip",
    ])
    def test_non_matching_identifiers(self, text):
        """Names that merely contain a keyword, or other qualifiers, are ignored."""
        assert classify(text) == Classification(test_count=0, skip_count=0)

    def test_other_qualifier_does_not_count_as_skip(self):
        """Only skip and flaky mark a declaration."""
        assert classify("it.todo('later')").skip_count == 0


class TestCountMatches:
    """Tests for count_matches()."""

    def test_counts_every_occurrence(self):
        """Repeated calls on one line are counted separately."""
        assert count_matches(TEST_PATTERN, "it('a'); it('b'); it('c');") == 3

    def test_skip_pattern(self):
        """Skip pattern counts qualified calls only."""
        assert count_matches(SKIP_PATTERN, "it('a'); it.skip('b');") == 1
