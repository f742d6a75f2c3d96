"""
Lexical classifier for test declarations.

Counts `describe(`/`it(`/`test(` calls and their `.skip(`/`.flaky(` variants
with regular expressions. Matching is not syntax-aware: occurrences inside
comments and string literals are counted too. Qualified calls such as
`it.skip(` only match the skip pattern, never the plain test pattern, so
skip_count can exceed test_count for a file.
"""
import re
from typing import NamedTuple

from app.constants import SKIP_QUALIFIERS, TEST_KEYWORDS

_KEYWORDS = "|".join(TEST_KEYWORDS)
_QUALIFIERS = "|".join(SKIP_QUALIFIERS)

TEST_PATTERN = re.compile(rf"\b({_KEYWORDS})\s*\(")
SKIP_PATTERN = re.compile(rf"\b({_KEYWORDS})\.({_QUALIFIERS})\s*\(")


class Classification(NamedTuple):
    test_count: int
    skip_count: int


def count_matches(pattern: re.Pattern, text: str) -> int:
    """Number of non-overlapping matches of pattern in text."""
    return sum(1 for _ in pattern.finditer(text))


def classify(text: str) -> Classification:
    """
    Count test declarations and skipped/flaky declarations in file content.

    Args:
        text: Full text of a source file

    Returns:
        Classification with test_count and skip_count
    """
    return Classification(
        test_count=count_matches(TEST_PATTERN, text),
        skip_count=count_matches(SKIP_PATTERN, text),
    )
