"""
Application-wide constants.

Defines shared constants used across the application to avoid magic strings
and ensure consistency.
"""

DEFAULT_REPO_IDENTIFIER = "wix-data-client"
"""Repository label stored when a summary does not name its repository."""

DEFAULT_BRANCH = "master"

# Test Declaration Patterns
TEST_KEYWORDS = ("it", "test", "describe")
"""
Identifiers that start a test definition call in the scanned test suites.

`describe` groups tests, `it` declares a case and `test` is an alias for it.
"""

SKIP_QUALIFIERS = ("skip", "flaky")
"""Member calls that mark a declaration as disabled or known-unstable, e.g. `it.skip(`."""

DEFAULT_SCAN_EXTENSIONS = frozenset({".ts", ".tsx", ".js", ".jsx"})
DEFAULT_EXCLUDED_DIRS = frozenset({"node_modules", ".git"})

# Trend Configuration
TREND_WINDOW_DAYS = 7
"""Length of each rolling window compared by the trend engine."""

TREND_MIN_SAMPLE_DAYS = 2
"""
Minimum number of stored days each window needs before a trend is reported.

With fewer samples the trend is reported as flat (insufficient data).
"""

DEFAULT_TREND_THRESHOLD = 1.0
"""Change in the 7-day skipped average that counts as up/down rather than noise."""

TREND_UP = "up"
TREND_DOWN = "down"
TREND_FLAT = "flat"

TOP_SKIPPED_FILES_REPORTED = 15
"""Number of files with skips listed in a fetch run report."""

CACHE_NAMESPACE = "skipped-summaries"
