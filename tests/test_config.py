"""
Tests for application settings.
"""
import pytest
from pydantic import ValidationError

from app.config import Settings


class TestSettingsValidation:
    """Tests for field validators."""

    def test_defaults(self):
        """Defaults describe the original deployment."""
        settings = Settings(_env_file=None)

        assert settings.TARGET_REPO == "wix-private/wix-data-client"
        assert settings.REPO_IDENTIFIER == "wix-data-client"
        assert settings.FETCH_CRON_HOUR == 6
        assert settings.PORT == 3000
        assert settings.TREND_THRESHOLD == 1.0

    @pytest.mark.parametrize("url", ["redis://localhost", "file:///tmp/x.db", "sqlite:/relative.db"])
    def test_invalid_database_url(self, url):
        with pytest.raises(ValidationError):
            Settings(DATABASE_URL=url)

    @pytest.mark.parametrize("url", ["sqlite:///:memory:", "postgresql://u:p@db/skips", "mysql+pymysql://u@db/skips"])
    def test_valid_database_url(self, url):
        assert Settings(DATABASE_URL=url).DATABASE_URL == url

    @pytest.mark.parametrize("repo", ["wix-data-client", "a/b/c", "/name"])
    def test_invalid_target_repo(self, repo):
        with pytest.raises(ValidationError):
            Settings(TARGET_REPO=repo)

    def test_cache_dir_traversal(self):
        with pytest.raises(ValidationError):
            Settings(CACHE_DIR="../../etc")

    @pytest.mark.parametrize("field, value", [
        ("FETCH_CRON_HOUR", 24),
        ("FETCH_CRON_HOUR", -1),
        ("FETCH_CRON_MINUTE", 60),
    ])
    def test_cron_bounds(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})


class TestCsvProperties:
    """Tests for comma-separated list settings."""

    def test_fetch_branches(self):
        assert Settings(FETCH_BRANCHES=" master, develop ,,").fetch_branches == ["master", "develop"]

    def test_scan_lists(self):
        settings = Settings(SCAN_EXTENSIONS=".ts,.js", SCAN_EXCLUDED_DIRS="node_modules")

        assert settings.scan_extensions == [".ts", ".js"]
        assert settings.scan_excluded_dirs == ["node_modules"]
