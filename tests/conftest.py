"""
Pytest configuration and fixtures for testing.
"""
import os
import sys
import threading
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import Mock
import pytest

# Settings are read once per process; fix the ones that change app wiring
# before anything from app/ is imported.
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["AUTO_FETCH_ENABLED"] = "false"
os.environ["API_KEY"] = ""

# Add parent directory to path
TESTS_DIR = Path(__file__).resolve().parent
PROJECT_DIR = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_DIR))

from app.services.pipeline import SkippedTestsPipeline
from app.services.scanner import SkipScanner
from app.services.snapshotter import RepositorySnapshotter
from app.services.summary_store import SummaryStore


class FakeClock:
    """Returns a later timestamp on every call."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, 0)):
        self.current = start

    def __call__(self):
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture(scope="function")
def fake_clock():
    return FakeClock()


@pytest.fixture(scope="function")
def store(fake_clock):
    """
    Create a summary store on a fresh in-memory database.
    Each test gets an empty table.
    """
    summary_store = SummaryStore("sqlite:///:memory:", clock=fake_clock)
    summary_store.init_schema()
    try:
        yield summary_store
    finally:
        summary_store.close()


FIXTURE_FILES = {
    # 3 tests (describe, it, test), 1 skip (it.skip)
    "src/__tests__/cart.spec.ts": (
        "describe('cart', () => {\n"
        "  it('adds items', () => {});\n"
        "  it.skip('removes items', () => {});\n"
        "  test('totals', () => {});\n"
        "});\n"
    ),
    # 1 test (it), 3 skips (describe.skip, it.flaky, test.skip)
    "src/legacy.test.js": (
        "describe.skip('legacy', () => {\n"
        "  it('works', () => {});\n"
        "  it.flaky('sometimes', () => {});\n"
        "  test.skip('later', () => {});\n"
        "});\n"
    ),
    # 2 tests (one in a comment, one in a string), 0 skips
    "src/components/Label.jsx": (
        "// it('commented out', () => {})\n"
        "const label = \"describe(\";\n"
        "testHelper('x');\n"
    ),
    # Never counted: excluded directories or unrecognised extensions
    "node_modules/some-lib/index.js": "it.skip('dep', () => {}); it('dep', () => {});\n",
    "src/node_modules/nested/index.ts": "test.skip('nested dep', () => {});\n",
    ".git/hooks/pre-commit.js": "describe('hook', () => {});\n",
    "README.md": "Use it.skip('name') to disable a test.\n",
    "scripts/tool.py": "test('not javascript')\n",
}
EXPECTED_COUNTS = {"total_tests": 6, "skipped_count": 4, "files_scanned": 3}


@pytest.fixture(scope="function")
def js_repo(tmp_path):
    """Create a checkout-like directory tree with known test/skip counts."""
    root = tmp_path / "checkout"
    for relative_path, content in FIXTURE_FILES.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture(scope="function")
def js_repo_counts():
    """Totals a scan of js_repo must report."""
    return dict(EXPECTED_COUNTS)


@pytest.fixture(scope="function")
def mock_snapshotter(js_repo):
    """Snapshotter that 'checks out' the fixture tree without touching Git."""
    snapshotter = Mock(spec=RepositorySnapshotter)
    snapshotter.repo_slug = "acme/web-client"
    snapshotter.ensure_branch.return_value = js_repo
    snapshotter.checkout_lock.return_value = threading.Lock()
    return snapshotter


@pytest.fixture(scope="function")
def today():
    return datetime(2024, 3, 15).date()


@pytest.fixture(scope="function")
def pipeline(mock_snapshotter, store, today):
    """Pipeline over the fixture tree with a fixed day."""
    return SkippedTestsPipeline(
        snapshotter=mock_snapshotter,
        scanner=SkipScanner(max_workers=2),
        store=store,
        repo_identifier="web-client",
        today=lambda: today,
    )


@pytest.fixture(scope="function")
def client(store, pipeline):
    """
    TestClient wired to the test store and pipeline.

    The lifespan does not run (no `with` block), so the app-state objects are
    supplied through dependency overrides instead.
    """
    from fastapi.testclient import TestClient
    from app.main import app
    from app.dependencies import get_pipeline, get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield TestClient(app)
    # Cleanup: Remove override after test
    app.dependency_overrides.clear()
