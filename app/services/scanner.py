"""
Repository scanner for skipped/flaky test declarations.

Walks a checkout, classifies every file with a recognised source extension
and aggregates the counts. Any unreadable directory or file aborts the scan;
there are no partial results.
"""
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from app.constants import DEFAULT_EXCLUDED_DIRS, DEFAULT_SCAN_EXTENSIONS
from app.services.classifier import Classification, classify

logger = logging.getLogger(__name__)


@dataclass
class SkippedFile:
    """A scanned file containing at least one skipped/flaky declaration."""
    relative_path: str
    skip_count: int


@dataclass
class ScanResult:
    """Aggregated counts for one scan. Not persisted."""
    total_tests: int = 0
    skipped_count: int = 0
    files_scanned: int = 0
    skipped_files: List[SkippedFile] = field(default_factory=list)


def _raise_walk_error(error: OSError) -> None:
    raise error


class SkipScanner:
    """Counts test and skip declarations across a directory tree."""

    def __init__(
        self,
        extensions: Optional[Iterable[str]] = None,
        excluded_dirs: Optional[Iterable[str]] = None,
        max_workers: int = 8,
    ):
        """
        Args:
            extensions: File extensions to classify, including the dot
            excluded_dirs: Directory names that are never descended into
            max_workers: Threads used to read files; 1 reads sequentially
        """
        self.extensions = frozenset(extensions) if extensions is not None else DEFAULT_SCAN_EXTENSIONS
        self.excluded_dirs = frozenset(excluded_dirs) if excluded_dirs is not None else DEFAULT_EXCLUDED_DIRS
        self.max_workers = max(1, max_workers)

    def find_files(self, root: Path) -> List[Path]:
        """
        List files under root whose extension is recognised.

        Raises:
            OSError: If a directory cannot be listed
        """
        matched = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
            # Prune in place so os.walk never descends into excluded directories
            dirnames[:] = [d for d in dirnames if d not in self.excluded_dirs]
            for filename in filenames:
                if os.path.splitext(filename)[1] in self.extensions:
                    matched.append(Path(dirpath) / filename)
        return matched

    def scan(self, root_dir: Union[str, Path]) -> ScanResult:
        """
        Scan a directory tree and aggregate test/skip counts.

        Args:
            root_dir: Root of the checkout to scan

        Returns:
            ScanResult with totals and files containing skips, most skips first

        Raises:
            FileNotFoundError: If root_dir does not exist
            NotADirectoryError: If root_dir is not a directory
            OSError: If any directory or matched file cannot be read
        """
        root = Path(root_dir)
        if not root.exists():
            raise FileNotFoundError(f"Scan root does not exist: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Scan root is not a directory: {root}")

        files = self.find_files(root)
        logger.info(f"Scanning {len(files)} files under {root}")

        if self.max_workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="scan_worker") as executor:
                classified = list(executor.map(self._classify_file, files))
        else:
            classified = [self._classify_file(path) for path in files]

        result = ScanResult(files_scanned=len(files))
        for path, counts in classified:
            result.total_tests += counts.test_count
            result.skipped_count += counts.skip_count
            if counts.skip_count > 0:
                result.skipped_files.append(
                    SkippedFile(relative_path=path.relative_to(root).as_posix(), skip_count=counts.skip_count)
                )

        result.skipped_files.sort(key=lambda f: (-f.skip_count, f.relative_path))
        return result

    @staticmethod
    def _classify_file(path: Path) -> Tuple[Path, Classification]:
        text = path.read_text(encoding="utf-8", errors="replace")
        return path, classify(text)
