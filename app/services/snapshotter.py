"""
Shallow Git snapshots of the target repository.

Keeps a depth-1 checkout of the configured repository on local disk and moves
it to the tip of a requested branch. Existing checkouts are fetched and
force-checked-out, never merged, so local modifications are discarded.
"""
import hashlib
import logging
import re
import shutil
import threading
from pathlib import Path
from typing import Dict, Optional

from git import Git, Repo
from git.exc import GitError

from app.exceptions import SnapshotError

logger = logging.getLogger(__name__)

# Resource limits
GIT_OPERATION_TIMEOUT_SECONDS = 300  # 5 minutes

_UNSAFE_DIR_CHARS = re.compile(r"[^A-Za-z0-9._-]")

# Characters git check-ref-format never allows in a ref name
_INVALID_REF_CHARS = re.compile(r"[\x00-\x20\x7f~^:?*\[\\]")


def validate_branch_name(branch: str) -> None:
    """
    Reject names git would refuse as a branch, before they reach the
    filesystem or a git command line.

    Raises:
        SnapshotError: If branch is not a valid ref name
    """
    components = branch.split("/")
    invalid = (
        not branch
        or branch.startswith("-")
        or branch == "@"
        or _INVALID_REF_CHARS.search(branch) is not None
        or ".." in branch
        or "@{" in branch
        or branch.endswith(".")
        or any(not part or part.startswith(".") or part.endswith(".lock") for part in components)
    )
    if invalid:
        raise SnapshotError(f"Invalid branch name: {branch!r}", branch=branch)


class RepositorySnapshotter:
    """Manages the local shallow checkout used for scanning."""

    def __init__(
        self,
        repo_slug: str,
        checkout_root: str,
        token: Optional[str] = None,
        git_host: str = "github.com",
        timeout: int = GIT_OPERATION_TIMEOUT_SECONDS,
        per_branch_checkouts: bool = False,
    ):
        """
        Initialize the snapshotter.

        Args:
            repo_slug: Repository in owner/name form
            checkout_root: Directory holding the checkout(s)
            token: Optional access token injected into the clone URL
            git_host: Host serving the repository over HTTPS
            timeout: Seconds before a clone or fetch is killed
            per_branch_checkouts: Give every branch its own checkout directory
                so different branches can be scanned in parallel

        Raises:
            ValueError: If configuration is invalid
        """
        self._validate_config(repo_slug, git_host)

        self.repo_slug = repo_slug
        self.checkout_root = Path(checkout_root)
        self.token = token or None
        self.git_host = git_host
        self.timeout = timeout
        self.per_branch_checkouts = per_branch_checkouts

        # One lock per checkout directory
        self._locks: Dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @staticmethod
    def _validate_config(repo_slug: str, git_host: str) -> None:
        """
        Validate repository configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        if not repo_slug:
            raise ValueError("Repository slug is required")

        parts = repo_slug.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Repository slug must be in owner/name form: {repo_slug}")

        if not git_host or "://" in git_host or "/" in git_host:
            raise ValueError(f"Git host must be a bare host name: {git_host}")

    @property
    def repo_name(self) -> str:
        return self.repo_slug.split("/")[1]

    def local_path(self, branch: str) -> Path:
        """
        Checkout directory used for the given branch.

        Per-branch directories are named after the branch plus a digest of
        the exact name, so names that sanitize alike never share a directory.

        Raises:
            SnapshotError: If branch is not a valid ref name
        """
        validate_branch_name(branch)
        base = self.checkout_root / self.repo_name
        if self.per_branch_checkouts:
            digest = hashlib.sha1(branch.encode("utf-8")).hexdigest()[:12]
            return base / f"{_UNSAFE_DIR_CHARS.sub('_', branch)}-{digest}"
        return base

    def checkout_lock(self, branch: str) -> threading.Lock:
        """
        Lock to hold across a checkout and the scan of its working tree.

        Locks are keyed by checkout directory: all branches share one lock
        when they share one directory.

        Raises:
            SnapshotError: If branch is not a valid ref name
        """
        path = self.local_path(branch)
        with self._locks_guard:
            return self._locks.setdefault(path, threading.Lock())

    def remote_url(self) -> str:
        """HTTPS clone URL, with the access token when one is configured."""
        if self.token:
            return f"https://x-access-token:{self.token}@{self.git_host}/{self.repo_slug}.git"
        return f"https://{self.git_host}/{self.repo_slug}.git"

    def _redact(self, text: str) -> str:
        if self.token:
            return text.replace(self.token, "***")
        return text

    def ensure_branch(self, branch: str) -> Path:
        """
        Bring the local checkout to the tip of branch.

        Clones on first use, otherwise fetches only that branch at depth 1
        and force-checks-out the fetched commit.

        Args:
            branch: Branch name on the remote

        Returns:
            Path to the checked-out working tree

        Raises:
            SnapshotError: If the branch name is invalid, the branch is
                missing, authentication fails, the network operation fails
                or it exceeds the timeout
        """
        path = self.local_path(branch)
        try:
            if (path / ".git").exists():
                self._update(path, branch)
            else:
                self._clone(path, branch)
        except (GitError, OSError, ValueError) as e:
            message = self._redact(str(e))
            logger.error(f"Git operation failed for branch {branch!r}: {message}")
            # Chained cause would carry the unredacted URL
            raise SnapshotError(
                f"Failed to snapshot {self.repo_slug} at branch {branch!r}: {message}",
                branch=branch,
            ) from None

        return path

    def _update(self, path: Path, branch: str) -> None:
        logger.info(f"Updating existing clone on branch '{branch}'")
        with Repo(path) as repo:
            # Token is re-applied on every run so rotation or removal takes effect
            if any(remote.name == "origin" for remote in repo.remotes):
                repo.git.remote("set-url", "origin", self.remote_url())
            else:
                repo.create_remote("origin", self.remote_url())

            repo.git.fetch("origin", branch, depth=1, kill_after_timeout=self.timeout)
            repo.git.checkout("FETCH_HEAD", force=True)

    def _clone(self, path: Path, branch: str) -> None:
        logger.info(f"Shallow-cloning {self.repo_slug} (branch: {branch})")
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            Git(str(path.parent)).clone(
                self.remote_url(),
                str(path),
                depth=1,
                branch=branch,
                kill_after_timeout=self.timeout,
            )
        except Exception:
            # Remove a half-written clone so the next run starts clean
            shutil.rmtree(path, ignore_errors=True)
            raise
