"""
Exception types raised by the skipped-tests pipeline.

File and directory access failures are reported with Python's built-in
OSError (IOError) and are not redefined here.
"""
from typing import List


class SnapshotError(Exception):
    """Fetching or checking out the target repository failed."""

    def __init__(self, message: str, branch: str = None):
        super().__init__(message)
        self.branch = branch


class StoreError(Exception):
    """The summary store could not complete a read or write."""


class PipelineError(Exception):
    """A fetch-and-record run failed before anything was stored."""

    def __init__(self, message: str, branch: str):
        super().__init__(message)
        self.branch = branch


class PayloadValidationError(Exception):
    """
    An externally computed summary failed validation.

    Carries one message per failing field so callers can report them all.
    """

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors
