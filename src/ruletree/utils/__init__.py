"""Utility exports for async helpers."""

from ruletree.utils.concurrency import CancellationToken, run_with_timeout

__all__ = ["CancellationToken", "run_with_timeout"]
