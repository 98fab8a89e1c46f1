"""Shared helpers: logging setup, CLI display, error types and file predicates."""

from __future__ import annotations

from .archive import is_compressed, looks_like_image, run_basename
from .errors import IssueKind, ScanParamError

__all__ = [
    "is_compressed",
    "looks_like_image",
    "run_basename",
    "IssueKind",
    "ScanParamError",
]
