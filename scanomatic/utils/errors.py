"""Custom exceptions raised while resolving scanning parameters.

Every exception carries an :class:`IssueKind` so that the orchestrator can turn
it into a typed :class:`~scanomatic.pipelines.types.Issue` without string
matching, and the index of the offending run when one is known.
"""

from __future__ import annotations

from enum import Enum


class IssueKind(str, Enum):
    """Machine-readable category for fatal errors and warnings."""

    MISSING_TR = "missing_tr"
    SLICE_COUNT_MISMATCH = "slice_count_mismatch"
    TR_MISMATCH = "tr_mismatch"
    MALFORMED_SIDECAR = "malformed_sidecar"
    MISSING_SLICE_TIMING = "missing_slice_timing"
    INVALID_REFERENCE_SLICE = "invalid_reference_slice"
    UNREADABLE_HEADER = "unreadable_header"
    NO_RUNS = "no_runs"


class ScanParamError(RuntimeError):
    """Raised when scanning parameters cannot be resolved."""

    kind: IssueKind

    def __init__(self, message: str, *, run: int | None = None) -> None:
        super().__init__(message)
        self.run = run


class MissingTRError(ScanParamError):
    """No manual TR configured and none recorded in the image header."""

    kind = IssueKind.MISSING_TR


class SliceCountMismatchError(ScanParamError):
    """Runs disagree on the number of slices."""

    kind = IssueKind.SLICE_COUNT_MISMATCH


class MalformedSidecarError(ScanParamError):
    """The JSON sidecar exists but its slice timing cannot be used."""

    kind = IssueKind.MALFORMED_SIDECAR


class InvalidReferenceSliceError(ScanParamError):
    """The configured reference slice lies outside ``1..nslice``."""

    kind = IssueKind.INVALID_REFERENCE_SLICE


class UnreadableHeaderError(ScanParamError):
    """The header reader could not open a run."""

    kind = IssueKind.UNREADABLE_HEADER


class NoRunsError(ScanParamError):
    """Resolution was requested for an empty list of runs."""

    kind = IssueKind.NO_RUNS


_BY_KIND: dict[IssueKind, type[ScanParamError]] = {
    cls.kind: cls
    for cls in (
        MissingTRError,
        SliceCountMismatchError,
        MalformedSidecarError,
        InvalidReferenceSliceError,
        UnreadableHeaderError,
        NoRunsError,
    )
}


def error_for(kind: IssueKind) -> type[ScanParamError]:
    """Return the exception class registered for *kind*."""
    return _BY_KIND.get(kind, ScanParamError)


__all__ = [
    "IssueKind",
    "ScanParamError",
    "MissingTRError",
    "SliceCountMismatchError",
    "MalformedSidecarError",
    "InvalidReferenceSliceError",
    "UnreadableHeaderError",
    "NoRunsError",
    "error_for",
]
