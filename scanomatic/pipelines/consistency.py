"""Cross-run consistency checks.

Slice order is computed once per session, so every run must have the same
number of slices. Differing TRs are tolerated but flagged, since they are
usually a mistake in the acquisition protocol rather than a design choice.
"""

from __future__ import annotations

import logging
from typing import Sequence

from scanomatic.pipelines.types import Issue, RunMetadata
from scanomatic.utils.errors import IssueKind, NoRunsError, SliceCountMismatchError

log = logging.getLogger(__name__)

TR_MISMATCH_MESSAGE = "Runs do not match on TR. Make sure this is intentional! Proceeding..."


def common_slice_count(runs: Sequence[RunMetadata]) -> int:
    """Return the slice count shared by *runs*.

    Raises:
        NoRunsError: *runs* is empty.
        SliceCountMismatchError: The runs disagree.
    """
    if not runs:
        raise NoRunsError("No runs supplied")
    counts = [r.slice_count for r in runs]
    if len(set(counts)) != 1:
        log.error("[EXCEPTION] Runs do not match number of slices. Aborting...")
        raise SliceCountMismatchError(
            f"Runs do not match on number of slices: {counts}"
        )
    return counts[0]


def tr_warnings(runs: Sequence[RunMetadata]) -> tuple[Issue, ...]:
    """Return a ``tr_mismatch`` warning when the runs disagree on TR."""
    trs = [r.tr for r in runs]
    if len(set(trs)) <= 1:
        return ()
    log.warning("[WARNING] %s", TR_MISMATCH_MESSAGE)
    return (
        Issue(
            kind=IssueKind.TR_MISMATCH,
            message=f"{TR_MISMATCH_MESSAGE} (trs={trs})",
        ),
    )


def check_consistency(runs: Sequence[RunMetadata]) -> tuple[int, tuple[Issue, ...]]:
    """Validate *runs* and return ``(slice_count, warnings)``.

    The slice-count check runs first and is fatal; the TR check only
    produces warnings.
    """
    nslice = common_slice_count(runs)
    return nslice, tr_warnings(runs)
