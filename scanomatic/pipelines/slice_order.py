"""
Slice acquisition order.

:func:`resolve_slice_order` tries, in this order:

1. the ``SliceTiming`` array of the first run's JSON sidecar;
2. the Philips Achieva interleaved formula (``acquisition_formula: philips``);
3. the interleaved bottom-up formula (odd slices, then even slices).

Slice numbers are 1-based throughout. When the sidecar timing contains
duplicate values the acquisition was multiband (simultaneous multi-slice):
no slice order exists, and the timing of the configured reference slice is
returned instead.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from scanomatic.config.schema import AcquisitionFormula, ScanConfig
from scanomatic.pipelines._meta import SLICE_TIMING_KEY, read_slice_timing
from scanomatic.pipelines.types import Issue, SliceOrderResult, SliceTimingSidecar
from scanomatic.utils.errors import (
    InvalidReferenceSliceError,
    IssueKind,
    MalformedSidecarError,
)

log = logging.getLogger(__name__)


def _fmt(values: Sequence) -> str:
    return "[" + " ".join(f"{v:g}" if isinstance(v, float) else str(v) for v in values) + "]"


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------
def interleaved_bottom_up(nslice: int) -> tuple[int, ...]:
    """Return ``1, 3, 5, …`` followed by ``2, 4, 6, …``."""
    return tuple(range(1, nslice + 1, 2)) + tuple(range(2, nslice + 1, 2))


def philips_interleaved(nslice: int) -> tuple[int, ...]:
    """Return the interleaved order used on Philips Achieva 3T scanners.

    Slices are taken in strides of ``round(sqrt(nslice))``: first every
    stride-th slice from 1, then from 2, and so on. For 9 slices that is
    ``1 4 7 2 5 8 3 6 9``.
    """
    # half away from zero, unlike round()
    step = int(math.floor(math.sqrt(nslice) + 0.5))
    order: list[int] = []
    for start in range(1, step + 1):
        order.extend(range(start, nslice + 1, step))
    return tuple(order)


def rank_order(slice_times: Sequence[float]) -> tuple[int, ...]:
    """Return the 1-based rank of each slice time (earliest slice → 1)."""
    ranks = np.argsort(np.argsort(np.asarray(slice_times, dtype=float), kind="stable"), kind="stable")
    return tuple(int(r) + 1 for r in ranks)


# ---------------------------------------------------------------------------
# Sidecar branch
# ---------------------------------------------------------------------------
def order_from_timing(
    timing: SliceTimingSidecar,
    nslice: int,
    config: ScanConfig,
) -> SliceOrderResult:
    """Derive the slice order (or multiband reference time) from *timing*.

    Raises:
        MalformedSidecarError: The timing length differs from *nslice*.
        InvalidReferenceSliceError: Multiband timing and a reference slice
            outside ``1..nslice``.
    """
    times = timing.slice_times
    if len(times) != nslice:
        raise MalformedSidecarError(
            f"{SLICE_TIMING_KEY} in {timing.path} has {len(times)} entries "
            f"but the runs have {nslice} slices"
        )

    if timing.has_duplicates:
        log.info("Detected multiple identical slicetimes, assuming multi-slice acquisition")
        log.info("SMS Slicetiming (json) is: %s", _fmt(times))
        ref = config.reference_slice_index
        if not 1 <= ref <= nslice:
            raise InvalidReferenceSliceError(
                f"Reference slice {ref} is outside 1..{nslice}"
            )
        ref_time = times[ref - 1]
        log.info("SMS Reference slice time is: %1.3f", ref_time)
        return SliceOrderResult(reference_slice_time=ref_time, source="sidecar-sms")

    order = rank_order(times)
    log.info("Sliceorder (json) is: %s", _fmt(order))
    return SliceOrderResult(slice_order=order, source="sidecar")


# ---------------------------------------------------------------------------
# Public entry-point
# ---------------------------------------------------------------------------
def resolve_slice_order(
    nslice: int,
    sidecar: Optional[Path],
    config: ScanConfig,
) -> tuple[SliceOrderResult, tuple[Issue, ...]]:
    """Return the slice order for a session and any warnings raised.

    Args:
        nslice: Slice count shared by all runs.
        sidecar: JSON sidecar of the first run, or *None*.
        config: Resolution options (formula, reference slice,
            ``require_slice_timing``).

    Raises:
        MalformedSidecarError: The sidecar cannot be used, or lacks
            ``SliceTiming`` while ``require_slice_timing`` is set.
        InvalidReferenceSliceError: See :func:`order_from_timing`.
    """
    warnings: tuple[Issue, ...] = ()

    if sidecar is not None:
        timing = read_slice_timing(sidecar)
        if timing is not None:
            return order_from_timing(timing, nslice, config), warnings
        if config.require_slice_timing:
            raise MalformedSidecarError(f"Sidecar {sidecar} has no {SLICE_TIMING_KEY} field")
        msg = f"Sidecar {sidecar} has no {SLICE_TIMING_KEY} field; using the slice order formula"
        log.warning("[WARNING] %s", msg)
        warnings = (Issue(kind=IssueKind.MISSING_SLICE_TIMING, message=msg),)

    if config.acquisition_formula is AcquisitionFormula.PHILIPS:
        order = philips_interleaved(nslice)
        log.info("Sliceorder (philips) is: %s", _fmt(order))
        return SliceOrderResult(slice_order=order, source="philips"), warnings

    order = interleaved_bottom_up(nslice)
    log.info("Sliceorder (interleaved bottom-up) is: %s", _fmt(order))
    return SliceOrderResult(slice_order=order, source="default"), warnings
