"""
Helpers for reading dcm2niix JSON sidecars.

Only the ``SliceTiming`` field matters here. Unlike the lenient readers used
for cosmetic metadata, a sidecar that exists but cannot be parsed is an
error: silently ignoring it would make the resolver fall back to a formula
and produce a plausible but wrong slice order.

Orientation
-----------
Converters disagree on how the timing vector is stored. Some write a flat
list, others a one-column matrix (``[[0.0], [0.5], ...]``) or a one-row
matrix (``[[0.0, 0.5, ...]]``). :func:`normalise_slice_times` maps all three
to one flat sequence: a matrix with more rows than columns is read as a
column and transposed, and the result must have a singleton dimension.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import numpy as np

from scanomatic.pipelines.types import SliceTimingSidecar
from scanomatic.utils.errors import MalformedSidecarError

log = logging.getLogger(__name__)

SLICE_TIMING_KEY = "SliceTiming"


def _read_json(path: Path) -> dict[str, Any]:
    """Return the JSON object stored at *path*."""
    try:
        meta = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedSidecarError(f"Could not parse sidecar {path}: {exc}") from exc
    if not isinstance(meta, dict):
        raise MalformedSidecarError(f"Sidecar {path} does not hold a JSON object")
    return meta


def _holds_non_number(value: Any) -> bool:
    """True when *value* is, or nests, a bool, a string or a JSON null."""
    if isinstance(value, (list, tuple)):
        return any(_holds_non_number(v) for v in value)
    return value is None or isinstance(value, (str, bytes, bool))


def normalise_slice_times(raw: Any, *, source: Path | str = "<sidecar>") -> tuple[float, ...]:
    """Return *raw* slice timings as a flat tuple of floats.

    Args:
        raw: Value found under ``SliceTiming`` – a list of numbers or a
            one-row / one-column nested list.
        source: Used in error messages only.

    Raises:
        MalformedSidecarError: When *raw* is empty, ragged, non-numeric
            (booleans and numeric strings included), or a genuine 2-D matrix.
    """
    if isinstance(raw, (str, bytes, bool)) or raw is None:
        raise MalformedSidecarError(f"{SLICE_TIMING_KEY} in {source} is not an array")
    if _holds_non_number(raw):
        raise MalformedSidecarError(
            f"{SLICE_TIMING_KEY} in {source} holds booleans, strings or nulls"
        )
    try:
        arr = np.asarray(raw, dtype=float)
    except (TypeError, ValueError) as exc:
        raise MalformedSidecarError(
            f"{SLICE_TIMING_KEY} in {source} is not a numeric array: {exc}"
        ) from exc

    if arr.ndim == 2:
        rows, cols = arr.shape
        if rows > cols:
            # column layout – transpose to a single row
            arr = arr.T
        if arr.shape[0] != 1:
            raise MalformedSidecarError(
                f"{SLICE_TIMING_KEY} in {source} is a {rows}x{cols} matrix, "
                "expected a single row or column"
            )
        arr = arr[0]
    elif arr.ndim != 1:
        raise MalformedSidecarError(
            f"{SLICE_TIMING_KEY} in {source} has {arr.ndim} dimensions, expected a vector"
        )

    if arr.size == 0:
        raise MalformedSidecarError(f"{SLICE_TIMING_KEY} in {source} is empty")
    if not np.all(np.isfinite(arr)):
        raise MalformedSidecarError(f"{SLICE_TIMING_KEY} in {source} holds non-finite values")
    return tuple(float(v) for v in arr)


def read_slice_timing(path: Path) -> SliceTimingSidecar | None:
    """Parse the slice timing stored in the sidecar at *path*.

    Returns:
        The flattened timing, or *None* when the sidecar is valid JSON but has
        no ``SliceTiming`` key (the caller decides whether that is fatal).

    Raises:
        MalformedSidecarError: When the file is unreadable, is not a JSON
            object, or holds an unusable ``SliceTiming`` value.
    """
    log.debug("[DEBUG] Loading slicetiming info from SliceTiming field at file:%s", path)
    meta = _read_json(path)
    if SLICE_TIMING_KEY not in meta:
        return None
    times = normalise_slice_times(meta[SLICE_TIMING_KEY], source=path)
    return SliceTimingSidecar(path=path, slice_times=times)
