"""
Public façade for the resolution pipeline.

Import from here rather than from the individual stage modules::

    from scanomatic.pipelines import resolve_scan_parameters
"""

from __future__ import annotations

from .consistency import check_consistency
from .discovery import discover_runs, expand_runs, guess_sub_ses
from .header import extract_run_metadata, read_nifti_header
from .scanner import aggregate, resolve_scan_parameters
from .slice_order import interleaved_bottom_up, philips_interleaved, resolve_slice_order
from .types import (
    ImageHeader,
    Issue,
    Resolution,
    RunInput,
    RunMetadata,
    SessionParameters,
    SliceOrderResult,
)

__all__ = [
    "resolve_scan_parameters",
    "aggregate",
    "check_consistency",
    "extract_run_metadata",
    "read_nifti_header",
    "resolve_slice_order",
    "interleaved_bottom_up",
    "philips_interleaved",
    "discover_runs",
    "expand_runs",
    "guess_sub_ses",
    "ImageHeader",
    "Issue",
    "Resolution",
    "RunInput",
    "RunMetadata",
    "SessionParameters",
    "SliceOrderResult",
]
