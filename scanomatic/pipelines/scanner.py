"""
Derive session-level scanning parameters from a list of EPI runs.

The stages are plain functions composed here, in this order:

1. :func:`~scanomatic.pipelines.header.extract_run_metadata` for every run,
   strictly one run after the other;
2. :func:`~scanomatic.pipelines.consistency.check_consistency`;
3. :func:`~scanomatic.pipelines.slice_order.resolve_slice_order` using the
   first run's sidecar (all runs are assumed to share the slice order);
4. :func:`aggregate`.

:func:`resolve_scan_parameters` never raises for data problems. Fatal
conditions come back as ``Resolution.error`` and no partial parameters are
returned; shutting down log streams is left to the caller.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from scanomatic.config.schema import ScanConfig
from scanomatic.pipelines.consistency import check_consistency
from scanomatic.pipelines.header import Decompressor, HeaderReader, extract_run_metadata
from scanomatic.pipelines.slice_order import resolve_slice_order
from scanomatic.pipelines.types import (
    Issue,
    Resolution,
    RunInput,
    RunMetadata,
    SessionParameters,
    SliceOrderResult,
)
from scanomatic.utils.errors import NoRunsError, ScanParamError

log = logging.getLogger(__name__)


def aggregate(runs: Sequence[RunMetadata], nslice: int, order: SliceOrderResult) -> SessionParameters:
    """Combine per-run metadata and the slice order into one record."""
    return SessionParameters(
        session_count=len(runs),
        volume_counts=tuple(r.volume_count for r in runs),
        trs=tuple(r.tr for r in runs),
        slice_count=nslice,
        slice_order=order.slice_order,
        reference_slice_time=order.reference_slice_time,
    )


def _as_run(item: RunInput | str | Path) -> RunInput:
    return item if isinstance(item, RunInput) else RunInput.from_path(item)


def _resolve(
    runs: Sequence[RunInput],
    config: ScanConfig,
    *,
    reader: Optional[HeaderReader],
    decompressor: Optional[Decompressor],
    warnings: list[Issue],
) -> SessionParameters:
    """Run every stage; raises :class:`ScanParamError` on fatal conditions."""
    if not runs:
        raise NoRunsError("No runs supplied")

    metas = [
        extract_run_metadata(
            run, config, reader=reader, decompressor=decompressor, index=i
        )
        for i, run in enumerate(runs, start=1)
    ]

    nslice, tr_issues = check_consistency(metas)
    warnings.extend(tr_issues)

    order, order_issues = resolve_slice_order(nslice, runs[0].sidecar, config)
    warnings.extend(order_issues)

    return aggregate(metas, nslice, order)


def resolve_scan_parameters(
    runs: Iterable[RunInput | str | Path],
    config: ScanConfig | None = None,
    *,
    subject: Optional[str] = None,
    reader: Optional[HeaderReader] = None,
    decompressor: Optional[Decompressor] = None,
) -> Resolution:
    """Determine TR, volume counts, slice count and slice order for a session.

    Args:
        runs: Run files (paths or :class:`RunInput`) in acquisition order.
        config: Resolution options; defaults to :class:`ScanConfig()`.
        subject: Label used in log messages only.
        reader: Header reader passed to the extraction stage.
        decompressor: Decompressor passed to the extraction stage.

    Returns:
        A :class:`Resolution` holding either the parameters or the fatal
        issue, plus the warnings collected on the way.
    """
    config = config or ScanConfig()
    run_list = [_as_run(r) for r in runs]
    log.info("Loading scanning parameters from epi files for subject: %s", subject or "n/a")

    warnings: list[Issue] = []
    try:
        params = _resolve(
            run_list,
            config,
            reader=reader,
            decompressor=decompressor,
            warnings=warnings,
        )
    except ScanParamError as exc:
        return Resolution(error=Issue.from_error(exc), warnings=tuple(warnings))
    return Resolution(parameters=params, warnings=tuple(warnings))
