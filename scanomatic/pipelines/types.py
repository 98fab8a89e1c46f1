"""
Typed, immutable value objects that circulate between pipeline stages.

Every class inherits from :class:`pydantic.BaseModel` with ``frozen=True`` so
that a value, once produced by one stage, cannot be altered by the next.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, model_validator

from scanomatic.utils.archive import is_compressed, run_basename
from scanomatic.utils.errors import IssueKind, ScanParamError, error_for


class RunInput(BaseModel, frozen=True):
    """One functional run handed to the resolver.

    Attributes
    ----------
    path
        Image file (``.nii`` or ``.nii.gz``).
    compressed
        Whether the header reader needs a decompression step first.
    sidecar
        JSON sidecar co-located with the image, or *None*.
    """

    path: Path
    compressed: bool = False
    sidecar: Optional[Path] = None

    @classmethod
    def from_path(cls, path: str | Path) -> "RunInput":
        """Build a :class:`RunInput` by inspecting the file name of *path*.

        The sidecar is ``<dir>/<basename>.json`` where *basename* stops at the
        first dot, and is only recorded when it exists.
        """
        p = Path(path)
        sidecar = p.parent / f"{run_basename(p)}.json"
        return cls(
            path=p,
            compressed=is_compressed(p),
            sidecar=sidecar if sidecar.is_file() else None,
        )


class ImageHeader(BaseModel, frozen=True):
    """What a header reader reports for one run.

    ``dims`` are the spatial dimensions of the first volume, ``tr`` is the
    repetition time in seconds (*None* when the header has none) and
    ``n_vols`` the number of volumes.
    """

    dims: tuple[int, ...]
    tr: Optional[float] = None
    n_vols: int = 1


class RunMetadata(BaseModel, frozen=True):
    """Per-run scanning parameters."""

    tr: float
    volume_count: int
    slice_count: int


class SliceTimingSidecar(BaseModel, frozen=True):
    """Slice timing parsed from a JSON sidecar, flattened to one sequence."""

    path: Path
    slice_times: tuple[float, ...]

    @property
    def has_duplicates(self) -> bool:
        """*True* when two slices share an acquisition time (multiband)."""
        return len(set(self.slice_times)) < len(self.slice_times)


class SliceOrderResult(BaseModel, frozen=True):
    """Outcome of slice-order resolution.

    Exactly one of ``slice_order`` (non-empty) and ``reference_slice_time``
    is populated. ``source`` names the branch that produced the result.
    """

    slice_order: tuple[int, ...] = ()
    reference_slice_time: Optional[float] = None
    source: str


class SessionParameters(BaseModel, frozen=True):
    """Scanning parameters for one subject session.

    Attributes
    ----------
    session_count
        Number of runs (``nses``).
    volume_counts
        Volumes per run, in input order.
    trs
        TR per run in seconds, in input order.
    slice_count
        Slices per volume, common to all runs.
    slice_order
        Rank of each slice in acquisition time (permutation of
        ``1..slice_count``), or empty for multiband acquisitions.
    reference_slice_time
        Timing of the reference slice for multiband acquisitions.
    """

    session_count: int
    volume_counts: tuple[int, ...]
    trs: tuple[float, ...]
    slice_count: int
    slice_order: tuple[int, ...] = ()
    reference_slice_time: Optional[float] = None

    @model_validator(mode="after")
    def _check_shape(self):
        """Enforce run-count and slice-order invariants."""
        if self.session_count < 1:
            raise ValueError("session_count must be at least 1")
        if not (len(self.volume_counts) == len(self.trs) == self.session_count):
            raise ValueError(
                "volume_counts and trs must have one entry per session "
                f"(sessions={self.session_count}, nvols={len(self.volume_counts)}, "
                f"trs={len(self.trs)})"
            )
        if self.slice_order:
            if sorted(self.slice_order) != list(range(1, self.slice_count + 1)):
                raise ValueError(
                    f"slice_order is not a permutation of 1..{self.slice_count}"
                )
            if self.reference_slice_time is not None:
                raise ValueError("slice_order and reference_slice_time are exclusive")
        elif self.reference_slice_time is None:
            raise ValueError("either slice_order or reference_slice_time is required")
        return self

    @property
    def is_multiband(self) -> bool:
        """*True* when the order is expressed as a reference slice time."""
        return not self.slice_order


class Issue(BaseModel, frozen=True):
    """A fatal error or a warning raised during resolution."""

    kind: IssueKind
    message: str
    run: Optional[int] = None

    @classmethod
    def from_error(cls, exc: ScanParamError) -> "Issue":
        """Convert a pipeline exception into an :class:`Issue`."""
        return cls(kind=exc.kind, message=str(exc), run=exc.run)


class Resolution(BaseModel, frozen=True):
    """Typed result of :func:`scanomatic.pipelines.scanner.resolve_scan_parameters`.

    Either ``parameters`` or ``error`` is set. ``warnings`` collects the
    non-fatal issues seen before the result was produced.
    """

    parameters: Optional[SessionParameters] = None
    error: Optional[Issue] = None
    warnings: tuple[Issue, ...] = ()

    @model_validator(mode="after")
    def _one_outcome(self):
        if (self.parameters is None) == (self.error is None):
            raise ValueError("exactly one of parameters and error must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> SessionParameters:
        """Return the parameters or raise the exception matching ``error``."""
        if self.error is not None:
            raise error_for(self.error.kind)(self.error.message, run=self.error.run)
        assert self.parameters is not None
        return self.parameters


__all__ = [
    "RunInput",
    "ImageHeader",
    "RunMetadata",
    "SliceTimingSidecar",
    "SliceOrderResult",
    "SessionParameters",
    "Issue",
    "IssueKind",
    "Resolution",
]
