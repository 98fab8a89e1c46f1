"""
Per-run header extraction.

:func:`extract_run_metadata` turns one :class:`~scanomatic.pipelines.types.RunInput`
into :class:`~scanomatic.pipelines.types.RunMetadata`. Reading the image
header and expanding ``.nii.gz`` files are delegated to two injectable
callables so tests (and callers with other image readers) can swap them:

* ``reader(path) -> ImageHeader`` – defaults to :func:`read_nifti_header`
  (nibabel);
* ``decompressor(src, scratch_dir) -> Path`` – defaults to
  :func:`gunzip_to`.

Compressed runs are expanded into a :class:`tempfile.TemporaryDirectory`
created beside the run. The directory is removed when the ``with`` block
exits, whichever way it exits, so the next run never starts while the
previous scratch copy still exists.
"""

from __future__ import annotations

import gzip
import logging
import shutil
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Callable, Optional

import nibabel as nib
import numpy as np
from nibabel.filebasedimages import ImageFileError
from nibabel.spatialimages import HeaderDataError

from scanomatic.config.schema import ScanConfig
from scanomatic.pipelines.types import ImageHeader, RunInput, RunMetadata
from scanomatic.utils.archive import strip_compression
from scanomatic.utils.errors import MissingTRError, UnreadableHeaderError

log = logging.getLogger(__name__)

HeaderReader = Callable[[Path], ImageHeader]
Decompressor = Callable[[Path, Path], Path]

_SCRATCH_PREFIX = ".tmp_scan_"

# NIfTI xyzt time units → divisor converting pixdim[4] to seconds
_TIME_DIVISOR: dict[str, float] = {
    "sec": 1.0,
    "msec": 1e3,
    "usec": 1e6,
}


# ---------------------------------------------------------------------------
# Default collaborators
# ---------------------------------------------------------------------------
def _seconds(pixdim: float, t_unit: str) -> float:
    """Convert a float32 ``pixdim[4]`` to seconds.

    The value is first taken at the precision it was stored with, so 2.2 s
    and 2200 ms both come out as ``2.2``.
    """
    stored = float(np.format_float_positional(np.float32(pixdim), unique=True))
    return stored / _TIME_DIVISOR.get(t_unit, 1.0)


def read_nifti_header(path: Path) -> ImageHeader:
    """Read dimensions, TR and volume count from a NIfTI file with nibabel.

    Only the header is touched; voxel data are never loaded. A 3-D image, or
    a zero ``pixdim[4]``, reports no TR.
    """
    img = nib.load(str(path))
    shape = tuple(int(d) for d in img.shape)
    n_vols = shape[3] if len(shape) >= 4 else 1

    tr: Optional[float] = None
    if len(shape) >= 4:
        zooms = img.header.get_zooms()
        raw = zooms[3] if len(zooms) >= 4 else 0.0
        if raw > 0:
            _, t_unit = img.header.get_xyzt_units()
            tr = _seconds(raw, t_unit)

    return ImageHeader(dims=shape[:3], tr=tr, n_vols=n_vols)


def gunzip_to(src: Path, scratch_dir: Path) -> Path:
    """Decompress gzip file *src* into *scratch_dir* and return the new path."""
    dst = scratch_dir / strip_compression(src.name)
    with gzip.open(src, "rb") as fin, open(dst, "wb") as fout:
        shutil.copyfileobj(fin, fout)
    return dst


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------
def _read_header(path: Path, reader: HeaderReader, index: int) -> ImageHeader:
    """Call *reader* and map I/O and format failures to a typed error."""
    try:
        return reader(path)
    except (OSError, ImageFileError, HeaderDataError, EOFError) as exc:
        raise UnreadableHeaderError(
            f"Could not read header of run {index} ({path}): {exc}", run=index
        ) from exc


def _header_of(
    run: RunInput,
    *,
    reader: HeaderReader,
    decompressor: Decompressor,
    index: int,
) -> ImageHeader:
    """Return the header of *run*, expanding it into scratch space if needed."""
    if not run.compressed:
        return _read_header(run.path, reader, index)

    with TemporaryDirectory(prefix=_SCRATCH_PREFIX, dir=run.path.parent) as tmp:
        try:
            outfile = decompressor(run.path, Path(tmp))
        except (OSError, EOFError) as exc:
            raise UnreadableHeaderError(
                f"Could not decompress run {index} ({run.path}): {exc}", run=index
            ) from exc
        log.debug("scratch copy = %s", outfile)
        return _read_header(outfile, reader, index)


def resolve_tr(header: ImageHeader, config: ScanConfig, *, index: int, path: Path) -> float:
    """Apply the TR priority: manual override, then header, else fail."""
    if config.tr_override is not None:
        return float(config.tr_override)
    if header.tr is not None and header.tr > 0:
        return float(header.tr)
    log.error(
        "[EXCEPTION] No TR information present in nifti hdr. Please manually "
        "specify the TR in your parameters file. Aborting..."
    )
    raise MissingTRError(
        f"No TR information present in nifti header of run {index} ({path})",
        run=index,
    )


def extract_run_metadata(
    run: RunInput,
    config: ScanConfig,
    *,
    reader: HeaderReader | None = None,
    decompressor: Decompressor | None = None,
    index: int = 1,
) -> RunMetadata:
    """Return TR, volume count and slice count for a single run.

    Args:
        run: Run to inspect.
        config: Resolution options; only ``tr_override`` is used here.
        reader: Header reader; :func:`read_nifti_header` when *None*.
        decompressor: Expands compressed runs; :func:`gunzip_to` when *None*.
        index: 1-based position of *run* in the session, for messages.

    Raises:
        MissingTRError: Neither an override nor a header TR is available.
        UnreadableHeaderError: The run cannot be decompressed or read.
    """
    header = _header_of(
        run,
        reader=reader or read_nifti_header,
        decompressor=decompressor or gunzip_to,
        index=index,
    )
    if not header.dims:
        raise UnreadableHeaderError(
            f"Header of run {index} ({run.path}) reports no dimensions", run=index
        )
    if min(header.dims) < 1 or header.n_vols < 1:
        raise UnreadableHeaderError(
            f"Header of run {index} ({run.path}) reports an empty image: "
            f"dims={header.dims}, nvols={header.n_vols}",
            run=index,
        )

    tr = resolve_tr(header, config, index=index, path=run.path)
    # Assumes slices are the thinnest spatial axis.
    meta = RunMetadata(
        tr=tr,
        volume_count=header.n_vols,
        slice_count=min(header.dims),
    )
    log.info(
        "Run: %d, tr=%.2f, nvols=%d, nslice=%d",
        index,
        meta.tr,
        meta.volume_count,
        meta.slice_count,
    )
    return meta
