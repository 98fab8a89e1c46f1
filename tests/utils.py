"""Test helpers for scanomatic modules."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping

import nibabel as nib
import numpy as np

from scanomatic.pipelines.types import ImageHeader


def make_epi(
    path: Path,
    *,
    shape: tuple[int, ...] = (4, 4, 3, 5),
    tr: float | None = 2.0,
    t_unit: str = "sec",
) -> Path:
    """Write a tiny NIfTI image with *shape* and a TR in its header.

    Args:
        path: Destination (``.nii`` or ``.nii.gz``).
        shape: Image shape; a 4th entry makes the image 4-D.
        tr: Value stored in ``pixdim[4]`` (in *t_unit*); ``None`` stores 0.
        t_unit: NIfTI time unit name (``sec``, ``msec``, ``usec``).

    Returns:
        *path*, for chaining.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    img = nib.Nifti1Image(np.zeros(shape, dtype=np.float32), np.eye(4))
    if len(shape) == 4:
        img.header.set_zooms((1.0, 1.0, 1.0, float(tr or 0.0)))
        img.header.set_xyzt_units("mm", t_unit)
    img.to_filename(str(path))
    return path


def write_sidecar(image: Path, meta: Mapping | str) -> Path:
    """Write the JSON sidecar that belongs to *image*.

    A string is written verbatim so tests can produce invalid JSON.
    """
    sidecar = image.parent / (image.name.split(".", 1)[0] + ".json")
    sidecar.write_text(meta if isinstance(meta, str) else json.dumps(meta))
    return sidecar


def fake_reader(headers: Mapping[str, ImageHeader], calls: list[Path] | None = None):
    """Return a header reader that looks up *headers* by file name."""

    def _read(path: Path) -> ImageHeader:
        if calls is not None:
            calls.append(path)
        return headers[path.name]

    return _read


def headers_for(
    names: Iterable[str],
    *,
    nslices: Iterable[int],
    trs: Iterable[float | None],
    n_vols: int = 10,
) -> dict[str, ImageHeader]:
    """Build a name → :class:`ImageHeader` map for :func:`fake_reader`."""
    return {
        name: ImageHeader(dims=(64, 64, ns), tr=tr, n_vols=n_vols)
        for name, ns, tr in zip(names, nslices, trs)
    }
