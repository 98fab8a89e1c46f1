"""
Helpers for recognising compressed EPI runs.

The predicate is a plain suffix comparison so that run discovery never has to
open a file to decide whether the header reader needs a decompression step
first.
"""

from __future__ import annotations

from pathlib import Path

#: Recognised compression endings. Only gzip is produced by the converters
#: this project reads from (``dcm2niix -z y``).
_COMPRESSED_SUFFIXES: tuple[str, ...] = (".gz",)

#: Image endings accepted as runs, longest first so ``.nii.gz`` wins over
#: ``.nii``.
_IMAGE_SUFFIXES: tuple[str, ...] = (".nii.gz", ".nii")


def is_compressed(path: Path) -> bool:
    """Return *True* when *path* names a gzip-compressed run.

    The check is case-insensitive::

        >>> is_compressed(Path("epi_r01.nii.gz"))
        True
        >>> is_compressed(Path("epi_r01.NII.GZ"))
        True
        >>> is_compressed(Path("epi_r01.nii"))
        False
    """
    lower_name = path.name.lower()
    return any(lower_name.endswith(suf) for suf in _COMPRESSED_SUFFIXES)


def looks_like_image(path: Path) -> bool:
    """Return *True* when *path* is a NIfTI file (compressed or not)."""
    lower_name = path.name.lower()
    return any(lower_name.endswith(suf) for suf in _IMAGE_SUFFIXES)


def run_basename(path: Path) -> str:
    """Return the file name of *path* up to its first dot.

    ``sub-01_task-rest_bold.nii.gz`` → ``sub-01_task-rest_bold``. Used to
    locate the co-located JSON sidecar regardless of how many extensions the
    image carries.
    """
    return path.name.split(".", 1)[0]


def strip_compression(name: str) -> str:
    """Return *name* without its trailing compression suffix."""
    lower_name = name.lower()
    for suf in _COMPRESSED_SUFFIXES:
        if lower_name.endswith(suf):
            return name[: -len(suf)]
    return name
