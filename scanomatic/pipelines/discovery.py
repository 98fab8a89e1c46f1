"""Helpers for locating functional runs on disk.

* Expanding a ``func/`` directory into its BOLD runs.
* Guessing the subject / session labels used in log banners.

Functions only query the filesystem; nothing is opened or written.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from scanomatic.utils.archive import looks_like_image

_SUB_RE = re.compile(r"sub-[A-Za-z0-9]+")
_SES_RE = re.compile(r"ses-[A-Za-z0-9]+")
_RUN_RE = re.compile(r"_run-(\d+)")
_BOLD_RE = re.compile(r"_bold\.nii(?:\.gz)?$", re.I)


def guess_sub_ses(path: Path) -> Tuple[Optional[str], Optional[str]]:
    """Return the first ``sub-*`` and ``ses-*`` components found in *path*.

    Either element is *None* when absent; the file name itself is searched
    too, so ``sub-01_ses-02_task-x_bold.nii.gz`` works without folders.
    """
    sub = ses = None
    for part in (*path.parts[:-1], *path.name.split("_")):
        if sub is None and _SUB_RE.fullmatch(part):
            sub = part
        if ses is None and _SES_RE.fullmatch(part):
            ses = part
    return sub, ses


def _run_key(p: Path) -> tuple[int, str]:
    m = _RUN_RE.search(p.name)
    return (int(m.group(1)) if m else 0, p.name)


def _is_bold(p: Path, task: Optional[str]) -> bool:
    if not (p.is_file() and _BOLD_RE.search(p.name)):
        return False
    return task is None or f"task-{task}_" in p.name


def discover_runs(path: Path, *, task: Optional[str] = None) -> List[Path]:
    """Return the runs designated by *path*.

    A file is returned as-is when it looks like a NIfTI image. A directory is
    scanned (non-recursively) for ``*_bold.nii[.gz]`` files, optionally
    restricted to ``task-<task>``, and sorted by ``run-`` index then name.

    Raises:
        ValueError: *path* is neither a NIfTI file nor a directory.
    """
    if path.is_file():
        if not looks_like_image(path):
            raise ValueError(f"{path} is not a NIfTI image")
        return [path]
    if path.is_dir():
        task = task[len("task-"):] if task and task.startswith("task-") else task
        return sorted((p for p in path.iterdir() if _is_bold(p, task)), key=_run_key)
    raise ValueError(f"{path} is neither a NIfTI file nor a directory")


def expand_runs(paths: Iterable[Path], *, task: Optional[str] = None) -> List[Path]:
    """Apply :func:`discover_runs` to every entry of *paths*, keeping order."""
    runs: list[Path] = []
    for p in paths:
        runs.extend(discover_runs(p, task=task))
    return runs
