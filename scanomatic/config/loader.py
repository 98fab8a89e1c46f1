"""
YAML configuration loader.

Locates, reads, and validates *scanner.yaml* before returning a
:class:`scanomatic.config.schema.ConfigSchema` instance.

Search precedence (first match wins)
1. An explicit path argument (``--config`` on the CLI).
2. ``<dataset>/code/config/scanner.yaml`` – project-local override.
3. The packaged default shipped inside the wheel.
"""

from __future__ import annotations

from importlib.resources import as_file, files
from pathlib import Path
from typing import Optional

import yaml

from .schema import ConfigSchema

_CONFIG_NAME = "scanner.yaml"

# --------------------------------------------------------------------------- #
# Wheel-internal fallback (works even from a zipped wheel)                    #
# --------------------------------------------------------------------------- #
try:
    _DEFAULT_SCANNER = files("scanomatic.resources") / "default_scanner.yaml"
except ModuleNotFoundError:
    _DEFAULT_SCANNER = Path(__file__).resolve().parent.parent / "resources" / "default_scanner.yaml"


def _dataset_local(root: Optional[Path]) -> Optional[Path]:
    """Return ``<root>/code/config/scanner.yaml`` or *None* without a root."""
    if root is None:
        return None
    return root / "code" / "config" / _CONFIG_NAME


def _first_existing(*candidates: Optional[Path]) -> Optional[Path]:
    """Return the first path in *candidates* that exists on disk."""
    for p in candidates:
        if p is not None and p.exists():
            return p
    return None


def _load_yaml(path: Path) -> dict:
    """Read a YAML file; an empty document yields an empty dict."""
    return yaml.safe_load(path.read_text()) or {}


def load_config(
    *,
    config_path: Optional[str | Path] = None,
    dataset_root: Optional[str | Path] = None,
) -> ConfigSchema:
    """Return a fully validated :class:`ConfigSchema`.

    Args:
        config_path: Explicit path to *scanner.yaml*. ``None`` triggers the
            search sequence described in the module doc-string.
        dataset_root: Root of the BIDS dataset, required for project-local
            overrides.

    Returns:
        A :class:`ConfigSchema` ready for downstream use.

    Raises:
        FileNotFoundError: When *config_path* is given but does not exist.
        RuntimeError: When the YAML fails to parse or validate.
    """
    dataset_root = Path(dataset_root).expanduser().resolve() if dataset_root else None
    config_path = Path(config_path).expanduser().resolve() if config_path else None

    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(config_path)

    resolved = _first_existing(config_path, _dataset_local(dataset_root))
    try:
        if resolved is None:
            with as_file(_DEFAULT_SCANNER) as p:
                raw = _load_yaml(p)
        else:
            raw = _load_yaml(resolved)
        if not isinstance(raw, dict):
            raise ValueError("top-level YAML node must be a mapping")
        return ConfigSchema(**raw)
    except Exception as exc:  # pydantic.ValidationError or YAML issues
        raise RuntimeError(f"Invalid configuration – {exc}") from exc
