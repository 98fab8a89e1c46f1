"""
scanomatic package initialisation.

* ``scanomatic.__version__`` is resolved from the installed distribution
  metadata.
* :func:`resolve_scan_parameters` and :func:`load_config` are re-exported so
  call-sites can simply do::

      from scanomatic import load_config, resolve_scan_parameters
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("scanomatic")
except PackageNotFoundError:
    # Source tree without an installed wheel.
    __version__ = "0.0.0"

from .config import ScanConfig, load_config  # noqa: E402
from .pipelines import resolve_scan_parameters  # noqa: E402

__all__: list[str] = ["load_config", "resolve_scan_parameters", "ScanConfig", "__version__"]
