"""
Configuration package façade.

* :func:`load_config` – Parse and validate *scanner.yaml* into a
  :class:`ConfigSchema` instance.
* :class:`ScanConfig` – Options consumed by the resolution pipeline.
"""

from .loader import load_config  # noqa: F401
from .schema import AcquisitionFormula, ConfigSchema, ScanConfig  # noqa: F401

__all__: list[str] = ["load_config", "ConfigSchema", "ScanConfig", "AcquisitionFormula"]
