"""
Pydantic models that mirror the YAML configuration consumed by *scanomatic*.

The rest of the codebase works with these validated, immutable objects
instead of ad-hoc dictionaries, so an optional manual TR is an explicit
``None`` rather than a missing key.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AcquisitionFormula(str, Enum):
    """Fallback slice-order formula used when no sidecar timing exists."""

    PHILIPS = "philips"
    DEFAULT = "default"


class ScanConfig(BaseModel, frozen=True):
    """Options that steer parameter resolution.

    Attributes:
        tr_override: Manual TR in seconds. When set it wins over the TR stored
            in every run's header.
        acquisition_formula: Formula used for the slice order when the first
            run has no sidecar timing.
        reference_slice_index: 1-based slice whose timing becomes the
            reference time for simultaneous multi-slice acquisitions.
        require_slice_timing: When *True* a sidecar without a
            ``SliceTiming`` field is an error; when *False* it is treated as
            an absent sidecar and the formulas apply.
    """

    tr_override: Optional[float] = Field(None, gt=0, description="Manual TR (s)")
    acquisition_formula: AcquisitionFormula = AcquisitionFormula.DEFAULT
    reference_slice_index: int = Field(1, ge=1)
    require_slice_timing: bool = True

    @field_validator("acquisition_formula", mode="before")
    @classmethod
    def _lower_formula(cls, value):
        """Accept ``Philips`` / ``PHILIPS`` spellings from hand-written YAML."""
        return value.strip().lower() if isinstance(value, str) else value


class ConfigSchema(BaseModel):
    """Root configuration object.

    Attributes:
        version: Version string of the configuration schema.
        scanner: Parameter-resolution options.
    """

    version: str = "1.0"
    scanner: ScanConfig = Field(default_factory=ScanConfig)
