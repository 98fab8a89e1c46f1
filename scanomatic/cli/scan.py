"""Resolve scanning parameters for one session of EPI runs.

Exposed as ``scanomatic-cli scan``. Paths may be image files or ``func/``
directories; directories are expanded into their ``*_bold.nii[.gz]`` runs.
The resolved parameters are printed, never written to disk.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click
import structlog

from scanomatic.config.schema import AcquisitionFormula, ScanConfig
from scanomatic.pipelines import expand_runs, guess_sub_ses, resolve_scan_parameters
from scanomatic.utils.display import echo_banner, echo_parameters, echo_success, echo_warning
from scanomatic.utils.logging import flush_logging

log = structlog.get_logger()


def _overrides(
    tr: Optional[float],
    formula: Optional[str],
    refslice: Optional[int],
    allow_missing_timing: bool,
) -> dict:
    """Collect CLI values that replace the ones loaded from YAML."""
    update: dict = {}
    if tr is not None:
        update["tr_override"] = tr
    if formula is not None:
        update["acquisition_formula"] = AcquisitionFormula(formula)
    if refslice is not None:
        update["reference_slice_index"] = refslice
    if allow_missing_timing:
        update["require_slice_timing"] = False
    return update


@click.command(
    name="scan",
    help="Derive TR, nvols, nslice and slice order from the given EPI runs.",
    context_settings=dict(help_option_names=["-h", "--help"], max_content_width=120),
)
@click.argument(
    "paths",
    type=click.Path(path_type=Path, exists=True),
    nargs=-1,
    required=True,
)
@click.option("--task", metavar="<label>", help="Only runs of this task when a directory is given.")
@click.option("--tr", type=click.FloatRange(min=0, min_open=True), help="Manual TR (s) for every run.")
@click.option(
    "--formula",
    type=click.Choice([f.value for f in AcquisitionFormula], case_sensitive=False),
    help="Slice-order formula used without sidecar timing.",
)
@click.option("--refslice", type=click.IntRange(min=1), help="1-based multiband reference slice.")
@click.option(
    "--allow-missing-timing",
    is_flag=True,
    help="Fall back to the formula when the sidecar has no SliceTiming.",
)
@click.option("--subject", metavar="<sub>", help="Subject label for log messages.")
@click.option("--json", "as_json", is_flag=True, help="Print the parameters as JSON.")
@click.pass_obj
def cli(
    ctx_obj,
    paths: tuple[Path, ...],
    task: Optional[str],
    tr: Optional[float],
    formula: Optional[str],
    refslice: Optional[int],
    allow_missing_timing: bool,
    subject: Optional[str],
    as_json: bool,
) -> None:
    """Entry-point for ``scanomatic-cli scan``.

    Raises:
        click.ClickException: When no run is found or resolution fails.
    """
    base: ScanConfig = ctx_obj["cfg"].scanner
    config = base.model_copy(
        update=_overrides(tr, formula.lower() if formula else None, refslice, allow_missing_timing)
    )

    try:
        runs = expand_runs(paths, task=task)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    if not runs:
        raise click.ClickException("No EPI runs found.")

    if subject is None:
        sub, ses = guess_sub_ses(runs[0])
        subject = "/".join(x for x in (sub, ses) if x) or None

    if not as_json:
        echo_banner(f"Scanning parameters – {subject or runs[0].parent}")
    log.info("Resolving %d run(s)", len(runs))

    result = resolve_scan_parameters(runs, config, subject=subject)

    for issue in result.warnings:
        echo_warning(issue.message)

    if not result.ok:
        log.error("Resolution failed (%s): %s", result.error.kind.value, result.error.message)
        flush_logging()
        raise click.ClickException(result.error.message)

    params = result.parameters
    if as_json:
        click.echo(json.dumps(params.model_dump(mode="json"), indent=2))
        return
    echo_parameters(params)
    echo_success(f"{params.session_count} run(s) resolved")


__all__ = ["cli"]
