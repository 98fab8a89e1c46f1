"""Utility functions to print formatted CLI messages."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:  # pragma: no cover
    from scanomatic.pipelines.types import SessionParameters

__all__ = ["echo_banner", "echo_success", "echo_warning", "echo_parameters"]


def echo_banner(text: str) -> None:
    """Print a colourful banner announcing a processing step.

    Args:
        text: Banner text.
    """
    click.secho(f"\n=== {text} ===", fg="cyan")


def echo_success(text: str) -> None:
    """Echo a green success message prefixed with a tick."""
    click.secho(f"✓ {text}", fg="green")


def echo_warning(text: str) -> None:
    """Echo a yellow warning line on stderr."""
    click.secho(f"! {text}", fg="yellow", err=True)


def _fmt_seq(values) -> str:
    return "[" + " ".join(str(v) for v in values) + "]"


def echo_parameters(params: "SessionParameters") -> None:
    """Print a human-readable summary of resolved scanning parameters.

    Args:
        params: Resolved session parameters.
    """
    click.echo(f"  sessions    : {params.session_count}")
    click.echo(f"  nslice      : {params.slice_count}")
    click.echo(f"  nvols       : {_fmt_seq(params.volume_counts)}")
    click.echo(f"  tr          : {_fmt_seq(f'{tr:g}' for tr in params.trs)}")
    if params.is_multiband:
        click.echo(f"  refslice (s): {params.reference_slice_time:.3f}")
    else:
        click.echo(f"  sliceorder  : {_fmt_seq(params.slice_order)}")
