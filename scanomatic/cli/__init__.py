"""Expose the project-wide Click group for the ``scanomatic-cli`` script.

The module:

* declares a single Click *group* called :pyfunc:`main`;
* wires common global flags (dataset root, YAML override, verbosity, etc.);
* sets up logging via :pyfunc:`scanomatic.utils.logging.setup_logging`;
* loads the *scanner.yaml* configuration;
* registers every sub-command located in sibling modules.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import click

from scanomatic import __version__
from scanomatic.config import load_config
from scanomatic.utils.logging import setup_logging


class LazyGroup(click.Group):
    """Click group that imports sub-commands lazily."""

    def __init__(self, *args, **kwargs):
        self._lazy: dict[str, str] = {}
        super().__init__(*args, **kwargs)

    def set_lazy_command(self, name: str, target: str) -> None:
        """Register *name* to be imported from ``target`` on first use."""
        self._lazy[name] = target

    def list_commands(self, ctx):  # noqa: D401 - Click signature
        return sorted({*super().list_commands(ctx), *self._lazy})

    def get_command(self, ctx, cmd_name):  # noqa: D401 - Click signature
        """Resolve *cmd_name* from the eager map or import table."""
        cmd = super().get_command(ctx, cmd_name)
        if cmd is not None:
            return cmd
        target = self._lazy.get(cmd_name)
        if not target:
            return None
        module_name, attr = target.split(":", 1)
        import importlib

        module = importlib.import_module(module_name)
        cmd = getattr(module, attr)
        self.add_command(cmd, name=cmd_name)
        return cmd


_CTX: Dict[str, Any] = dict(
    help_option_names=["-h", "--help"],
    show_default=True,
    max_content_width=120,
)


@click.group(
    cls=LazyGroup,
    context_settings=_CTX,
    help="""\b
scanomatic-cli – derive TR, volume counts and slice order from EPI runs.

""",
)
@click.version_option(__version__)
@click.option(
    "-r",
    "--bids-root",
    type=click.Path(file_okay=False, path_type=Path),
    help="Dataset root; enables code/config/scanner.yaml and code/logs/.",
)
@click.option(
    "-c",
    "--config",
    "config_yaml",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    help="Explicit scanner.yaml.",
)
@click.option("-v", "--verbose", is_flag=True, help="INFO-level console output.")
@click.option("--debug", is_flag=True, help="DEBUG console output.")
@click.option(
    "--save-logfile",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Mirror console output into this plain-text file.",
)
@click.pass_context
def main(  # noqa: D401 – Click requires the callback to be named “main”.
    ctx: click.Context,
    bids_root: Path | None,
    config_yaml: Path | None,
    verbose: bool,
    debug: bool,
    save_logfile: Path | None,
) -> None:
    """Root command executed by *scanomatic-cli*.

    Args:
        ctx: Click runtime context that carries objects across sub-commands.
        bids_root: Optional dataset root supplied via ``--bids-root``. Falls
            back to ``$BIDS_ROOT`` when set.
        config_yaml: Explicit path to a *scanner.yaml* override.
        verbose: Emit INFO-level messages.
        debug: Emit DEBUG-level messages.
        save_logfile: Optional path for a plain-text log mirror.
    """
    env_root = os.environ.get("BIDS_ROOT")
    root = bids_root or (Path(env_root) if env_root else None)
    root = root.expanduser().resolve() if root is not None else None
    if root is not None and not root.is_dir():
        root = None

    setup_logging(
        dataset_root=root,
        verbose=verbose,
        debug=debug,
        extra_text_log=save_logfile,
    )

    try:
        cfg = load_config(config_path=config_yaml, dataset_root=root)
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc

    ctx.obj = {
        "root": root,
        "cfg": cfg,
        "verbose": verbose,
        "debug": debug,
    }


main.set_lazy_command("scan", "scanomatic.cli.scan:cli")

cli = main
__all__: list[str] = ["main"]
