"""Extension attribute commands - update status checks on managed Macs."""

import sys
from pathlib import Path

import click

from autopkg_ops.attributes import (
    StatusStore,
    check_extension_attribute,
    get_probe,
    list_probes,
    render_extension_attribute,
    write_extension_attribute,
)
from autopkg_ops.cli.logging import configure_cli_logging
from autopkg_ops.cli.utils import output_json, output_table


@click.group()
def ea() -> None:
    """Extension attribute checks and scripts.

    \b
      autopkg-ops ea check        Check one application, print <result>
      autopkg-ops ea render       Render an EA script for one application
      autopkg-ops ea probes       List supported install probes
      autopkg-ops ea status       List status files written on this Mac
    """
    pass


@ea.command("check")
@click.option("--name", "app_name", help="Application name (defaults per probe)")
@click.option("--latest", "latest_version", required=True, help="Newest known version")
@click.option(
    "--probe",
    "probe_type",
    type=click.Choice(list_probes()),
    default="app",
    show_default=True,
    help="How to locate the installed software",
)
@click.option(
    "--status-dir",
    type=click.Path(path_type=Path),
    help="Status file directory (default from settings)",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    help="Log file, truncated each run (default from settings)",
)
@click.option("--root", type=click.Path(path_type=Path), default="/", hidden=True)
@click.option("-v", "--verbose", is_flag=True, help="Also log to stderr")
def ea_check(
    app_name: str | None,
    latest_version: str,
    probe_type: str,
    status_dir: Path | None,
    log_file: Path | None,
    root: Path,
    verbose: bool,
) -> None:
    """Check whether an application is installed and up to date.

    Prints ``<result>STATUS</result>`` on stdout, where STATUS is one of
    Not Installed, Needs Update, Up-to-date or Unknown Version.
    """
    from autopkg_ops.settings import get_paths

    probe = get_probe(probe_type)
    app_name = app_name or probe.default_name
    if not app_name:
        raise click.UsageError(f"--name is required for the '{probe_type}' probe")

    paths = get_paths()
    configure_cli_logging(
        "ea",
        log_file=log_file or paths.ea_log,
        timestamped=True,
        console=verbose,
        stream=sys.stderr,
    )
    outcome = check_extension_attribute(
        app_name,
        latest_version,
        probe,
        StatusStore(status_dir or paths.status_dir),
        root=root,
    )
    click.echo(outcome.result_tag)


@ea.command("render")
@click.option("--name", "app_name", default="%NAME%", help="Application name")
@click.option("--latest", "latest_version", default="%version%", help="Latest version")
@click.option(
    "--probe",
    "probe_type",
    type=click.Choice(list_probes()),
    default="app",
    show_default=True,
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Write an executable script instead of printing",
)
def ea_render(
    app_name: str, latest_version: str, probe_type: str, output: Path | None
) -> None:
    """Render the extension attribute script for one application.

    Left at the defaults, the %NAME% and %version% placeholders are kept so
    AutoPkg recipe processors can substitute them.
    """
    if output:
        path = write_extension_attribute(output, app_name, latest_version, probe_type)
        click.echo(f"Wrote {path}")
    else:
        click.echo(
            render_extension_attribute(app_name, latest_version, probe_type), nl=False
        )


@ea.command("probes")
def ea_probes() -> None:
    """List supported install probes."""
    rows = []
    for probe_type in list_probes():
        probe = get_probe(probe_type)
        rows.append([probe_type, probe.default_name or "(from --name)"])
    output_table("Install Probes", [("Probe", "cyan"), ("Default name", "white")], rows)


@ea.command("status")
@click.option(
    "--status-dir",
    type=click.Path(path_type=Path),
    help="Status file directory (default from settings)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def ea_status(status_dir: Path | None, as_json: bool) -> None:
    """List applications that currently need an update on this Mac."""
    from autopkg_ops.settings import get_paths

    store = StatusStore(status_dir or get_paths().status_dir)
    records = store.read_all()

    if as_json:
        output_json([r.model_dump() for r in records])
        return

    if not records:
        click.echo("No applications need an update.")
        return

    output_table(
        "Pending Updates",
        [
            ("Application", "cyan"),
            ("Installed", "yellow"),
            ("Latest", "green"),
            ("Checked", "dim"),
        ],
        [[r.name, r.installed_version, r.latest_version, r.date] for r in records],
    )
