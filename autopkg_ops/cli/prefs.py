"""Preferences commands - Jamf keys in the AutoPkg preferences plist."""

from pathlib import Path

import click

from autopkg_ops.cli.utils import mask_secret, output_json, output_table
from autopkg_ops.preferences import (
    API_CLIENT_ID,
    API_CLIENT_SECRET,
    JSS_URL,
    PreferencesError,
    read_preferences,
    write_preferences,
)

KEYS = (JSS_URL, API_CLIENT_ID, API_CLIENT_SECRET)

_preferences_option = click.option(
    "--preferences",
    type=click.Path(path_type=Path),
    help="AutoPkg preferences plist (default from settings)",
)


def _resolve(preferences: Path | None) -> Path:
    from autopkg_ops.settings import get_paths

    return preferences or get_paths().preferences


@click.group()
def prefs() -> None:
    """Jamf Pro settings shared with JamfUploader.

    \b
      autopkg-ops prefs show      Show JSS_URL and API client credentials
      autopkg-ops prefs set       Set one of those keys
    """
    pass


@prefs.command("show")
@_preferences_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def prefs_show(preferences: Path | None, as_json: bool) -> None:
    """Show the Jamf keys, with the client secret masked."""
    path = _resolve(preferences)
    try:
        data = read_preferences(path)
    except PreferencesError as e:
        raise click.ClickException(str(e)) from e

    values = {key: str(data.get(key, "")) for key in KEYS}
    values[API_CLIENT_SECRET] = mask_secret(values[API_CLIENT_SECRET])

    if as_json:
        output_json(values)
        return
    output_table(
        str(path),
        [("Key", "cyan"), ("Value", "white")],
        [[key, value or "(not set)"] for key, value in values.items()],
    )


@prefs.command("set")
@click.argument("key", type=click.Choice(KEYS))
@click.argument("value")
@_preferences_option
def prefs_set(key: str, value: str, preferences: Path | None) -> None:
    """Set KEY to VALUE in the preferences plist."""
    path = _resolve(preferences)
    if key == JSS_URL:
        value = value.strip().rstrip("/")
    try:
        write_preferences(path, {key: value})
    except PreferencesError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Set {key} in {path}")
