"""Render the extension attribute script uploaded with each Jamf recipe.

AutoPkg substitutes ``%NAME%`` and ``%version%`` in EA templates before
uploading them. The packaged template is a thin shell wrapper around
``autopkg-ops ea check`` so the same substitution applies.
"""

import importlib.resources
from pathlib import Path

TEMPLATE_NAME = "extension_attribute.sh"


def load_template() -> str:
    """Return the packaged EA template text."""
    files = importlib.resources.files("autopkg_ops.templates")
    return files.joinpath(TEMPLATE_NAME).read_text()


def render_extension_attribute(
    name: str,
    version: str,
    probe: str = "app",
    template: str | None = None,
) -> str:
    """Substitute recipe variables into the EA template."""
    text = template if template is not None else load_template()
    return (
        text.replace("%NAME%", name)
        .replace("%version%", version)
        .replace("%PROBE%", probe)
    )


def write_extension_attribute(
    output: Path, name: str, version: str, probe: str = "app"
) -> Path:
    """Render the template to ``output`` and mark it executable."""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(render_extension_attribute(name, version, probe))
    output.chmod(0o755)
    return output
