"""Tests for the extension attribute script template."""

import os

from autopkg_ops.attributes.template import (
    load_template,
    render_extension_attribute,
    write_extension_attribute,
)


def test_packaged_template_calls_ea_check():
    text = load_template()
    assert text.startswith("#!/bin/bash")
    assert "ea check" in text
    assert "%NAME%" in text and "%version%" in text and "%PROBE%" in text


def test_render_substitutes_placeholders():
    rendered = render_extension_attribute(
        "Firefox", "128.0.3", "app", template="%NAME% %version% %PROBE%"
    )
    assert rendered == "Firefox 128.0.3 app"


def test_render_keeps_recipe_placeholders():
    """Rendering with the placeholders themselves leaves them for AutoPkg."""
    rendered = render_extension_attribute("%NAME%", "%version%", "homebrew")
    assert '--name "%NAME%"' in rendered
    assert '--probe "homebrew"' in rendered


def test_write_is_executable(tmp_path):
    path = write_extension_attribute(tmp_path / "ea" / "Zoom.sh", "Zoom", "6.1.0")
    assert os.access(path, os.X_OK)
    assert '--latest "6.1.0"' in path.read_text()
