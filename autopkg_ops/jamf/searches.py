"""Advanced computer search sync.

For every Jamf recipe on disk whose application has an "AutoPkg <app>
Update Status" extension attribute in Jamf Pro, make sure an advanced
computer search "AutoPkg <app> - Needs Update" exists and lists the Macs
whose attribute reads "Needs Update".

Steps:
1. Scan ``*.jamf.recipe`` (plist) and ``*.jamf.recipe.yaml`` recipes,
   honouring the exclusions and special cases in search_sync.yaml
2. Keep applications whose extension attribute exists in Jamf Pro and write
   them, one per line, to the application names file
3. Create or update one advanced search per validated application
"""

import logging
import plistlib
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import httpx
import yaml

from autopkg_ops.core.timestamps import section_timestamp
from autopkg_ops.jamf.client import JamfAuthError, JamfClient, JamfRequestError

logger = logging.getLogger(__name__)

RECIPE_SUFFIXES = (".jamf.recipe", ".jamf.recipe.yaml")


@dataclass
class SearchSyncConfig:
    """Recipe selection rules and naming templates."""

    exclude: set[str]
    special_cases: dict[str, str]
    ea_name: str
    search_name: str
    search_value: str
    display_fields: list[str]

    def ea_name_for(self, app: str) -> str:
        return self.ea_name.format(app=app)

    def search_name_for(self, app: str) -> str:
        return self.search_name.format(app=app)


@lru_cache(maxsize=1)
def load_search_sync_config() -> SearchSyncConfig:
    """Load search sync rules from the packaged YAML."""
    config_path = Path(__file__).parent.parent / "config" / "search_sync.yaml"

    with config_path.open() as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    return SearchSyncConfig(
        exclude=set(data.get("exclude", [])),
        special_cases=dict(data.get("special_cases", {})),
        ea_name=data.get("ea_name", "AutoPkg {app} Update Status"),
        search_name=data.get("search_name", "AutoPkg {app} - Needs Update"),
        search_value=data.get("search_value", "Needs Update"),
        display_fields=list(data.get("display_fields", [])),
    )


@dataclass
class SyncReport:
    """Outcome of a search sync run."""

    validated: list[str] = field(default_factory=list)
    missing_ea: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


# ─── Recipe scanning ───────────────────────────────────────────────────────


def _load_recipe(path: Path) -> dict[str, Any]:
    try:
        if path.name.endswith(".yaml"):
            with path.open() as f:
                data = yaml.safe_load(f)
        else:
            with path.open("rb") as f:
                data = plistlib.load(f)
    except (OSError, yaml.YAMLError, plistlib.InvalidFileException, ValueError) as e:
        logger.debug(f"Cannot parse recipe {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def recipe_app_name(path: Path, config: SearchSyncConfig) -> str | None:
    """Application name for a recipe, None when it has no NAME input."""
    if path.name in config.special_cases:
        return config.special_cases[path.name]
    inputs = _load_recipe(path).get("Input") or {}
    name = inputs.get("NAME") if isinstance(inputs, dict) else None
    if not name:
        return None
    return str(name).strip() or None


def find_recipes(recipe_dir: Path) -> list[Path]:
    """All Jamf recipes below ``recipe_dir``, sorted by path."""
    if not recipe_dir.is_dir():
        return []
    return sorted(
        p
        for p in recipe_dir.rglob("*")
        if p.is_file() and p.name.endswith(RECIPE_SUFFIXES)
    )


def scan_recipe_names(recipe_dir: Path, config: SearchSyncConfig) -> list[str]:
    """Application names of the non-excluded Jamf recipes, first seen order."""
    names: list[str] = []
    for recipe in find_recipes(recipe_dir):
        if recipe.name in config.exclude:
            continue
        app = recipe_app_name(recipe, config)
        if app and app not in names:
            names.append(app)
    return names


# ─── Search payload ────────────────────────────────────────────────────────


def build_search_xml(app: str, config: SearchSyncConfig | None = None) -> str:
    """Advanced computer search XML for one application."""
    config = config or load_search_sync_config()
    ea_name = config.ea_name_for(app)

    search = ET.Element("advanced_computer_search")
    ET.SubElement(search, "name").text = config.search_name_for(app)

    criterion = ET.SubElement(ET.SubElement(search, "criteria"), "criterion")
    ET.SubElement(criterion, "name").text = ea_name
    ET.SubElement(criterion, "and_or").text = "and"
    ET.SubElement(criterion, "search_type").text = "is"
    ET.SubElement(criterion, "value").text = config.search_value

    fields = ET.SubElement(search, "display_fields")
    for display_field in config.display_fields:
        field_el = ET.SubElement(fields, "display_field")
        ET.SubElement(field_el, "name").text = display_field.format(ea_name=ea_name)

    ET.indent(search)
    body = ET.tostring(search, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'


# ─── Sync ──────────────────────────────────────────────────────────────────


def sync_searches(
    recipe_dir: Path,
    output_file: Path,
    client: JamfClient,
    config: SearchSyncConfig | None = None,
) -> SyncReport:
    """Validate recipes against Jamf EAs and upsert their advanced searches.

    Raises:
        JamfAuthError: If no access token could be obtained
        JamfRequestError: If the attribute or search list could not be read
    """
    config = config or load_search_sync_config()
    report = SyncReport()

    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text("")

    logger.info(
        f"=== AutoPkg Jamf Advanced Search API Started: {section_timestamp()} ==="
    )
    logger.info("")

    logger.info("Requesting access token...")
    try:
        client.authenticate()
    except JamfAuthError:
        logger.error("Failed to retrieve access token.")
        raise
    logger.info("Access token retrieved.")

    try:
        existing_eas = client.extension_attribute_names()
    except JamfRequestError as e:
        logger.error(f"Failed to fetch extension attributes: {e}")
        raise
    for app in scan_recipe_names(recipe_dir, config):
        if config.ea_name_for(app) in existing_eas:
            report.validated.append(app)
            logger.info(f"✔ EA found for '{app}' - added to list.")
        else:
            report.missing_ea.append(app)
            logger.info(f"❌ EA missing for '{app}' - skipped.")

    output_file.write_text("".join(f"{app}\n" for app in report.validated))
    logger.info("")

    try:
        search_ids = client.advanced_search_ids() if report.validated else {}
    except JamfRequestError as e:
        logger.error(f"Failed to fetch advanced searches: {e}")
        raise
    for app in report.validated:
        logger.info(f"Processing: {app}")
        search_id = search_ids.get(config.search_name_for(app))
        if search_id:
            logger.info(f"Search exists. Updating ID {search_id}...")
        else:
            logger.info("Search does not exist. Creating new...")

        try:
            method, response = client.save_advanced_search(
                build_search_xml(app, config), search_id
            )
        except httpx.HTTPError as e:
            report.failed.append(app)
            logger.error(f"Advanced Search request failed for {app}: {e}")
            logger.info("")
            continue

        if response.is_success:
            (report.updated if search_id else report.created).append(app)
        else:
            report.failed.append(app)
        logger.info(f"Advanced Search {method} response:")
        logger.info(response.text)
        logger.info("")

    logger.info("")
    logger.info(
        f"=== AutoPkg Jamf Advanced Search API Finished: {section_timestamp()} ==="
    )
    logger.info("")
    return report
